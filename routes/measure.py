"""
Measurement session routes.

Drives the station's single MeasurementSession:

    GET  /session                 current state
    POST /session/tab             {tab}
    POST /session/select/<id>     open an active order
    POST /session/edit            {defId, value}
    POST /session/signing         open signing
    POST /session/signer          {name}
    POST /session/submit          deliver the card
    POST /session/ack             back to the list after the confirmation
    POST /session/cancel          abandon the open order

Signer roster:
    GET  /signers
    POST /signers                 {name}

Invalid transitions surface as SessionStateError (409) via the app's error
handlers.
"""

from flask import Blueprint, current_app, request

from core.exceptions import UnknownOrderError
from logging_config import get_logger
from .views import session_view


# Module logger
logger = get_logger(__name__)

measure_bp = Blueprint("measure", __name__)


def _session():
    return current_app.config["MEASUREMENT_SESSION"]


def _body() -> dict:
    return request.get_json(silent=True) or {}


@measure_bp.route("/session", methods=["GET"])
def get_session():
    return session_view(_session())


@measure_bp.route("/session/tab", methods=["POST"])
def switch_tab():
    session = _session()
    session.switch_tab(str(_body().get("tab", "")))
    return session_view(session)


@measure_bp.route("/session/select/<order_id>", methods=["POST"])
def select(order_id: str):
    """Open an active order; the session gets its own copy of the definitions."""
    store = current_app.config["ORDER_STORE"]
    order = store.get_active(order_id)
    if order is None:
        raise UnknownOrderError(order_id)

    session = _session()
    session.select(order)
    return session_view(session)


@measure_bp.route("/session/edit", methods=["POST"])
def edit():
    body = _body()
    session = _session()
    session.edit(str(body.get("defId", "")), body.get("value", ""))
    return session_view(session)


@measure_bp.route("/session/signing", methods=["POST"])
def open_signing():
    session = _session()
    session.open_signing()
    view = session_view(session)
    view["signers"] = current_app.config["SIGNER_ROSTER"].names()
    return view


@measure_bp.route("/session/signer", methods=["POST"])
def choose_signer():
    session = _session()
    session.choose_signer(str(_body().get("name", "")))
    return session_view(session)


@measure_bp.route("/session/submit", methods=["POST"])
def submit():
    """
    Deliver the card.

    On rejection the order is back in the active list and the session is
    still signing, so the operator can retry.
    """
    session = _session()
    submission_service = current_app.config["SUBMISSION_SERVICE"]

    payload = submission_service.submit(session)
    logger.info(f"Card for order {payload.order_id} delivered")
    return session_view(session)


@measure_bp.route("/session/ack", methods=["POST"])
def acknowledge():
    session = _session()
    session.acknowledge()
    return session_view(session)


@measure_bp.route("/session/cancel", methods=["POST"])
def cancel():
    session = _session()
    session.cancel()
    return session_view(session)


@measure_bp.route("/signers", methods=["GET"])
def list_signers():
    return {"signers": current_app.config["SIGNER_ROSTER"].names()}


@measure_bp.route("/signers", methods=["POST"])
def add_signer():
    roster = current_app.config["SIGNER_ROSTER"]
    try:
        name = roster.add(str(_body().get("name", "")))
    except ValueError as e:
        return {"error": str(e)}, 400
    return {"added": name, "signers": roster.names()}, 201
