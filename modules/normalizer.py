"""
Definition normalizer.

Turns an order's definition source into the canonical list of Definition
objects. This is the only place that looks at the payload shape:

    MarkupSource      -> parameter elements of the embedded request document
    StructuredSource  -> list of parameter dictionaries

Both shapes go through the same field aliases and the same numeric parser.
Lower tolerances arrive negative in some payload versions and as magnitudes
in others; both are stored as magnitudes.

If nothing usable is found the order still gets one default definition
(M1, nominal 0, +/-0.1, gdt "none") so a measurement session never starts
empty. Older stations relied on this and it must stay exactly as is.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from core.exceptions import MalformedMarkupError
from models.order import Definition, MarkupSource, Order, StructuredSource, utc_now_iso
from logging_config import get_logger
from .numeric import is_number, parse_decimal


logger = get_logger(__name__)

DEFAULT_DEFINITION = Definition(
    id="M1",
    nominal=0.0,
    upper_tol=0.1,
    lower_tol=0.1,
    gdt_type="none",
)

# Element names (lower-case, namespace stripped) that hold one parameter
PARAMETER_TAGS = {"parameter", "param", "characteristic"}

# Field aliases, lower-case; the first present alias wins
FIELD_ALIASES = {
    "id": ("id", "name"),
    "nominal": ("nominal",),
    "upper_tol": ("uppertol", "upper_tol", "upper", "utol"),
    "lower_tol": ("lowertol", "lower_tol", "lower", "ltol"),
    "gdt_type": ("gdttype", "gdt_type", "gdt", "type"),
    "description": ("description", "desc"),
}


def normalize(order: Union[Order, Dict[str, Any]]) -> Tuple[Definition, ...]:
    """
    Resolve an order's definitions into Definition objects.

    Args:
        order: Order, or a raw order payload dict

    Returns:
        Definitions in payload order, unique by id, never empty
    """
    if isinstance(order, dict):
        order = Order.from_dict(order)

    source = order.source
    if isinstance(source, MarkupSource):
        fields_list = _markup_fields(source.markup, order.id)
    elif isinstance(source, StructuredSource):
        fields_list = [_lower_keys(item) for item in source.items]
    else:
        logger.error(f"Order {order.id}: unsupported definition source {type(source).__name__}")
        fields_list = []

    definitions = _build_definitions(fields_list, order.id)

    if not definitions:
        logger.warning(f"Order {order.id}: no parameters found, using default definition M1")
        return (DEFAULT_DEFINITION,)

    logger.debug(f"Order {order.id}: normalized {len(definitions)} definitions")
    return tuple(definitions)


def parse_order_markup(markup: str, received_at: Optional[str] = None) -> Order:
    """
    Build an Order from a measurement request document.

    Accepts the full request shape (root `id` attribute, Article/Drawing
    children, nested Parameter elements) and the short test-order shape
    (<Order><Id/><Article/><Drawing/></Order>).

    Raises:
        MalformedMarkupError: If the document cannot be parsed or has no id
    """
    root = _parse_root(markup)
    if root is None:
        raise MalformedMarkupError("Order markup is not well-formed", markup)

    order_id = (
        _attr(root, "id", "requestid")
        or _child_text(root, "id", "requestid", "orderid")
    )
    if not order_id:
        raise MalformedMarkupError("Order markup has no id", markup)

    return Order(
        id=order_id,
        article_number=_child_text(root, "article", "articlenumber"),
        drawing_number=_child_text(root, "drawing", "drawingnumber"),
        source=MarkupSource(markup),
        received_at=received_at or utc_now_iso(),
    )


# =============================================================================
# INTERNALS
# =============================================================================

def _build_definitions(fields_list: Iterable[Dict[str, str]], order_id: str) -> List[Definition]:
    definitions: List[Definition] = []
    seen = set()

    for position, fields in enumerate(fields_list, start=1):
        definition = _definition_from_fields(fields, position, order_id)
        if definition.id in seen:
            logger.warning(f"Order {order_id}: duplicate definition id {definition.id} skipped")
            continue
        seen.add(definition.id)
        definitions.append(definition)

    return definitions


def _definition_from_fields(fields: Dict[str, Any], position: int, order_id: str) -> Definition:
    def_id = str(_field(fields, "id") or f"M{position}").strip()

    return Definition(
        id=def_id,
        nominal=_number_field(fields, "nominal", order_id, def_id),
        upper_tol=abs(_number_field(fields, "upper_tol", order_id, def_id)),
        lower_tol=abs(_number_field(fields, "lower_tol", order_id, def_id)),
        gdt_type=str(_field(fields, "gdt_type") or "none").strip(),
        description=str(_field(fields, "description") or "").strip(),
    )


def _field(fields: Dict[str, Any], name: str) -> Any:
    for alias in FIELD_ALIASES[name]:
        value = fields.get(alias)
        if value is not None and value != "":
            return value
    return None


def _number_field(fields: Dict[str, Any], name: str, order_id: str, def_id: str) -> float:
    raw = _field(fields, name)
    number = parse_decimal(raw)
    if is_number(number):
        return number
    if raw is not None:
        logger.warning(f"Order {order_id}/{def_id}: unreadable {name} {raw!r}, using 0")
    return 0.0


def _markup_fields(markup: str, order_id: str) -> List[Dict[str, str]]:
    root = _parse_root(markup)
    if root is None:
        logger.warning(f"Order {order_id}: embedded markup is not well-formed")
        return []

    fields_list = []
    for element in root.iter():
        if _local_name(element.tag) not in PARAMETER_TAGS:
            continue
        fields = {_local_name(key): value for key, value in element.attrib.items()}
        for child in element:
            fields.setdefault(_local_name(child.tag), (child.text or "").strip())
        fields_list.append(fields)

    return fields_list


def _parse_root(markup: str) -> Optional[ET.Element]:
    if not markup or not markup.strip():
        return None
    try:
        return ET.fromstring(markup.strip())
    except ET.ParseError as e:
        logger.debug(f"Markup parse error: {e}")
        return None


def _local_name(tag: Any) -> str:
    """Lower-case tag or attribute name without its namespace."""
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1].lower()


def _lower_keys(item: Dict[str, Any]) -> Dict[str, Any]:
    return {str(key).lower(): value for key, value in item.items()}


def _attr(element: ET.Element, *names: str) -> str:
    attrs = {_local_name(key): value for key, value in element.attrib.items()}
    for name in names:
        value = (attrs.get(name) or "").strip()
        if value:
            return value
    return ""


def _child_text(element: ET.Element, *names: str) -> str:
    for name in names:
        for child in element:
            if _local_name(child.tag) == name and (child.text or "").strip():
                return child.text.strip()
    return ""
