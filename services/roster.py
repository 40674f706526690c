"""
Signer roster.

The list of operator names offered when signing a card. Storage is an
injected key-value collaborator (RosterStore) so the roster survives
restarts without living in global state:

    InMemoryRosterStore  - tests and stations without a writable disk
    JsonFileRosterStore  - JSON list in a file (ROSTER_FILE)
"""

from __future__ import annotations

import html
import json
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, List, Optional

import bleach

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

MAX_NAME_LENGTH = 40


def sanitize_signer_name(name: str) -> str:
    """Strip markup and whitespace from a typed name; limit its length."""
    if not name:
        return ""
    # clean() also escapes "&" and "<"; names are stored as plain text
    text = html.unescape(bleach.clean(str(name), tags=[], strip=True)).strip()
    return text[:MAX_NAME_LENGTH]


class RosterStore(ABC):
    """Key-value collaborator holding the list of signer names."""

    @abstractmethod
    def get_names(self) -> Optional[List[str]]:
        """Stored names, or None if nothing was ever stored."""

    @abstractmethod
    def set_names(self, names: List[str]) -> None:
        """Replace the stored names."""


class InMemoryRosterStore(RosterStore):

    def __init__(self, names: Optional[Iterable[str]] = None):
        self._names = list(names) if names is not None else None

    def get_names(self) -> Optional[List[str]]:
        return list(self._names) if self._names is not None else None

    def set_names(self, names: List[str]) -> None:
        self._names = list(names)


class JsonFileRosterStore(RosterStore):
    """
    Names stored as a JSON list.

    A missing or unreadable file counts as "never stored"; writes go through
    a temporary file so a crash cannot leave half a list behind.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def get_names(self) -> Optional[List[str]]:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read signer roster {self.path}: {e}")
            return None

        if not isinstance(data, list):
            logger.warning(f"Signer roster {self.path} is not a list, ignoring it")
            return None
        return [str(name) for name in data]

    def set_names(self, names: List[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(list(names), f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)


class SignerRoster:
    """
    Names offered for signing, backed by a RosterStore.

    Until something is stored the configured default names are used.
    """

    def __init__(self, store: RosterStore, default_names: Iterable[str] = ()):
        self._store = store
        self._defaults = [n for n in (sanitize_signer_name(d) for d in default_names) if n]
        self._lock = threading.Lock()

    def names(self) -> List[str]:
        stored = self._store.get_names()
        return list(self._defaults) if stored is None else stored

    def add(self, name: str) -> str:
        """
        Add a name (no duplicates).

        Returns:
            The sanitized name

        Raises:
            ValueError: If nothing is left after sanitizing
        """
        clean = sanitize_signer_name(name)
        if not clean:
            raise ValueError("Signer name is empty")

        with self._lock:
            names = self.names()
            if clean not in names:
                names.append(clean)
                self._store.set_names(names)
                logger.info(f"Signer '{clean}' added to roster")
        return clean

    def remove(self, name: str) -> bool:
        with self._lock:
            names = self.names()
            if name not in names:
                return False
            names.remove(name)
            self._store.set_names(names)
        logger.info(f"Signer '{name}' removed from roster")
        return True

    def remember(self, name: str) -> None:
        """Add the signer of a delivered card if it is new; never raises on bad input."""
        try:
            self.add(name)
        except ValueError:
            pass
        except OSError as e:
            logger.error(f"Could not store signer roster: {e}")
