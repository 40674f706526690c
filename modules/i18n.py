"""
Station labels (i18n).

Status names, geometric characteristic labels and operator messages in
Swedish (default, the shop floor language) and English, read from
translations/<lang>.json.

Keys are dotted paths into the JSON document ("status.OK"). A key missing in
the requested language falls back to Swedish, then to the key itself.

    from modules.i18n import translate, gdt_label
    translate('submit.failed', lang='en', reason='timeout')
    gdt_label('flatness')          # 'Planhet'
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = {
    'sv': {'name': 'Svenska'},
    'en': {'name': 'English'},
}

DEFAULT_LANGUAGE = 'sv'

# Label for geometric tags without a translation
GENERIC_GDT_KEY = 'dimension'

TRANSLATIONS_DIR = Path(__file__).resolve().parent.parent / 'translations'


class I18nManager:
    """Holds one JSON catalog per supported language."""

    def __init__(self, translations_dir: Optional[Path] = None):
        self.translations_dir = Path(translations_dir or TRANSLATIONS_DIR)
        self._catalogs: Dict[str, Dict[str, Any]] = {}
        self.reload()

    def reload(self) -> None:
        """Read all catalogs from disk; a missing or broken file gives an empty catalog."""
        self._catalogs = {lang: self._read(lang) for lang in SUPPORTED_LANGUAGES}

    def _read(self, lang: str) -> Dict[str, Any]:
        path = self.translations_dir / f'{lang}.json'
        try:
            with open(path, 'r', encoding='utf-8') as f:
                catalog = json.load(f)
        except FileNotFoundError:
            logger.warning(f"No translations for '{lang}' ({path})")
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Unreadable translations {path}: {e}")
            return {}

        if not isinstance(catalog, dict):
            logger.error(f"Translations {path} must be a JSON object")
            return {}
        return catalog

    def _lookup(self, key: str, lang: str) -> Optional[str]:
        node: Any = self._catalogs.get(lang, {})
        for part in key.split('.'):
            if not isinstance(node, dict):
                return None
            node = node.get(part)
        return node if isinstance(node, str) else None

    def get_translation(self, key: str, lang: str = DEFAULT_LANGUAGE, **kwargs) -> str:
        """
        Label for a dotted key, with {placeholders} filled from kwargs.

        Returns:
            The label, or the key itself if no catalog has it
        """
        text = self._lookup(key, lang)
        if text is None and lang != DEFAULT_LANGUAGE:
            text = self._lookup(key, DEFAULT_LANGUAGE)
        if text is None:
            logger.debug(f"Missing label '{key}' ({lang})")
            return key

        if not kwargs:
            return text
        try:
            return text.format(**kwargs)
        except (KeyError, IndexError) as e:
            logger.warning(f"Label '{key}' ({lang}) needs {e}")
            return text

    def has_key(self, key: str, lang: str = DEFAULT_LANGUAGE) -> bool:
        return self._lookup(key, lang) is not None


i18n_manager = I18nManager()


def translate(key: str, lang: str = DEFAULT_LANGUAGE, **kwargs) -> str:
    return i18n_manager.get_translation(key, lang, **kwargs)


def gdt_label(gdt_type: str, lang: str = DEFAULT_LANGUAGE) -> str:
    """
    Display label for a geometric characteristic tag.

    Tags are free-form ("Flatness", "true position"); anything without a
    label reads as the generic dimension label.
    """
    key = (gdt_type or '').strip().lower().replace(' ', '_')
    if key and i18n_manager.has_key(f'gdt.{key}', lang):
        return translate(f'gdt.{key}', lang)
    return translate(f'gdt.{GENERIC_GDT_KEY}', lang)


def get_supported_languages() -> Dict[str, Dict[str, str]]:
    return SUPPORTED_LANGUAGES
