"""Helper modules for the MeasureStation application."""

__all__ = [
    "i18n",
    "normalizer",
    "numeric",
    "report_xml",
    "tolerance",
]
