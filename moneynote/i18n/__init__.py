"""Localization package."""

from moneynote.i18n.translations import (
    CATEGORY_LABELS,
    TRANSLATIONS,
    Language,
    Localizer,
)

__all__ = [
    "CATEGORY_LABELS",
    "TRANSLATIONS",
    "Language",
    "Localizer",
]
