"""Lightweight internationalisation module for SONAR.

Thread-safe, dictionary-based i18n that ships English and German
translations for every UI string used by the dial application.

Usage::

    from localization import t, set_language, get_language

    set_language("de")
    print(t("gui.heading"))     # "KURS"
    print(t("compass.east"))    # "O"
"""

from __future__ import annotations

import threading
from typing import Dict

# ---------------------------------------------------------------------------
# Internal state (thread-safe)
# ---------------------------------------------------------------------------
_lock = threading.Lock()
_current_language: str = "en"

# ---------------------------------------------------------------------------
# Translation tables
# ---------------------------------------------------------------------------
_translations: Dict[str, Dict[str, str]] = {
    "en": {
        # ── Window ───────────────────────────────────────────────────
        "app.title":                        "SONAR",
        "app.subtitle":                     "Sensor-Oriented Navigation And Radar",

        # ── GUI labels ───────────────────────────────────────────────
        "gui.heading":                      "HEADING",
        "gui.sweep":                        "SWEEP",
        "gui.points":                       "POINTS",
        "gui.variant":                      "DIAL",
        "gui.sonar":                        "Sonar",
        "gui.plain":                        "Plain",
        "gui.compass":                      "Compass",
        "gui.start":                        "Start sweep",
        "gui.stop":                         "Stop sweep",
        "gui.shuffle":                      "New random points",
        "gui.log":                          "LOG",
        "gui.no_sensors":                   "No orientation sensors – detection disabled",

        # ── Compass rose ─────────────────────────────────────────────
        "compass.north":                    "N",
        "compass.east":                     "E",
        "compass.south":                    "S",
        "compass.west":                     "W",
    },
    "de": {
        # ── Window ───────────────────────────────────────────────────
        "app.title":                        "SONAR",
        "app.subtitle":                     "Sensorgestützte Navigation und Radar",

        # ── GUI labels ───────────────────────────────────────────────
        "gui.heading":                      "KURS",
        "gui.sweep":                        "ABTASTUNG",
        "gui.points":                       "PUNKTE",
        "gui.variant":                      "ANZEIGE",
        "gui.sonar":                        "Sonar",
        "gui.plain":                        "Schlicht",
        "gui.compass":                      "Kompass",
        "gui.start":                        "Abtastung starten",
        "gui.stop":                         "Abtastung stoppen",
        "gui.shuffle":                      "Neue Zufallspunkte",
        "gui.log":                          "PROTOKOLL",
        "gui.no_sensors":                   "Keine Lagesensoren – Erkennung deaktiviert",

        # ── Compass rose ─────────────────────────────────────────────
        "compass.north":                    "N",
        "compass.east":                     "O",
        "compass.south":                    "S",
        "compass.west":                     "W",
    },
}


def set_language(lang: str) -> None:
    """Set the active language (e.g. ``"en"`` or ``"de"``)."""
    if lang not in _translations:
        raise ValueError(
            f"Unsupported language '{lang}'. "
            f"Available: {', '.join(sorted(_translations))}"
        )
    global _current_language
    with _lock:
        _current_language = lang


def get_language() -> str:
    """Return the currently active language code."""
    with _lock:
        return _current_language


def t(key: str) -> str:
    """Return the translated string for *key* in the current language.

    Falls back to English, then to the raw *key* so a missing
    translation shows up in the UI instead of raising.
    """
    with _lock:
        lang = _current_language

    table = _translations.get(lang, {})
    if key in table:
        return table[key]

    en_table = _translations.get("en", {})
    if key in en_table:
        return en_table[key]

    return key
