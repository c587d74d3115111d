# settings.py
"""
User-facing settings for the preset engine.

Loaded from the JSON prefs file shared with the other tools (section
"calcdex"), with environment variables taking precedence:

    POKESET_PRIORITIZE_USAGE   1/0
    POKESET_SHOWDOWN_DIR       directory with Showdown data + set dumps
    POKESET_LOG_LEVEL          DEBUG, INFO, ...
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

CONFIG_PATH = Path.home() / ".pokeset_prefs.json"

_TRUE = ("1", "true", "yes", "on")


@dataclass
class CalcdexSettings:
    prioritize_usage_stats: bool = False
    showdown_dir: Optional[str] = None
    log_level: str = "INFO"


def _load_prefs(path: Path) -> Dict[str, Any]:
    try:
        if path.exists():
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if isinstance(data, dict):
                return data
    except (OSError, ValueError) as e:
        logging.getLogger("Presets").warning(f"[settings] ignoring unreadable prefs {path}: {e}")
    return {}


def load_settings(path: Optional[Union[str, Path]] = None) -> CalcdexSettings:
    prefs = _load_prefs(Path(path) if path else CONFIG_PATH)
    section = prefs.get("calcdex") if isinstance(prefs.get("calcdex"), dict) else {}

    settings = CalcdexSettings(
        prioritize_usage_stats=bool(section.get("prioritize_usage_stats", False)),
        showdown_dir=section.get("showdown_dir") or None,
        log_level=str(section.get("log_level") or "INFO").upper(),
    )

    env_prio = os.environ.get("POKESET_PRIORITIZE_USAGE")
    if env_prio is not None:
        settings.prioritize_usage_stats = env_prio.strip().lower() in _TRUE
    if os.environ.get("POKESET_SHOWDOWN_DIR"):
        settings.showdown_dir = os.environ["POKESET_SHOWDOWN_DIR"]
    if os.environ.get("POKESET_LOG_LEVEL"):
        settings.log_level = os.environ["POKESET_LOG_LEVEL"].upper()
    return settings


def configure_logging(settings: CalcdexSettings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
