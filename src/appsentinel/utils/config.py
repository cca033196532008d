"""Resolve user settings from ~/.appsentinel/config.json and the environment."""

from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Final

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".appsentinel"
CONFIG_FILE = CONFIG_DIR / "config.json"

RULES_ENV_VAR: Final[str] = "APPSENTINEL_RULES"
RULES_CONFIG_KEY: Final[str] = "rules_file"


@lru_cache(maxsize=1)
def load_config() -> dict[str, Any]:
    """Load configuration data from disk (cached).

    An unreadable or malformed file is logged and treated as empty.
    """
    if not CONFIG_FILE.exists():
        return {}

    try:
        data = json.loads(CONFIG_FILE.read_text(encoding="utf-8"))
    except OSError as e:
        logger.warning("Cannot read %s: %s", CONFIG_FILE, e)
        return {}
    except ValueError:
        logger.warning("Ignoring %s: not valid JSON", CONFIG_FILE)
        return {}

    if not isinstance(data, dict):
        logger.warning("Ignoring %s: expected a JSON object", CONFIG_FILE)
        return {}

    return data


def get_rules_file() -> Path | None:
    """Rule table override: $APPSENTINEL_RULES, then the ``rules_file`` key."""
    configured = os.environ.get(RULES_ENV_VAR) or load_config().get(RULES_CONFIG_KEY)
    if not configured:
        return None
    return Path(str(configured)).expanduser()
