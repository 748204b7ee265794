"""Configuration for Grovesmith, read from the environment and an optional ``.env`` file."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.environ.get("GROVESMITH_DATABASE_URL", "sqlite:///grovesmith.db")
SESSION_SECRET = os.environ.get("GROVESMITH_SESSION_SECRET", "change-this-session-secret")
_LOG_PATH_RAW = os.environ.get("GROVESMITH_LOG_PATH", "").strip()
LOG_PATH: Optional[Path] = Path(_LOG_PATH_RAW) if _LOG_PATH_RAW else None
HISTORY_LIMIT = int(os.environ.get("GROVESMITH_HISTORY_LIMIT", "50"))

SESSION_PRINCIPAL_KEY = "principal_id"
SESSION_PROFILE_READY_KEY = "manager_profile_ready"
PROFILE_SECTIONS = ("overview", "give", "spend", "save", "invest", "settings")

__all__ = [
    "DATABASE_URL",
    "SESSION_SECRET",
    "LOG_PATH",
    "HISTORY_LIMIT",
    "SESSION_PRINCIPAL_KEY",
    "SESSION_PROFILE_READY_KEY",
    "PROFILE_SECTIONS",
]
