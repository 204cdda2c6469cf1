"""
CDR Core: Configuration
=======================
Centralised settings for catalog locations, logging and the API surface.
Values come from the environment, optionally seeded from a project-level .env.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# ── Paths ───────────────────────────────────────────────────────────────
APP_DIR = Path(__file__).resolve().parent                      # app/
PROJECT_ROOT = APP_DIR.parent
DATA_DIR = APP_DIR / "data"

# ── Load .env ───────────────────────────────────────────────────────────
load_dotenv(PROJECT_ROOT / ".env")

# ── Catalogs ────────────────────────────────────────────────────────────
CDR_LIBRARY_PATH: str = os.getenv("CDR_LIBRARY_PATH", str(DATA_DIR / "cdr_library.json"))
TEST_LIBRARY_PATH: str = os.getenv("TEST_LIBRARY_PATH", str(DATA_DIR / "test_library.json"))

# ── Logging ─────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE: str = os.getenv("LOG_FILE", "")                     # empty = console only

# ── Encounter workflow ──────────────────────────────────────────────────
# Section in which newly matched CDRs are recorded as identified.
DEFAULT_SECTION = int(os.getenv("DEFAULT_SECTION", "1"))
MIN_SECTION = 1
MAX_SECTION = 3

# ── API ─────────────────────────────────────────────────────────────────
API_TITLE: str = os.getenv("API_TITLE", "MDM Clinical Decision Rule Service")
API_VERSION: str = os.getenv("API_VERSION", "1.0.0")
