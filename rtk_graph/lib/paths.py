#!/usr/bin/env python3
"""
paths.py

Centralized path and runtime configuration for the RTK graph scripts.
All scripts should import paths from this module rather than defining them locally.

Defaults can be overridden through environment variables, optionally kept in
a .env file at the project root:

    RTK_DATA_DIR            directory holding kanji.csv, primitives.csv and
                            jlpt-kanji-mapping.json
    RTK_REPORTS_DIR         directory for generated graph/tree documents
    RTK_MAX_DEPTH           default component tree depth
    RTK_REFERERS_PAGE_SIZE  default number of referers per page
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import RTKConfigError

# ---------------------------------------------------------------------------
# Base Directories
# ---------------------------------------------------------------------------

LIB_DIR = Path(__file__).resolve().parent
PACKAGE_DIR = LIB_DIR.parent
PROJECT_ROOT = PACKAGE_DIR.parent

ENV_FILE = PROJECT_ROOT / ".env"

# ---------------------------------------------------------------------------
# Source Data (External Datasets)
# ---------------------------------------------------------------------------

DATA_DIR = PROJECT_ROOT / "data"

# Heisig RTK index (cyphar/heisig-rtk-index)
KANJI_CSV_NAME = "kanji.csv"
PRIMITIVES_CSV_NAME = "primitives.csv"

# Kanji -> JLPT level mapping
JLPT_MAPPING_NAME = "jlpt-kanji-mapping.json"

KANJI_CSV_PATH = DATA_DIR / KANJI_CSV_NAME
PRIMITIVES_CSV_PATH = DATA_DIR / PRIMITIVES_CSV_NAME
JLPT_MAPPING_PATH = DATA_DIR / JLPT_MAPPING_NAME

# ---------------------------------------------------------------------------
# Output Directories
# ---------------------------------------------------------------------------

REPORTS_DIR = PROJECT_ROOT / "reports"

GRAPH_DOCUMENT_NAME = "rtk-graph.json"
MISSING_MNEMONICS_NAME = "missing-mnemonics.txt"

# ---------------------------------------------------------------------------
# Tree Defaults
# ---------------------------------------------------------------------------

DEFAULT_MAX_DEPTH = 5
DEFAULT_REFERERS_PAGE_SIZE = 10
MORE_REFERERS_PAGE_SIZE = 5


@dataclass(frozen=True)
class RTKConfig:
    """Resolved runtime configuration."""
    data_dir: Path = DATA_DIR
    reports_dir: Path = REPORTS_DIR
    max_depth: int = DEFAULT_MAX_DEPTH
    referers_page_size: int = DEFAULT_REFERERS_PAGE_SIZE

    @property
    def kanji_csv_path(self) -> Path:
        return self.data_dir / KANJI_CSV_NAME

    @property
    def primitives_csv_path(self) -> Path:
        return self.data_dir / PRIMITIVES_CSV_NAME

    @property
    def jlpt_mapping_path(self) -> Path:
        return self.data_dir / JLPT_MAPPING_NAME


def _int_setting(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RTKConfigError(f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise RTKConfigError(f"{name} must be >= 0, got {value}")
    return value


def load_config(env_file: Optional[Path] = ENV_FILE) -> RTKConfig:
    """
    Load configuration from the environment (and an optional .env file).

    Variables already present in the process environment win over the
    .env file.

    Args:
        env_file: Path to a .env file; ignored if None or missing

    Returns:
        RTKConfig with defaults filled in for unset variables
    """
    if env_file is not None and env_file.exists():
        load_dotenv(env_file, override=False)

    data_dir = os.environ.get("RTK_DATA_DIR")
    reports_dir = os.environ.get("RTK_REPORTS_DIR")

    return RTKConfig(
        data_dir=Path(data_dir) if data_dir else DATA_DIR,
        reports_dir=Path(reports_dir) if reports_dir else REPORTS_DIR,
        max_depth=_int_setting("RTK_MAX_DEPTH", DEFAULT_MAX_DEPTH),
        referers_page_size=_int_setting(
            "RTK_REFERERS_PAGE_SIZE", DEFAULT_REFERERS_PAGE_SIZE
        ),
    )
