"""Configuration for the PC Build Catalog server."""

import os
from dataclasses import dataclass
from pathlib import Path

# Server settings
HTTP_PORT = int(os.getenv("HTTP_PORT", "3000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Store location
_PACKAGE_DATA_DIR = Path(__file__).parent.parent.parent / "data"
DATA_DIR = Path(os.getenv("PCBUILD_DATA_DIR", str(_PACKAGE_DATA_DIR)))
DB_PATH = Path(os.getenv("PCBUILD_DB_PATH", str(DATA_DIR / "catalog.db")))

# Diagnostics (logs compiled plans and samples a record on empty results)
VERBOSE_DIAGNOSTICS = os.getenv("DEBUG_FILTERS", "false").strip().lower() == "true"


@dataclass(frozen=True)
class CompilerConfig:
    """Settings handed to a FilterCompiler at construction."""
    verbose_diagnostics: bool = False


def compiler_config() -> CompilerConfig:
    """Build the filter compiler configuration from the environment."""
    return CompilerConfig(verbose_diagnostics=VERBOSE_DIAGNOSTICS)
