from __future__ import annotations

from pathlib import Path

# Package root is 1 level up from this file (tryon/core/paths.py -> tryon)
PACKAGE_ROOT = Path(__file__).parent.parent

# Static configuration shipped with the package
DATA_DIR = PACKAGE_ROOT / "data"


def get_data_path(filename: str = "") -> Path:
    """Get path to file in tryon/data directory.

    Args:
        filename: Optional filename to append to data directory path

    Returns:
        Path object pointing to tryon/data or tryon/data/filename
    """
    if filename:
        return DATA_DIR / filename
    return DATA_DIR
