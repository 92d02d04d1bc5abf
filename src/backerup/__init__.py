"""backerup: backerup/__init__.py."""

from pathlib import Path


__version__ = "0.3.0"


def path_name(path: str | Path, default: str = "files") -> str:
    """Return the final segment of a path, or ``default`` when it has none."""
    name = Path(str(path).rstrip("/\\")).name
    return name or default
