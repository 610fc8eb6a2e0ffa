"""Atomic file writes shared by the config stores."""

import tempfile
from pathlib import Path


def write_atomic(path: Path, content: str) -> None:
    """Write text atomically via temp file + rename in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(
        suffix=path.suffix or ".tmp",
        prefix=f"{path.stem}_",
        dir=path.parent,
    )
    try:
        with open(fd, "w", encoding="utf-8") as f:
            f.write(content)
        Path(tmp).replace(path)
    except Exception:
        Path(tmp).unlink(missing_ok=True)
        raise
