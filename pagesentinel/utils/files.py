"""Small filesystem helpers."""

from __future__ import annotations

from pathlib import Path


def read_list_file(path: Path) -> set[str]:
    """Load a list file, ignoring comments and empty lines."""
    items: set[str] = set()
    for line in Path(path).read_text().splitlines():
        value = line.strip()
        if value and not value.startswith("#"):
            items.add(value.lower())
    return items


def atomic_write_text(path: Path, content: str) -> None:
    """Write text to disk via a temp file so readers never see a partial file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(content)
    tmp_path.replace(path)
