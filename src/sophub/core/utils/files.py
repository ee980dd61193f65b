"""File discovery and the two read primitives: UTF-8 text and base64 data URLs"""

import base64
import mimetypes
from pathlib import Path


SOP_EXTENSIONS = {'.txt', '.md', '.yaml', '.yml'}
DEFAULT_MIME = 'application/octet-stream'


def discover_files(path: Path) -> list[Path]:
    """Return sorted SOP source files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix.lower() in SOP_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.is_file() and p.suffix.lower() in SOP_EXTENSIONS)


def read_text(path: Path) -> str:
    """Read a file as UTF-8 text, dropping a leading byte-order mark if present."""
    return path.read_text(encoding='utf-8-sig')


def read_data_url(path: Path) -> str:
    """Read a binary file as a `data:<mime>;base64,<payload>` URL."""
    mime, _ = mimetypes.guess_type(path.name)
    payload = base64.b64encode(path.read_bytes()).decode('ascii')
    return f"data:{mime or DEFAULT_MIME};base64,{payload}"
