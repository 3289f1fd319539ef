from __future__ import annotations

import json
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from .errors import ExportError

DEFAULT_EXPORT_NAME = "coda-data"
_UNSAFE_FILENAME_CHARS = re.compile(r'[^\w\-. ]+', re.UNICODE)


def dump_json(payload: Any) -> str:
    """Serialize an export payload: 2-space indent, non-ASCII kept as-is."""
    return json.dumps(payload, indent=2, ensure_ascii=False)


def read_json_content(file_obj):
    """Read JSON content from a file-like object or a path."""
    if file_obj is None:
        raise ValueError("No file given.")

    if hasattr(file_obj, 'read'):
        if hasattr(file_obj, 'seek'):
            file_obj.seek(0)
        content = file_obj.read()
        if isinstance(content, bytes):
            content = content.decode('utf-8')
        return json.loads(content)

    path = file_obj.name if hasattr(file_obj, 'name') else file_obj
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json_file(path: Union[str, Path], payload: Any) -> None:
    """Write JSON atomically: a temp file beside ``path`` replaces it."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(dump_json(payload))
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def export_filename(name: Optional[str]) -> str:
    stem = _UNSAFE_FILENAME_CHARS.sub('', (name or '').strip()).strip(' .')
    stem = re.sub(r'\s+', '-', stem)
    if not stem:
        stem = DEFAULT_EXPORT_NAME
    if not stem.lower().endswith('.json'):
        stem += '.json'
    return stem


def write_export(payload: Any, name: Optional[str], directory: Optional[str] = None) -> str:
    """Write ``payload`` as a downloadable ``.json`` file and return its path."""
    file_name = export_filename(name)
    path = os.path.join(directory or tempfile.gettempdir(), file_name)

    try:
        text = dump_json(payload)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(text)
    except (OSError, TypeError, ValueError) as exc:
        raise ExportError(f"Error writing export file: {exc}") from exc
    return path
