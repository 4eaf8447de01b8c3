"""
Lab result file paths.

A lab result stores its attachments in one text field.  The current
format is a JSON array of server-relative paths; rows written by older
clients hold one bare path.  :func:`decode_file_paths` is the only place
that field is parsed, on the client and on the server alike.
"""
from __future__ import annotations

import json
from typing import Iterable, List, Optional, Union


def _clean(items: Iterable) -> List[str]:
    return [str(item).strip() for item in items if isinstance(item, str) and item.strip()]


def decode_file_paths(raw: Union[str, list, None]) -> List[str]:
    """Return the attachment paths held in ``raw``.

    >>> decode_file_paths('["uploads/a.pdf", "uploads/b.png"]')
    ['uploads/a.pdf', 'uploads/b.png']
    >>> decode_file_paths('uploads/a.pdf')
    ['uploads/a.pdf']
    >>> decode_file_paths(None)
    []
    """
    if raw is None:
        return []
    if isinstance(raw, list):
        return _clean(raw)
    text = str(raw).strip()
    if not text or text == '[]':
        return []
    if text.startswith('['):
        try:
            value = json.loads(text)
        except ValueError:
            return [text]
        if isinstance(value, list):
            return _clean(value)
        return [text]
    return [text]


def encode_file_paths(paths: Iterable[str]) -> Optional[str]:
    """JSON array for one or more paths, ``None`` when there are none."""
    cleaned = _clean(list(paths))
    if not cleaned:
        return None
    return json.dumps(cleaned)


def file_url(base_url: str, path: str) -> str:
    """Absolute URL of a stored file for display or download."""
    if path.startswith(('http://', 'https://')):
        return path
    return f"{base_url.rstrip('/')}/media/{path.lstrip('/')}"
