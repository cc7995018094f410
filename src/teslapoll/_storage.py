"""JSON persistence helpers for the state files.

Every JSON state file is replaced atomically (temp file in the same
directory, then ``os.replace``) so a crash or a concurrent reader never sees
a partially written file. Load-modify-persist sequences are *not* locked
across processes; teslapoll assumes a single running instance.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

_logger = logging.getLogger(__name__)


def read_json(path: Path) -> Any | None:
    """Load a JSON file, returning ``None`` when missing or unreadable."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError:
        _logger.warning("Could not read %s", path, exc_info=True)
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        _logger.warning("Ignoring invalid JSON in %s", path)
        return None


def write_json_atomic(path: Path, obj: Any) -> None:
    """Write *obj* as JSON to *path*, replacing the file atomically."""
    parent = path.parent
    parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(obj, indent=2)
    with tempfile.NamedTemporaryFile("w", dir=parent, delete=False, encoding="utf-8", suffix=".tmp") as tf:
        tmp_name = tf.name
        tf.write(payload)
    try:
        os.replace(tmp_name, path)
    except OSError:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def append_json_line(path: Path, obj: Any) -> None:
    """Append *obj* as one JSON line to *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(obj, separators=(",", ":")) + "\n")
