"""
Atomic file writes for the files tabnab owns: the YAML config file and the
prompt template JSON files.

The temporary file lives in the target's directory so ``os.replace`` never
crosses a filesystem boundary.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

import structlog

logger = structlog.get_logger(__name__)


def atomic_write_text(target_path: Path, content: str, encoding: str = "utf-8") -> None:
    """Replace ``target_path`` with ``content`` so readers never see a partial file."""
    target = Path(target_path)
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding=encoding) as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_name, target)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise

    logger.debug("Wrote file", target=str(target))


def atomic_write_json(target_path: Path, data: Dict[str, Any]) -> None:
    """Write ``data`` as indented UTF-8 JSON; unserializable data raises ValueError before any write."""
    try:
        content = json.dumps(data, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Cannot serialize {Path(target_path).name}: {e}") from e

    atomic_write_text(target_path, content)
