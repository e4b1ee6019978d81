"""
File I/O for text sources and JSON results.

JSON is written to a temp file in the target directory and renamed into
place, so an interrupted write never leaves a truncated authorities file.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, List

from pydantic import BaseModel


def read_text_source(path: Path) -> str:
    """
    Read an imported text document.

    Undecodable bytes become U+FFFD rather than failing the whole import:
    a stray byte in a footer should not hide the citations in the body.

    Args:
        path: Text file path

    Returns:
        File contents

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    return path.read_text(encoding="utf-8", errors="replace")


def read_json(path: Path) -> Any:
    """
    Parse a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the JSON is invalid
    """
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json_atomic(path: Path, data: Any, indent: int = 2) -> None:
    """
    Write JSON via a temp file in the same directory, then rename.

    Args:
        path: Destination (parent directories are created)
        data: JSON-serialisable data
        indent: JSON indentation (default: 2)
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
        os.replace(temp_name, path)
    except BaseException:
        os.unlink(temp_name)
        raise


def dump_models(models: Iterable[BaseModel]) -> List[Any]:
    return [m.model_dump(mode="json") for m in models]
