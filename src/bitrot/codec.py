"""Encoding and decoding of persisted tree states.

The on-disk format is a UTF-8 JSON document::

    {
      "entries": [{"digest": "sha256:...", "mtime": 1.5, "path": "a.txt", "size": 5}],
      "format": "bitrot-state",
      "root": "/abs/root",
      "version": 1
    }

Entries are sorted by path and keys are sorted, so the same state always
encodes to the same bytes. Any other format marker or version is rejected
with DecodeError rather than guessed at.
"""

import json
from typing import Any, List, Optional, Union
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

from .constants import STATE_FORMAT, STATE_FORMAT_VERSION
from .core import TreeEntry, TreeState
from .errors import DecodeError


class StateDocument(BaseModel):
    """Schema of a persisted state file."""

    model_config = ConfigDict(extra="forbid")

    format: str
    version: int
    root: str
    entries: List[TreeEntry]


def encode_state(state: TreeState) -> bytes:
    """Deterministically encode a tree state."""
    doc = StateDocument(
        format=STATE_FORMAT,
        version=STATE_FORMAT_VERSION,
        root=state.root,
        entries=list(state.iter_sorted()),
    )
    text = json.dumps(doc.model_dump(), sort_keys=True, indent=1, separators=(",", ": "))
    return (text + "\n").encode("utf-8")


def _first_error(exc: ValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(part) for part in err["loc"])
    return f"{loc}: {err['msg']}" if loc else err["msg"]


def decode_state(data: bytes, source: Optional[Union[str, Path]] = None) -> TreeState:
    """Decode bytes produced by encode_state.

    Args:
        data: Raw state file content
        source: Where the bytes came from, for error messages

    Raises:
        DecodeError: If the data is empty, truncated, not this format, of an
            unsupported version, or structurally invalid
    """
    if not data:
        raise DecodeError("state is empty", source)

    try:
        raw: Any = json.loads(data.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise DecodeError(f"not valid UTF-8 ({e.reason})", source) from e
    except json.JSONDecodeError as e:
        raise DecodeError(f"malformed or truncated JSON ({e.msg} at line {e.lineno})", source) from e

    if not isinstance(raw, dict):
        raise DecodeError("top-level value is not an object", source)
    if raw.get("format") != STATE_FORMAT:
        raise DecodeError(f"not a bitrot state file (format={raw.get('format')!r})", source)
    if raw.get("version") != STATE_FORMAT_VERSION:
        raise DecodeError(
            f"unsupported state version {raw.get('version')!r} "
            f"(this version reads version {STATE_FORMAT_VERSION})",
            source,
        )

    try:
        doc = StateDocument.model_validate(raw)
    except ValidationError as e:
        raise DecodeError(f"invalid state: {_first_error(e)}", source) from e

    state = TreeState(root=doc.root)
    for entry in doc.entries:
        if entry.path in state:
            raise DecodeError(f"duplicate entry for {entry.path}", source)
        state.add(entry)
    return state
