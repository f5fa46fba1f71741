"""Hashing utilities for content fingerprints.

File digests are computed over a single forward pass of the content, so
files of any size are hashed in constant memory.
"""

from pathlib import Path
from typing import BinaryIO, Union
import hashlib

from .constants import CHUNK_SIZE, STATE_FILE_PREFIX, STATE_FILE_SUFFIX


def compute_stream_digest(stream: BinaryIO, chunk_size: int = CHUNK_SIZE) -> str:
    """Compute SHA256 hash of everything readable from a binary stream.

    The stream is read sequentially until EOF; it is never seeked.

    Args:
        stream: Binary stream positioned at the start of the content
        chunk_size: Bytes per read

    Returns:
        SHA256 digest in format "sha256:xxxx"
    """
    sha256 = hashlib.sha256()
    for chunk in iter(lambda: stream.read(chunk_size), b""):
        sha256.update(chunk)
    return f"sha256:{sha256.hexdigest()}"


def compute_file_digest(path: Path) -> str:
    """Compute SHA256 hash of file contents.

    Simple byte-for-byte hashing - any change invalidates the digest.

    Args:
        path: Path to file to hash

    Returns:
        SHA256 digest in format "sha256:xxxx"
    """
    with path.open("rb") as f:
        return compute_stream_digest(f)


def state_file_name(root: Union[str, Path]) -> str:
    """Return the state file name for an absolute root path.

    The name is the MD5 of the root path string, so it is stable across runs
    and independent of the root's content.
    """
    hd = hashlib.md5(str(root).encode("utf-8"))
    return f"{STATE_FILE_PREFIX}{hd.hexdigest()}{STATE_FILE_SUFFIX}"


__all__ = [
    "compute_stream_digest",
    "compute_file_digest",
    "state_file_name",
]
