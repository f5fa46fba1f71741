"""bitrot - detect silent data corruption in directory trees."""

from .constants import BITROT_VERSION as __version__
from .dirtree import DirTree
from .errors import BitrotError, DecodeError
from .store import StateStore

__all__ = ["__version__", "DirTree", "StateStore", "BitrotError", "DecodeError"]
