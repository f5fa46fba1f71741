"""Custom exceptions for bitrot.

Every fatal condition raises a subclass of :class:`BitrotError` and unwinds to
the CLI, which reports it and exits non-zero. Per-file traversal problems are
not exceptions; they are logged and collected by the scanner.
"""

from pathlib import Path
from typing import Optional, Union


class BitrotError(RuntimeError):
    """Base class for all bitrot errors."""
    pass


# Configuration Errors
class ConfigError(BitrotError):
    """Base class for configuration errors."""
    pass


class InvalidRootError(ConfigError):
    """Scan root is missing, not a directory, or unreadable."""

    def __init__(self, root: Union[str, Path], reason: str):
        self.root = str(root)
        self.reason = reason
        super().__init__(f"Cannot scan '{self.root}': {reason}")


class InvalidConfigError(ConfigError):
    """Configuration file is malformed."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        super().__init__(f"Invalid configuration in {self.path}: {reason}")


# Environment Errors
class EnvironmentSetupError(BitrotError):
    """Base class for errors in the surrounding environment."""
    pass


class StateDirError(EnvironmentSetupError):
    """State directory cannot be determined, created or accessed."""
    pass


# State Errors
class DecodeError(BitrotError):
    """Persisted state is malformed, truncated, or of an unsupported format."""

    def __init__(self, reason: str, source: Optional[Union[str, Path]] = None):
        self.reason = reason
        self.source = str(source) if source is not None else None
        where = f" ({self.source})" if self.source else ""
        super().__init__(f"Unable to decode state{where}: {reason}")


class StateWriteError(BitrotError):
    """State could not be encoded or written."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = str(path)
        super().__init__(
            f"Unable to save state to {self.path}: {reason}\n"
            f"The previous state file (if any) was left untouched."
        )


class StateLifecycleError(BitrotError):
    """DirTree operations were called out of order."""
    pass
