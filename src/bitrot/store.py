"""State store: locating, reading and atomically writing per-root state files."""

import contextlib
import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Union

from .constants import CONFIG_FILE, STATE_DIR_MODE, STATE_FILE_PREFIX, STATE_FILE_SUFFIX
from .errors import StateDirError, StateWriteError
from .hashing import state_file_name

logger = logging.getLogger(__name__)


def _fsync_dir(path: Path) -> None:
    """Fsync a directory so a rename inside it is durable (best-effort)."""
    try:
        # Use O_DIRECTORY flag if available (Linux)
        flags = os.O_RDONLY
        if hasattr(os, "O_DIRECTORY"):
            flags |= os.O_DIRECTORY
        dirfd = os.open(str(path), flags)
        try:
            os.fsync(dirfd)
        finally:
            os.close(dirfd)
    except OSError:
        # Expected on Windows or filesystems that don't support directory fsync
        logger.debug("Directory fsync not supported for %s", path)


class StateStore:
    """Manages the per-user directory holding one state file per root.

    The state directory is passed in explicitly; nothing here reads the
    environment or the home directory.
    """

    def __init__(self, state_dir: Path):
        self.state_dir = Path(state_dir)

    def ensure_dir(self) -> Path:
        """Create the state directory if needed and check it is usable.

        Raises:
            StateDirError: If it cannot be created, or a non-directory
                already exists at that path
        """
        try:
            st = self.state_dir.stat()
        except FileNotFoundError:
            try:
                self.state_dir.mkdir(mode=STATE_DIR_MODE, parents=True)
            except FileExistsError:
                pass
            except OSError as e:
                raise StateDirError(f"Unable to create state directory {self.state_dir}: {e}") from e
            else:
                logger.debug("Created state directory %s", self.state_dir)
            return self.state_dir
        except OSError as e:
            raise StateDirError(f"Unable to stat state directory {self.state_dir}: {e}") from e

        if not stat.S_ISDIR(st.st_mode):
            raise StateDirError(f"A non-directory named {self.state_dir} already exists")
        if not os.access(self.state_dir, os.R_OK | os.W_OK | os.X_OK):
            raise StateDirError(f"State directory {self.state_dir} is not accessible")
        return self.state_dir

    def locate(self, root: Union[str, Path]) -> Path:
        """Return the state file location for an absolute root path."""
        return self.state_dir / state_file_name(root)

    def own_file_patterns(self) -> List[str]:
        """Anchored gitignore-style patterns for the files kept in the state directory.

        Used when the state directory is itself the scanned root.
        """
        return [
            f"/{STATE_FILE_PREFIX}*{STATE_FILE_SUFFIX}",
            f"/.{STATE_FILE_PREFIX}*{STATE_FILE_SUFFIX}.tmp-*",
            f"/{CONFIG_FILE}",
        ]

    def open_for_read(self, location: Path) -> Optional[BinaryIO]:
        """Open a state file for reading, or return None if there is none yet.

        Raises:
            StateDirError: If something other than a regular file exists at
                location, or it cannot be opened
        """
        try:
            st = location.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StateDirError(f"Unable to stat state file {location}: {e}") from e

        if not stat.S_ISREG(st.st_mode):
            raise StateDirError(f"State path {location} is not a regular file")
        try:
            return location.open("rb")
        except OSError as e:
            raise StateDirError(f"Unable to open state file {location}: {e}") from e

    @contextlib.contextmanager
    def open_for_write(self, location: Path) -> Iterator[BinaryIO]:
        """Atomically replace the state file at location.

        Yields a binary stream backed by a temp file in the same directory.
        On clean exit the temp file is fsynced and renamed over location; on
        any error it is removed and the previous state file is untouched.

        Raises:
            StateWriteError: If the temp file cannot be written or renamed
        """
        try:
            f = tempfile.NamedTemporaryFile(
                mode="wb",
                delete=False,
                dir=location.parent,
                prefix=f".{location.name}.tmp-",
                suffix="",
            )
        except OSError as e:
            raise StateWriteError(location, str(e)) from e

        tmp = Path(f.name)
        try:
            with f:
                yield f
                f.flush()
                os.fsync(f.fileno())
            # Atomic rename
            os.replace(tmp, location)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise StateWriteError(location, str(e)) from e
        except BaseException:
            # Clean up temp file on any error
            tmp.unlink(missing_ok=True)
            raise

        _fsync_dir(location.parent)

    def forget(self, root: Union[str, Path]) -> bool:
        """Delete the stored state for root. Returns True if one existed."""
        location = self.locate(root)
        try:
            location.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StateDirError(f"Unable to remove state file {location}: {e}") from e
        logger.info("Discarded stored state %s", location)
        return True
