"""Configuration helpers."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

import yaml

from .constants import CONFIG_FILE, STATE_DIR_ENV, STATE_DIR_NAME
from .errors import InvalidConfigError, StateDirError

DECODE_ERROR_POLICIES = ("abort", "reset")


@dataclass
class BitrotConfig:
    """Settings shared by every scan, read from <state_dir>/config.yaml."""

    exclude: List[str] = field(default_factory=list)
    ignore: List[str] = field(default_factory=list)
    # What to do when the stored state cannot be decoded: "abort" (default)
    # or "reset" to start over as if this were a first run.
    decode_error: str = "abort"


def resolve_state_dir(
    cli_value: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Path:
    """Resolve the state directory: CLI flag > $BITROT_STATE_DIR > ~/.bitrot.

    Raises:
        StateDirError: If the home directory cannot be determined
    """
    if cli_value is not None:
        return Path(cli_value).expanduser().absolute()

    environ = os.environ if environ is None else environ
    env_value = environ.get(STATE_DIR_ENV)
    if env_value:
        return Path(env_value).expanduser().absolute()

    try:
        home = Path.home()
    except (KeyError, RuntimeError) as e:
        raise StateDirError(f"Unable to get information for current user: {e}") from e
    return home / STATE_DIR_NAME


def _string_list(data: dict, key: str, cfg_path: Path) -> List[str]:
    value = data.get(key, [])
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise InvalidConfigError(cfg_path, f"'{key}' must be a list of strings")
    return value


def load_config(state_dir: Path) -> BitrotConfig:
    """Load configuration from <state_dir>/config.yaml if present.

    Raises:
        InvalidConfigError: If the file exists but is not valid
    """
    cfg_path = state_dir / CONFIG_FILE
    if not cfg_path.exists():
        return BitrotConfig()

    try:
        data = yaml.safe_load(cfg_path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        raise InvalidConfigError(cfg_path, str(e)) from e

    if not isinstance(data, dict):
        raise InvalidConfigError(cfg_path, "expected a mapping at top level")

    decode_error = data.get("decode_error", "abort")
    if decode_error not in DECODE_ERROR_POLICIES:
        raise InvalidConfigError(
            cfg_path,
            f"decode_error must be one of {', '.join(DECODE_ERROR_POLICIES)}, got {decode_error!r}",
        )

    return BitrotConfig(
        exclude=_string_list(data, "exclude", cfg_path),
        ignore=_string_list(data, "ignore", cfg_path),
        decode_error=decode_error,
    )
