"""Constants for bitrot."""

# Per-user state directory (under the home directory)
STATE_DIR_NAME = ".bitrot"
STATE_DIR_MODE = 0o770

# State files (inside the state directory)
STATE_FILE_PREFIX = "bitrot_"
STATE_FILE_SUFFIX = ".db"
CONFIG_FILE = "config.yaml"

# Environment override for the state directory
STATE_DIR_ENV = "BITROT_STATE_DIR"

# Persisted state format
STATE_FORMAT = "bitrot-state"
STATE_FORMAT_VERSION = 1

# Read size used while fingerprinting
CHUNK_SIZE = 1024 * 1024

# Version
BITROT_VERSION = "0.1.0"
