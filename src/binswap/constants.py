"""Centralized constants for binswap."""

# Health check
DEFAULT_CHECK_CMD = "--help"

# Scratch workspace
SCRATCH_PREFIX = ".binswap-"
STAGING_DIR_NAME = "staging"
BACKUP_FILE_NAME = "backup-binary"

# Windows executables
WINDOWS_EXE_SUFFIX = ".exe"

# Release assets, longest suffix first so ".tar.gz" wins over ".gz"
ARCHIVE_SUFFIXES = (
    ".tar.gz",
    ".tar.xz",
    ".tar.bz2",
    ".tgz",
    ".txz",
    ".tbz2",
    ".tar",
    ".zip",
)

# Confirmation prompt answers
CONFIRM_YES = frozenset({"yes", "y"})
CONFIRM_NO = frozenset({"no", "n", ""})
