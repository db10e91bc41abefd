"""Download and swap binaries from GitHub releases.

Finds the release artifact matching the local platform, checks that the
binary inside actually runs, and atomically swaps it with an installed
executable, rolling back if the swap cannot complete.
"""

__version__ = "0.1.0"

from binswap.errors import (  # noqa: E402
    BackupError,
    BinswapError,
    DoubleFailureError,
    FetchError,
    HealthCheckError,
    InstallError,
    NotFoundError,
    SwapError,
    VersionResolutionError,
)
from binswap.models import UpdateRequest, UpdateResult, UpdateStatus  # noqa: E402
from binswap.updater import Updater, builder  # noqa: E402

__all__ = [
    "BackupError",
    "BinswapError",
    "DoubleFailureError",
    "FetchError",
    "HealthCheckError",
    "InstallError",
    "NotFoundError",
    "SwapError",
    "UpdateRequest",
    "UpdateResult",
    "UpdateStatus",
    "Updater",
    "VersionResolutionError",
    "__version__",
    "builder",
]
