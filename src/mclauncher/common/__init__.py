from mclauncher.common.config import GamePaths, MirrorConfig, RuntimeConfig
from mclauncher.common.errors import LauncherError

__all__ = [
    "GamePaths",
    "MirrorConfig",
    "RuntimeConfig",
    "LauncherError",
]
