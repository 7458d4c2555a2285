from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

import toml

from mclauncher.common.errors import ConfigError, InvalidUrlError, StorageError
from mclauncher.common.urls import normalize_base


CONFIG_FILE_NAME = "config.toml"
DEFAULT_GAME_VERSION = "no_game_version"


@dataclass(frozen=True)
class MirrorConfig:
    version_manifest: str
    assets: str
    client: str
    libraries: str

    def normalized(self) -> "MirrorConfig":
        return MirrorConfig(
            version_manifest=normalize_base(self.version_manifest),
            assets=normalize_base(self.assets),
            client=normalize_base(self.client),
            libraries=normalize_base(self.libraries),
        )


MIRROR_PRESETS: dict[str, MirrorConfig] = {
    "official": MirrorConfig(
        version_manifest="https://launchermeta.mojang.com/",
        assets="https://resources.download.minecraft.net/",
        client="https://launcher.mojang.com/",
        libraries="https://libraries.minecraft.net/",
    ),
    "bmclapi": MirrorConfig(
        version_manifest="https://bmclapi2.bangbang93.com/",
        assets="https://bmclapi2.bangbang93.com/assets/",
        client="https://bmclapi2.bangbang93.com/",
        libraries="https://bmclapi2.bangbang93.com/maven/",
    ),
}


@dataclass(frozen=True)
class GamePaths:
    game_dir: Path
    versions_dir: Path
    assets_dir: Path
    indexes_dir: Path
    objects_dir: Path
    logs_dir: Path

    @classmethod
    def from_game_dir(cls, game_dir: Path | str) -> "GamePaths":
        root = Path(game_dir)
        return cls(
            game_dir=root,
            versions_dir=root / "versions",
            assets_dir=root / "assets",
            indexes_dir=root / "assets" / "indexes",
            objects_dir=root / "assets" / "objects",
            logs_dir=root / "logs",
        )

    def version_file(self, version_id: str) -> Path:
        return self.versions_dir / version_id / f"{version_id}.json"

    def index_file(self, index_id: str) -> Path:
        return self.indexes_dir / f"{index_id}.json"

    def object_path(self, object_hash: str) -> Path:
        return self.objects_dir / object_hash[:2] / object_hash


@dataclass(frozen=True)
class RuntimeConfig:
    game_dir: str
    mirror: MirrorConfig = field(default_factory=lambda: MIRROR_PRESETS["official"])
    game_version: str = DEFAULT_GAME_VERSION
    max_memory_size: int = 5000
    window_width: int = 854
    window_height: int = 480
    user_name: str = "no_name"
    user_type: str = "offline"
    java_path: str = "/usr/bin/java"
    user_agent: str = "mc_launcher"
    connect_timeout_seconds: int = 10
    read_timeout_seconds: int = 60
    max_attempts: int = 3
    retry_backoff_seconds: float = 0.5

    @classmethod
    def default(cls, game_dir: Path | str) -> "RuntimeConfig":
        return cls(game_dir=str(game_dir))

    @property
    def paths(self) -> GamePaths:
        return GamePaths.from_game_dir(self.game_dir)

    def with_env_overrides(self, env: Mapping[str, str] | None = None) -> "RuntimeConfig":
        env_map = env if env is not None else os.environ
        overrides: dict[str, Any] = {}
        for key, name in (
            ("MCLAUNCHER_MAX_ATTEMPTS", "max_attempts"),
            ("MCLAUNCHER_CONNECT_TIMEOUT", "connect_timeout_seconds"),
            ("MCLAUNCHER_READ_TIMEOUT", "read_timeout_seconds"),
        ):
            raw = env_map.get(key, "").strip()
            if not raw:
                continue
            try:
                overrides[name] = int(raw)
            except ValueError as exc:
                raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc
        return replace(self, **overrides) if overrides else self


_LAUNCH_FIELDS = (
    "game_version",
    "game_dir",
    "max_memory_size",
    "window_width",
    "window_height",
    "user_name",
    "user_type",
    "java_path",
)
_NETWORK_FIELDS = (
    "user_agent",
    "connect_timeout_seconds",
    "read_timeout_seconds",
    "max_attempts",
    "retry_backoff_seconds",
)


def default_config_path(env: Mapping[str, str] | None = None) -> Path:
    env_map = env if env is not None else os.environ
    override = env_map.get("MCLAUNCHER_CONFIG", "").strip()
    if override:
        return Path(override)
    return Path.cwd() / CONFIG_FILE_NAME


def config_to_dict(config: RuntimeConfig) -> dict[str, Any]:
    data: dict[str, Any] = {name: getattr(config, name) for name in _LAUNCH_FIELDS}
    data["mirror"] = asdict(config.mirror)
    data["network"] = {name: getattr(config, name) for name in _NETWORK_FIELDS}
    return data


def config_from_dict(raw: Mapping[str, Any]) -> RuntimeConfig:
    missing = [k for k in ("game_dir", "mirror") if k not in raw]
    if missing:
        raise ConfigError(f"Config missing fields: {missing}")

    mirror_raw = raw["mirror"]
    if not isinstance(mirror_raw, Mapping):
        raise ConfigError("Config [mirror] must be a table.")
    mirror_missing = [k for k in ("version_manifest", "assets") if k not in mirror_raw]
    if mirror_missing:
        raise ConfigError(f"Config [mirror] missing fields: {mirror_missing}")

    defaults = RuntimeConfig.default(str(raw["game_dir"]))
    fallback_mirror = defaults.mirror
    try:
        mirror = MirrorConfig(
            version_manifest=str(mirror_raw["version_manifest"]),
            assets=str(mirror_raw["assets"]),
            client=str(mirror_raw.get("client", fallback_mirror.client)),
            libraries=str(mirror_raw.get("libraries", fallback_mirror.libraries)),
        ).normalized()
    except InvalidUrlError as exc:
        raise ConfigError(f"Invalid mirror URL in config: {exc}") from exc

    values: dict[str, Any] = {}
    for name in _LAUNCH_FIELDS:
        if name in raw:
            values[name] = raw[name]
    network = raw.get("network", {})
    if not isinstance(network, Mapping):
        raise ConfigError("Config [network] must be a table.")
    for name in _NETWORK_FIELDS:
        if name in network:
            values[name] = network[name]

    try:
        return replace(
            defaults,
            mirror=mirror,
            game_version=str(values.get("game_version", defaults.game_version)),
            game_dir=str(values.get("game_dir", defaults.game_dir)),
            max_memory_size=int(values.get("max_memory_size", defaults.max_memory_size)),
            window_width=int(values.get("window_width", defaults.window_width)),
            window_height=int(values.get("window_height", defaults.window_height)),
            user_name=str(values.get("user_name", defaults.user_name)),
            user_type=str(values.get("user_type", defaults.user_type)),
            java_path=str(values.get("java_path", defaults.java_path)),
            user_agent=str(values.get("user_agent", defaults.user_agent)),
            connect_timeout_seconds=int(values.get("connect_timeout_seconds", defaults.connect_timeout_seconds)),
            read_timeout_seconds=int(values.get("read_timeout_seconds", defaults.read_timeout_seconds)),
            max_attempts=max(1, int(values.get("max_attempts", defaults.max_attempts))),
            retry_backoff_seconds=float(values.get("retry_backoff_seconds", defaults.retry_backoff_seconds)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Config has an invalid value: {exc}") from exc


def load_runtime_config(path: Path) -> RuntimeConfig:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path} (run `init` first)")
    try:
        with path.open("r", encoding="utf-8-sig") as fh:
            raw = toml.load(fh)
    except toml.TomlDecodeError as exc:
        raise ConfigError(f"Config file is not valid TOML: {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigError(f"Config file is not UTF-8: {path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Config file is unreadable: {path}: {exc}") from exc
    return config_from_dict(raw)


def save_runtime_config(path: Path, config: RuntimeConfig) -> None:
    tmp = path.with_suffix(".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp.open("w", encoding="utf-8") as fh:
            toml.dump(config_to_dict(config), fh)
        tmp.replace(path)
    except OSError as exc:
        raise StorageError(f"Failed to write config {path}: {exc}") from exc
