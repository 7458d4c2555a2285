from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path

from mclauncher import __version__ as MCLAUNCHER_VERSION
from mclauncher.common.config import (
    MIRROR_PRESETS,
    RuntimeConfig,
    default_config_path,
    load_runtime_config,
    save_runtime_config,
)
from mclauncher.common.errors import LauncherError
from mclauncher.common.logging_utils import configure_logging
from mclauncher.common.types import VersionType
from mclauncher.launcher.asset_installer import InstallerProgress
from mclauncher.launcher.install_service import InstallService


log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mclauncher", description="Block game installer")
    parser.add_argument("--version", action="version", version=f"%(prog)s {MCLAUNCHER_VERSION}")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.toml.")
    parser.add_argument("--log-level", default="INFO", help="Log level.")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init", help="Write a default config.toml next to the game directory.")

    list_cmd = sub.add_parser("list", help="List versions from the version manifest.")
    list_cmd.add_argument("type", choices=[t.value for t in VersionType], help="Which versions to list.")

    account = sub.add_parser("account", help="Set the offline player name.")
    account.add_argument("name")

    build = sub.add_parser("build", help="Install the configured (or given) version.")
    build.add_argument("version", nargs="?", default=None)

    mirror = sub.add_parser("set-mirror", help="Switch download mirrors.")
    mirror.add_argument("preset", choices=sorted(MIRROR_PRESETS))
    return parser


def _print_progress(progress: InstallerProgress) -> None:
    print(progress.message, flush=True)


def _cmd_init(config_path: Path, config: RuntimeConfig) -> None:
    if config_path.exists():
        log.warning("Overwriting existing config at %s", config_path)
    save_runtime_config(config_path, config)
    print("Initialized empty game directory")


def _cmd_list(config: RuntimeConfig, version_type: VersionType) -> None:
    with InstallService(config) as service:
        for version_id in service.list_versions(version_type):
            print(version_id)


def _cmd_build(config_path: Path, config: RuntimeConfig, version: str | None) -> None:
    if version:
        config = replace(config, game_version=version)
        save_runtime_config(config_path, config)
        print(f"Set version to {version}")
    with InstallService(config.with_env_overrides()) as service:
        report = service.install(progress_callback=_print_progress)
    log.info(
        "Installed %s: %d objects (%d downloaded, %d present)",
        config.game_version,
        report.total,
        report.downloaded,
        report.skipped,
    )


def _config_for_command(command: str, config_path: Path) -> RuntimeConfig:
    if command == "init":
        return RuntimeConfig.default(config_path.resolve().parent)
    return load_runtime_config(config_path)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config_path: Path = args.config if args.config is not None else default_config_path()

    try:
        config = _config_for_command(args.command, config_path)
    except LauncherError as exc:
        # No game_dir is known yet, so logs land beside the config file.
        configure_logging(config_path.resolve().parent / "logs", level=args.log_level)
        log.error("%s failed: %s", args.command, exc)
        return 1
    configure_logging(config.paths.logs_dir, level=args.log_level)

    try:
        if args.command == "init":
            _cmd_init(config_path, config)
        elif args.command == "list":
            _cmd_list(config.with_env_overrides(), VersionType(args.type))
        elif args.command == "account":
            save_runtime_config(config_path, replace(config, user_name=args.name))
            print(f"Set account name to {args.name}")
        elif args.command == "build":
            _cmd_build(config_path, config, args.version)
        elif args.command == "set-mirror":
            save_runtime_config(config_path, replace(config, mirror=MIRROR_PRESETS[args.preset]))
            print(f"Set {args.preset} mirror")
    except LauncherError as exc:
        log.exception("%s failed: %s", args.command, exc)
        return 1
    except Exception as exc:
        log.exception("%s failed unexpectedly: %s", args.command, exc)
        return 1
    return 0
