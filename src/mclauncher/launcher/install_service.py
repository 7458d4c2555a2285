from __future__ import annotations

import json
import logging
from typing import Callable

import requests

from mclauncher.common.config import RuntimeConfig
from mclauncher.common.types import VersionType
from mclauncher.launcher.asset_installer import AssetInstaller, InstallerProgress, SyncReport, write_atomic
from mclauncher.launcher.http_client import VerifiedFetcher, build_session
from mclauncher.launcher.manifest_service import ManifestResolver


log = logging.getLogger(__name__)


class InstallService:
    """Installs one game version's descriptor and assets under ``game_dir``.

    One HTTP session is shared by every fetch of a run. Pass ``session`` to
    reuse an existing one; otherwise the service builds and owns its own.
    """

    def __init__(self, runtime: RuntimeConfig, session: requests.Session | None = None):
        self.runtime = runtime
        self.paths = runtime.paths
        self._owns_session = session is None
        self.session = session if session is not None else build_session(runtime)
        self.fetcher = VerifiedFetcher(self.session, runtime)
        self.resolver = ManifestResolver(self.fetcher, runtime)
        self.installer = AssetInstaller(self.fetcher, runtime, self.paths)

    def __enter__(self) -> "InstallService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def list_versions(self, version_type: VersionType = VersionType.ALL) -> list[str]:
        return self.resolver.list_versions(version_type)

    def install(self, progress_callback: Callable[[InstallerProgress], None] | None = None) -> SyncReport:
        version = self.runtime.game_version
        log.info("Installing version %s into %s", version, self.paths.game_dir)

        descriptor = self.resolver.get_version_descriptor(version)
        version_file = self.paths.version_file(version)
        write_atomic(version_file, json.dumps(descriptor, indent=2, ensure_ascii=False).encode("utf-8"))
        log.info("Wrote version descriptor %s", version_file)

        return self.installer.sync_assets(descriptor, progress_callback=progress_callback)
