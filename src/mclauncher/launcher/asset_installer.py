from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from mclauncher.common.config import GamePaths, RuntimeConfig
from mclauncher.common.errors import ParseError, StorageError
from mclauncher.common.types import AssetIndex, AssetIndexRef, ObjectEntry
from mclauncher.common.urls import object_url, rewrite_domain
from mclauncher.launcher.http_client import VerifiedFetcher


log = logging.getLogger(__name__)

_SHA1_RE = re.compile(r"^[0-9a-f]{40}$")


@dataclass(frozen=True)
class InstallerProgress:
    phase: str
    message: str
    object_hash: str | None = None
    done: int | None = None
    total: int | None = None


@dataclass(frozen=True)
class SyncReport:
    total: int
    downloaded: int
    skipped: int


def parse_asset_index_ref(descriptor: dict[str, Any]) -> AssetIndexRef:
    raw = descriptor.get("assetIndex")
    if not isinstance(raw, dict):
        raise ParseError("Version descriptor has no 'assetIndex' object.")
    missing = [k for k in ("id", "url", "sha1") if k not in raw]
    if missing:
        raise ParseError(f"Version descriptor assetIndex missing fields: {missing}")
    index_id = str(raw["id"]).strip()
    # The id becomes a file name under indexes/.
    if not index_id or "/" in index_id or "\\" in index_id or index_id in {".", ".."}:
        raise ParseError(f"Invalid asset index id: {raw['id']!r}")
    try:
        size = int(raw.get("size", 0))
    except (TypeError, ValueError) as exc:
        raise ParseError(f"Invalid asset index size: {raw.get('size')!r}") from exc
    return AssetIndexRef(
        id=index_id,
        url=str(raw["url"]).strip(),
        sha1=str(raw["sha1"]).strip().lower(),
        size=size,
    )


def parse_asset_index(body: bytes) -> AssetIndex:
    try:
        data = json.loads(body.decode("utf-8-sig"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise ParseError(f"Asset index is not valid JSON: {exc}") from exc
    if not isinstance(data, dict) or not isinstance(data.get("objects"), dict):
        raise ParseError("Asset index is missing the 'objects' mapping.")

    objects: dict[str, ObjectEntry] = {}
    for name, raw in data["objects"].items():
        if not isinstance(raw, dict) or "hash" not in raw:
            raise ParseError(f"Asset index entry {name!r} has no hash.")
        object_hash = str(raw["hash"]).strip().lower()
        # The hash is used as a path component, so only a well-formed digest is accepted.
        if not _SHA1_RE.match(object_hash):
            raise ParseError(f"Asset index entry {name!r} has an invalid hash: {raw['hash']!r}")
        try:
            size = int(raw.get("size", 0))
        except (TypeError, ValueError) as exc:
            raise ParseError(f"Asset index entry {name!r} has an invalid size.") from exc
        objects[str(name)] = ObjectEntry(hash=object_hash, size=size)
    return AssetIndex(objects=objects)


def write_atomic(path: Path, data: bytes) -> None:
    tmp = path.with_suffix(".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_bytes(data)
        tmp.replace(path)
    except OSError as exc:
        raise StorageError(f"Failed to write {path}: {exc}") from exc


class AssetInstaller:
    def __init__(self, fetcher: VerifiedFetcher, runtime: RuntimeConfig, paths: GamePaths | None = None):
        self.fetcher = fetcher
        self.runtime = runtime
        self.paths = paths or runtime.paths

    def _emit(
        self,
        callback: Callable[[InstallerProgress], None] | None,
        progress: InstallerProgress,
    ) -> None:
        if callback is None:
            return
        try:
            callback(progress)
        except Exception:
            log.exception("Installer progress callback failed.")

    def sync_assets(
        self,
        descriptor: dict[str, Any],
        progress_callback: Callable[[InstallerProgress], None] | None = None,
    ) -> SyncReport:
        ref = parse_asset_index_ref(descriptor)
        url = rewrite_domain(ref.url, self.runtime.mirror.version_manifest)
        log.info("get %s", url)

        body = self.fetcher.fetch_verified(url, ref.sha1)
        write_atomic(self.paths.index_file(ref.id), body)
        log.info("Stored asset index %s", ref.id)

        return self.sync_objects(parse_asset_index(body), progress_callback=progress_callback)

    def sync_objects(
        self,
        asset_index: AssetIndex,
        progress_callback: Callable[[InstallerProgress], None] | None = None,
    ) -> SyncReport:
        total = len(asset_index.objects)
        done = 0
        downloaded = 0

        for entry in asset_index.objects.values():
            target = self.paths.object_path(entry.hash)
            if target.exists():
                done += 1
                continue

            data = self.fetcher.fetch_verified(object_url(self.runtime.mirror.assets, entry.hash), entry.hash)
            write_atomic(target, data)
            done += 1
            downloaded += 1
            self._emit(
                progress_callback,
                InstallerProgress(
                    phase="object",
                    message=f"{done}/{total} install asset: {entry.hash}",
                    object_hash=entry.hash,
                    done=done,
                    total=total,
                ),
            )

        report = SyncReport(total=total, downloaded=downloaded, skipped=total - downloaded)
        log.info("Assets synced: %d total, %d downloaded, %d already present", total, downloaded, report.skipped)
        self._emit(
            progress_callback,
            InstallerProgress(phase="complete", message="assets installed", done=done, total=total),
        )
        return report
