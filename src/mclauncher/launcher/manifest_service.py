from __future__ import annotations

import logging
from typing import Any

from mclauncher.common.config import RuntimeConfig
from mclauncher.common.errors import ParseError, VersionNotFound
from mclauncher.common.types import VersionEntry, VersionManifest, VersionType
from mclauncher.common.urls import normalize_base, rewrite_domain
from mclauncher.launcher.http_client import VerifiedFetcher


log = logging.getLogger(__name__)

MANIFEST_PATH = "mc/game/version_manifest.json"


def list_versions(manifest: VersionManifest, version_type: VersionType = VersionType.ALL) -> list[str]:
    if version_type == VersionType.ALL:
        return [entry.id for entry in manifest.versions]
    return [entry.id for entry in manifest.versions if entry.type == version_type.value]


def parse_version_manifest(data: Any) -> VersionManifest:
    if not isinstance(data, dict):
        raise ParseError("Version manifest must be a JSON object.")
    raw_versions = data.get("versions")
    if not isinstance(raw_versions, list):
        raise ParseError("Version manifest is missing the 'versions' list.")

    entries: list[VersionEntry] = []
    for idx, item in enumerate(raw_versions):
        if not isinstance(item, dict):
            raise ParseError(f"Version manifest entry at index {idx} is not an object.")
        missing = [k for k in ("id", "type", "url") if k not in item]
        if missing:
            raise ParseError(f"Version manifest entry at index {idx} missing fields: {missing}")
        entries.append(VersionEntry(id=str(item["id"]), type=str(item["type"]), url=str(item["url"])))

    latest = data.get("latest") if isinstance(data.get("latest"), dict) else {}
    return VersionManifest(
        latest_release=latest.get("release"),
        latest_snapshot=latest.get("snapshot"),
        versions=tuple(entries),
    )


class ManifestResolver:
    def __init__(self, fetcher: VerifiedFetcher, runtime: RuntimeConfig):
        self.fetcher = fetcher
        self.runtime = runtime

    @property
    def manifest_url(self) -> str:
        return normalize_base(self.runtime.mirror.version_manifest) + MANIFEST_PATH

    def get_version_manifest(self) -> VersionManifest:
        url = self.manifest_url
        log.info("Fetching version manifest from %s", url)
        return parse_version_manifest(self.fetcher.get_json(url))

    def list_versions(self, version_type: VersionType = VersionType.ALL) -> list[str]:
        return list_versions(self.get_version_manifest(), version_type)

    def get_version_descriptor(self, version: str | None = None) -> dict[str, Any]:
        version_id = version or self.runtime.game_version
        entry = self.get_version_manifest().find(version_id)
        if entry is None:
            raise VersionNotFound(version_id)

        # The descriptor is parsed without a digest check; the manifest carries none we rely on.
        url = rewrite_domain(entry.url, self.runtime.mirror.version_manifest)
        log.info("Fetching version descriptor %s from %s", version_id, url)
        descriptor = self.fetcher.get_json(url)
        if not isinstance(descriptor, dict):
            raise ParseError(f"Version descriptor for {version_id} must be a JSON object.")
        return descriptor
