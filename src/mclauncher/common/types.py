from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class VersionType(str, Enum):
    ALL = "all"
    RELEASE = "release"
    SNAPSHOT = "snapshot"


@dataclass(frozen=True)
class VersionEntry:
    id: str
    type: str
    url: str


@dataclass(frozen=True)
class VersionManifest:
    latest_release: str | None
    latest_snapshot: str | None
    versions: tuple[VersionEntry, ...]

    def find(self, version_id: str) -> VersionEntry | None:
        for entry in self.versions:
            if entry.id == version_id:
                return entry
        return None


@dataclass(frozen=True)
class AssetIndexRef:
    id: str
    url: str
    sha1: str
    size: int = 0


@dataclass(frozen=True)
class ObjectEntry:
    hash: str
    size: int


@dataclass(frozen=True)
class AssetIndex:
    objects: Mapping[str, ObjectEntry] = field(default_factory=dict)
