from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from fakes import FakeSession, build_runtime, sha1
from mclauncher.common.errors import TransportError, VersionNotFound
from mclauncher.launcher.install_service import InstallService


ICON = b"0123456789"


def _scenario() -> tuple[dict[str, list], bytes, dict]:
    icon_hash = sha1(ICON)
    index_body = json.dumps({"objects": {"icon.png": {"hash": icon_hash, "size": len(ICON)}}}).encode("utf-8")
    descriptor = {
        "id": "1.20.4",
        "type": "release",
        "assetIndex": {"id": "5", "url": "https://x/5.json", "sha1": sha1(index_body), "size": len(index_body)},
    }
    manifest = {
        "latest": {"release": "1.20.4", "snapshot": "1.20.4"},
        "versions": [{"id": "1.20.4", "type": "release", "url": "https://x/1.20.4.json"}],
    }
    routes = {
        "https://meta.mirror.test/mc/game/version_manifest.json": [json.dumps(manifest).encode("utf-8")],
        "https://meta.mirror.test/1.20.4.json": [json.dumps(descriptor).encode("utf-8")],
        "https://meta.mirror.test/5.json": [index_body],
        f"https://assets.mirror.test/objects/{icon_hash[:2]}/{icon_hash}": [ICON],
    }
    return routes, index_body, descriptor


class InstallServiceTests(unittest.TestCase):
    def test_end_to_end_layout(self) -> None:
        routes, index_body, descriptor = _scenario()
        icon_hash = sha1(ICON)
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            session = FakeSession(routes)
            lines: list[str] = []
            with InstallService(build_runtime(root), session=session) as service:
                report = service.install(progress_callback=lambda p: lines.append(p.message))

            version_file = root / "versions" / "1.20.4" / "1.20.4.json"
            self.assertEqual(json.loads(version_file.read_text(encoding="utf-8")), descriptor)
            self.assertIn('\n  "id": "1.20.4"', version_file.read_text(encoding="utf-8"))
            self.assertEqual((root / "assets" / "indexes" / "5.json").read_bytes(), index_body)
            self.assertEqual((root / "assets" / "objects" / icon_hash[:2] / icon_hash).read_bytes(), ICON)
            self.assertEqual(report.downloaded, 1)
            self.assertEqual(lines, [f"1/1 install asset: {icon_hash}", "assets installed"])
            # A session passed in by the caller stays open.
            self.assertFalse(session.closed)

    def test_second_install_skips_present_objects(self) -> None:
        routes, _, _ = _scenario()
        icon_hash = sha1(ICON)
        object_url = f"https://assets.mirror.test/objects/{icon_hash[:2]}/{icon_hash}"
        with tempfile.TemporaryDirectory() as td:
            session = FakeSession(routes)
            service = InstallService(build_runtime(Path(td)), session=session)
            service.install()
            report = service.install()
            self.assertEqual(session.count(object_url), 1)
            self.assertEqual(report.skipped, 1)

    def test_descriptor_keeps_non_ascii_text(self) -> None:
        routes, _, descriptor = _scenario()
        descriptor = dict(descriptor, releaseNote="Caves & Cliffs: Höhlen und Klippen")
        routes["https://meta.mirror.test/1.20.4.json"] = [json.dumps(descriptor).encode("utf-8")]
        with tempfile.TemporaryDirectory() as td:
            InstallService(build_runtime(Path(td)), session=FakeSession(routes)).install()
            raw = (Path(td) / "versions" / "1.20.4" / "1.20.4.json").read_bytes()
            self.assertIn("Höhlen".encode("utf-8"), raw)
            self.assertNotIn(b"\\u00f6", raw)

    def test_missing_version(self) -> None:
        routes, _, _ = _scenario()
        with tempfile.TemporaryDirectory() as td:
            service = InstallService(build_runtime(Path(td), game_version="0.1"), session=FakeSession(routes))
            with self.assertRaises(VersionNotFound):
                service.install()
            self.assertFalse((Path(td) / "versions").exists())

    def test_unreachable_mirror(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            service = InstallService(build_runtime(Path(td)), session=FakeSession())
            with self.assertRaises(TransportError):
                service.install()


if __name__ == "__main__":
    unittest.main()
