from __future__ import annotations

import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from dataclasses import replace
from pathlib import Path
from unittest.mock import patch

from fakes import FakeSession, TEST_MIRROR, sha1
from mclauncher.common.config import MIRROR_PRESETS, RuntimeConfig, load_runtime_config, save_runtime_config
from mclauncher.launcher import cli


MANIFEST = {
    "latest": {"release": "1.20.4", "snapshot": "24w03a"},
    "versions": [
        {"id": "24w03a", "type": "snapshot", "url": "https://x/24w03a.json"},
        {"id": "1.20.4", "type": "release", "url": "https://x/1.20.4.json"},
    ],
}


@patch("mclauncher.launcher.cli.configure_logging")
class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)
        self.config_path = self.root / "config.toml"

    def tearDown(self) -> None:
        self._td.cleanup()

    def _run(self, *argv: str) -> tuple[int, str]:
        out = io.StringIO()
        with redirect_stdout(out):
            code = cli.main(["--config", str(self.config_path), *argv])
        return code, out.getvalue()

    def _write_test_config(self, **changes) -> None:
        config = replace(RuntimeConfig.default(self.root), mirror=TEST_MIRROR, retry_backoff_seconds=0.0)
        save_runtime_config(self.config_path, replace(config, **changes))

    def test_init_writes_defaults(self, _logging) -> None:
        code, out = self._run("init")
        self.assertEqual(code, 0)
        self.assertIn("Initialized", out)
        config = load_runtime_config(self.config_path)
        self.assertEqual(Path(config.game_dir), self.root.resolve())
        self.assertEqual(config.mirror, MIRROR_PRESETS["official"])

    def test_account_and_set_mirror(self, _logging) -> None:
        self._run("init")
        self.assertEqual(self._run("account", "alex")[0], 0)
        self.assertEqual(self._run("set-mirror", "bmclapi")[0], 0)
        config = load_runtime_config(self.config_path)
        self.assertEqual(config.user_name, "alex")
        self.assertEqual(config.mirror, MIRROR_PRESETS["bmclapi"])

    def test_missing_config_fails(self, _logging) -> None:
        code, _ = self._run("account", "alex")
        self.assertEqual(code, 1)

    def test_list_releases(self, _logging) -> None:
        self._write_test_config()
        session = FakeSession(
            {"https://meta.mirror.test/mc/game/version_manifest.json": [json.dumps(MANIFEST).encode("utf-8")]}
        )
        with patch("mclauncher.launcher.install_service.build_session", return_value=session):
            code, out = self._run("list", "release")
        self.assertEqual(code, 0)
        self.assertEqual(out.split(), ["1.20.4"])
        self.assertTrue(session.closed)

    def test_build_with_version_persists_it_and_installs(self, _logging) -> None:
        self._write_test_config()
        payload = b"icon"
        index_body = json.dumps({"objects": {"icon.png": {"hash": sha1(payload), "size": 4}}}).encode("utf-8")
        descriptor = {"assetIndex": {"id": "5", "url": "https://x/5.json", "sha1": sha1(index_body)}}
        session = FakeSession(
            {
                "https://meta.mirror.test/mc/game/version_manifest.json": [json.dumps(MANIFEST).encode("utf-8")],
                "https://meta.mirror.test/1.20.4.json": [json.dumps(descriptor).encode("utf-8")],
                "https://meta.mirror.test/5.json": [index_body],
                f"https://assets.mirror.test/objects/{sha1(payload)[:2]}/{sha1(payload)}": [payload],
            }
        )
        with patch("mclauncher.launcher.install_service.build_session", return_value=session):
            code, out = self._run("build", "1.20.4")

        self.assertEqual(code, 0)
        self.assertIn("Set version to 1.20.4", out)
        self.assertIn(f"1/1 install asset: {sha1(payload)}", out)
        self.assertTrue(out.rstrip().endswith("assets installed"))
        self.assertEqual(load_runtime_config(self.config_path).game_version, "1.20.4")
        self.assertTrue((self.root / "versions" / "1.20.4" / "1.20.4.json").exists())

    def test_build_unknown_version_returns_error(self, _logging) -> None:
        self._write_test_config(game_version="9.9")
        session = FakeSession(
            {"https://meta.mirror.test/mc/game/version_manifest.json": [json.dumps(MANIFEST).encode("utf-8")]}
        )
        with patch("mclauncher.launcher.install_service.build_session", return_value=session):
            code, _ = self._run("build")
        self.assertEqual(code, 1)

    def test_non_utf8_config_reports_failure(self, _logging) -> None:
        self.config_path.write_bytes(b'game_dir = "\xff\xfe"\n')
        code, _ = self._run("account", "x")
        self.assertEqual(code, 1)

    def test_init_into_unwritable_location_reports_failure(self, _logging) -> None:
        blocker = self.root / "not_a_dir"
        blocker.write_text("x", encoding="utf-8")
        self.config_path = blocker / "config.toml"
        code, out = self._run("init")
        self.assertEqual(code, 1)
        self.assertNotIn("Initialized", out)

    def test_unexpected_errors_are_reported(self, _logging) -> None:
        self._write_test_config()
        with patch("mclauncher.launcher.cli.InstallService", side_effect=RuntimeError("boom")):
            code, _ = self._run("list", "all")
        self.assertEqual(code, 1)

    def test_logs_go_to_game_dir(self, logging_mock) -> None:
        game_dir = self.root / "game"
        self._write_test_config(game_dir=str(game_dir))
        self.assertEqual(self._run("account", "alex")[0], 0)
        self.assertEqual(logging_mock.call_args[0][0], game_dir / "logs")


if __name__ == "__main__":
    unittest.main()
