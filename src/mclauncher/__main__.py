from __future__ import annotations

from mclauncher.launcher.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
