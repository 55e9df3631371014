"""Application paths configuration."""

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppPaths:
    db_path: Path
    config_path: Path
    snapshot_path: Path

    @classmethod
    def default(cls) -> "AppPaths":
        home = Path.home()
        data_home = Path(os.environ.get("XDG_DATA_HOME", str(home / ".local" / "share")))
        state_home = Path(os.environ.get("XDG_STATE_HOME", str(home / ".local" / "state")))

        return cls(
            db_path=data_home / "winpager" / "items.db",
            config_path=Path("settings.yml"),
            snapshot_path=state_home / "winpager" / "snapshots.json",
        )
