"""JSON-based snapshot storage.

Keeps one paging snapshot per list-context in a single JSON file, so a list
reopens where the user left it for each sort/filter combination.
"""

import json
import logging
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Optional, Union

from winpager.domain.errors import PagingInvariantError
from winpager.domain.snapshot import PagingSnapshot

logger = logging.getLogger("WINPAGER.JsonSnapshotStore")


def context_key(list_context: Any) -> str:
    """Canonical string for a list-context, stable across runs."""
    if hasattr(list_context, "to_dict"):
        data = list_context.to_dict()
    elif is_dataclass(list_context):
        data = asdict(list_context)
    else:
        data = list_context
    return json.dumps(data, sort_keys=True)


class JsonSnapshotStore:
    """Snapshot store using a JSON file backend."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load_all(self) -> dict:
        """Load every stored snapshot from the JSON file."""
        try:
            if self.path.exists():
                with open(self.path, 'r') as f:
                    return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.error("Error loading snapshots: %s", e)
        return {}

    def _save_all(self, snapshots: dict):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w') as f:
                json.dump(snapshots, f, indent=2)
        except IOError as e:
            logger.error("Error saving snapshots: %s", e)

    def save(self, list_context: Any, snapshot: PagingSnapshot) -> None:
        snapshots = self._load_all()
        snapshots[context_key(list_context)] = snapshot.to_dict()
        self._save_all(snapshots)
        logger.debug("Saved snapshot for %s", list_context)

    def load(self, list_context: Any) -> Optional[PagingSnapshot]:
        data = self._load_all().get(context_key(list_context))
        if data is None:
            return None
        try:
            return PagingSnapshot.from_dict(data)
        except (KeyError, TypeError, ValueError, PagingInvariantError) as e:
            logger.error("Discarding unreadable snapshot for %s: %s", list_context, e)
            return None

    def clear(self) -> None:
        self._save_all({})
