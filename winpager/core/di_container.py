"""Dependency injection container."""

from dataclasses import dataclass, field
from typing import Optional

from winpager.config import AppPaths, Settings, SettingsManager
from winpager.core.protocols import ViewportPort
from winpager.domain.list_context import ItemListContext
from winpager.infrastructure import JsonSnapshotStore
from winpager.managers import ViewportCoordinator
from winpager.services import DatabaseService, item_cursor, item_key


@dataclass
class AppContainer:
    settings: Settings
    paths: AppPaths

    _db_service: Optional[DatabaseService] = field(
        default=None, init=False, repr=False
    )
    _snapshot_store: Optional[JsonSnapshotStore] = field(
        default=None, init=False, repr=False
    )

    @property
    def db_service(self) -> DatabaseService:
        if self._db_service is None:
            self.paths.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._db_service = DatabaseService(str(self.paths.db_path))
        return self._db_service

    @property
    def snapshot_store(self) -> JsonSnapshotStore:
        if self._snapshot_store is None:
            self._snapshot_store = JsonSnapshotStore(self.paths.snapshot_path)
        return self._snapshot_store

    def create_coordinator(
        self,
        viewport: ViewportPort,
        list_context: Optional[ItemListContext] = None,
        permalink_id: Optional[str] = None,
    ) -> ViewportCoordinator:
        """Wire a coordinator over the item database.

        A permalink takes precedence over the stored snapshot for the context.
        """
        list_context = list_context or ItemListContext()
        snapshot = None if permalink_id else self.snapshot_store.load(list_context)
        return ViewportCoordinator(
            self.db_service,
            item_cursor,
            list_context,
            viewport,
            settings=self.settings.paging,
            row_key=item_key,
            permalink_id=permalink_id,
            snapshot=snapshot,
            on_snapshot=self.snapshot_store.save,
            estimate_granularity=self.settings.display.estimate_granularity,
        )

    def close(self):
        if self._db_service is not None:
            self._db_service.close()
            self._db_service = None

    @classmethod
    def create(
        cls,
        settings: Optional[Settings] = None,
        paths: Optional[AppPaths] = None,
    ) -> "AppContainer":
        paths = paths or AppPaths.default()
        return cls(
            settings=settings or SettingsManager(paths.config_path).settings,
            paths=paths,
        )
