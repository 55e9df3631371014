"""Service layer: window materialization, item storage and transport."""

from .database_service import DatabaseService
from .item_database import ItemDB, item_cursor, item_key
from .websocket_client import WebSocketPageSource
from .websocket_service import PageQueryService
from .window_materializer import WindowMaterializer

__all__ = [
    "DatabaseService",
    "ItemDB",
    "item_cursor",
    "item_key",
    "WebSocketPageSource",
    "PageQueryService",
    "WindowMaterializer",
]
