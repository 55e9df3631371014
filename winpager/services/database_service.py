"""
Database Service - Thread-safe wrapper for item database operations
"""
import asyncio
import logging
import threading
from typing import Any, Dict, List, Optional

from winpager.core.protocols import FORWARD, PageResult
from winpager.domain.list_context import ItemListContext
from winpager.services.item_database import ItemDB

logger = logging.getLogger("WINPAGER.DatabaseService")


def as_list_context(list_context: Any) -> ItemListContext:
    if isinstance(list_context, ItemListContext):
        return list_context
    return ItemListContext.from_dict(list_context)


class DatabaseService:
    """Service for managing database operations with thread-safety.

    Also serves as a page source: the async ``fetch_page``/``fetch_by_id``
    run the query in a worker thread so the event loop is never blocked.
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize database service

        Args:
            db_path: Optional path to database file, ":memory:" for a scratch database
        """
        self.db = ItemDB(db_path)
        self.lock = threading.Lock()
        logger.info("Database initialized or already exists at: %s", self.db.db_path)

    def add_item(self, title: str, description: str = "", **kwargs) -> Dict[str, Any]:
        """Thread-safe add item"""
        with self.lock:
            return self.db.add_item(title, description, **kwargs)

    def edit_item(
        self, item_id: str, title: Optional[str] = None, description: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Thread-safe edit item"""
        with self.lock:
            return self.db.edit_item(item_id, title, description)

    def delete_item(self, item_id: str) -> bool:
        """Thread-safe delete item"""
        with self.lock:
            return self.db.delete_item(item_id)

    def get_item(self, item_id: str, list_context: Any = None) -> Optional[Dict[str, Any]]:
        """Thread-safe get item, None when the list-context's filter hides it"""
        context = as_list_context(list_context) if list_context is not None else None
        with self.lock:
            return self.db.get_item(item_id, context)

    def get_page(
        self,
        limit: int,
        cursor: Optional[Dict[str, Any]] = None,
        direction: str = FORWARD,
        list_context: Any = None,
    ) -> List[Dict[str, Any]]:
        """Thread-safe get page of items"""
        with self.lock:
            return self.db.get_page(limit, cursor, direction, as_list_context(list_context))

    def get_total_count(self, list_context: Any = None) -> int:
        """Thread-safe get total item count"""
        with self.lock:
            return self.db.get_total_count(as_list_context(list_context))

    def seed(self, count: int, seed: Optional[int] = None) -> int:
        with self.lock:
            return self.db.seed(count, seed)

    async def fetch_page(
        self,
        limit: int,
        cursor: Optional[Dict[str, Any]],
        direction: str,
        list_context: Any,
    ) -> PageResult:
        rows = await asyncio.to_thread(self.get_page, limit, cursor, direction, list_context)
        return PageResult(rows=rows, complete=True)

    async def fetch_by_id(self, record_id: str, list_context: Any) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self.get_item, record_id, list_context)

    def close(self):
        with self.lock:
            self.db.close()
