"""
Item database
SQLite storage of the items shown in the paged list
"""

import logging
import random
import sqlite3
import string
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from winpager.core.protocols import FORWARD
from winpager.domain.list_context import SORT_FIELDS, ItemListContext

logger = logging.getLogger("WINPAGER.ItemDB")

ID_ALPHABET = string.ascii_letters + string.digits + "_-"

LOREM_WORDS = [
    "lorem", "ipsum", "dolor", "sit", "amet", "consectetur", "adipiscing",
    "elit", "sed", "do", "eiusmod", "tempor", "incididunt", "ut", "labore",
    "et", "dolore", "magna", "aliqua", "enim", "ad", "minim", "veniam",
    "quis", "nostrud", "exercitation", "ullamco", "laboris", "nisi",
    "aliquip", "ex", "ea", "commodo", "consequat", "duis", "aute", "irure",
    "in", "reprehenderit", "voluptate", "velit", "esse", "cillum", "fugiat",
    "nulla", "pariatur", "excepteur", "sint", "occaecat", "cupidatat",
]

DAY_MS = 24 * 60 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_id(size: int = 10, rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return "".join(rng.choice(ID_ALPHABET) for _ in range(size))


def item_cursor(record: Dict[str, Any]) -> Dict[str, Any]:
    """Project an item to the cursor a page query resumes from."""
    return {
        "id": record["id"],
        "created": record["created"],
        "modified": record["modified"],
    }


def item_key(record: Dict[str, Any]) -> str:
    return record["id"]


class ItemDB:
    """SQLite database of items"""

    def __init__(self, db_path: Optional[str] = None):
        if db_path is None:
            db_dir = Path.home() / ".local" / "share" / "winpager"
            db_dir.mkdir(parents=True, exist_ok=True)
            db_path = db_dir / "items.db"

        self.db_path = str(db_path)
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._init_db()

    def _init_db(self):
        """Initialize database schema"""
        cursor = self.conn.cursor()
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS item (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                description TEXT NOT NULL,
                created INTEGER NOT NULL,
                modified INTEGER NOT NULL
            )
        """
        )
        for field in SORT_FIELDS:
            cursor.execute(
                f"CREATE INDEX IF NOT EXISTS idx_item_{field} ON item({field}, id)"
            )
        self.conn.commit()

    @staticmethod
    def _title_filter(context: Optional[ItemListContext]) -> Tuple[str, List[Any]]:
        """Case-insensitive literal substring match; wildcards are not special"""
        if context is None or not context.title_filter:
            return "", []
        return "instr(lower(title), lower(?)) > 0", [context.title_filter]

    @staticmethod
    def _row_to_item(row: sqlite3.Row) -> Dict[str, Any]:
        return {
            "id": row["id"],
            "title": row["title"],
            "description": row["description"],
            "created": row["created"],
            "modified": row["modified"],
        }

    def add_item(
        self,
        title: str,
        description: str = "",
        item_id: Optional[str] = None,
        created: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Insert an item; ``modified`` is always the current time."""
        modified = now_ms()
        item = {
            "id": item_id or generate_id(),
            "title": title,
            "description": description,
            "created": created if created is not None else modified,
            "modified": modified,
        }
        cursor = self.conn.cursor()
        cursor.execute(
            """
            INSERT INTO item (id, title, description, created, modified)
            VALUES (:id, :title, :description, :created, :modified)
        """,
            item,
        )
        self.conn.commit()
        return item

    def edit_item(
        self,
        item_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Update title/description and bump ``modified``; None if missing"""
        assignments = ["modified = ?"]
        params: List[Any] = [now_ms()]
        if title is not None:
            assignments.append("title = ?")
            params.append(title)
        if description is not None:
            assignments.append("description = ?")
            params.append(description)
        params.append(item_id)

        cursor = self.conn.cursor()
        cursor.execute(
            f"UPDATE item SET {', '.join(assignments)} WHERE id = ?", tuple(params)
        )
        self.conn.commit()
        if cursor.rowcount == 0:
            return None
        return self.get_item(item_id)

    def delete_item(self, item_id: str) -> bool:
        """Delete an item by ID"""
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM item WHERE id = ?", (item_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    def get_item(
        self, item_id: str, context: Optional[ItemListContext] = None
    ) -> Optional[Dict[str, Any]]:
        """Get a single item by ID, None when the context's filter hides it"""
        query = "SELECT id, title, description, created, modified FROM item WHERE id = ?"
        params: List[Any] = [item_id]
        filter_clause, filter_params = self._title_filter(context)
        if filter_clause:
            query += " AND " + filter_clause
            params.extend(filter_params)

        cursor = self.conn.cursor()
        cursor.execute(query, tuple(params))
        row = cursor.fetchone()
        if row:
            return self._row_to_item(row)
        return None

    def get_page(
        self,
        limit: int,
        cursor: Optional[Dict[str, Any]] = None,
        direction: str = FORWARD,
        context: Optional[ItemListContext] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get one page of items in list order, starting just past a cursor

        Args:
            limit: Maximum number of items to return
            cursor: Item cursor to start after (exclusive), None for the first item
            direction: "forward" follows the list order, "backward" walks it in reverse
            context: Sort field, sort direction and title filter

        Returns:
            Items nearest to the cursor first
        """
        context = context or ItemListContext()
        # Whitelisted by ItemListContext, safe to interpolate
        field = context.sort_field
        ascending = context.sort_direction == "asc"
        if direction != FORWARD:
            ascending = not ascending
        order = "ASC" if ascending else "DESC"
        comparison = ">" if ascending else "<"

        where_clauses = []
        query_params: List[Any] = []

        filter_clause, filter_params = self._title_filter(context)
        if filter_clause:
            where_clauses.append(filter_clause)
            query_params.extend(filter_params)

        if cursor is not None:
            where_clauses.append(
                f"({field} {comparison} ? OR ({field} = ? AND id {comparison} ?))"
            )
            query_params.extend([cursor[field], cursor[field], cursor["id"]])

        where_clause = ""
        if where_clauses:
            where_clause = "WHERE " + " AND ".join(where_clauses)

        query = f"""
            SELECT id, title, description, created, modified
            FROM item
            {where_clause}
            ORDER BY {field} {order}, id {order}
            LIMIT ?
        """
        query_params.append(limit)

        db_cursor = self.conn.cursor()
        db_cursor.execute(query, tuple(query_params))
        return [self._row_to_item(row) for row in db_cursor.fetchall()]

    def get_total_count(self, context: Optional[ItemListContext] = None) -> int:
        """Get total count of items matching the context's filter"""
        query = "SELECT COUNT(*) as count FROM item"
        filter_clause, filter_params = self._title_filter(context)
        if filter_clause:
            query += " WHERE " + filter_clause

        cursor = self.conn.cursor()
        cursor.execute(query, tuple(filter_params))
        row = cursor.fetchone()
        return row["count"] if row else 0

    def seed(self, count: int, seed: Optional[int] = None) -> int:
        """Insert ``count`` random items spread over the past year."""
        rng = random.Random(seed)
        now = now_ms()
        items = []
        for i in range(count):
            created = now - rng.randint(0, 365 * DAY_MS)
            modified = created + rng.randint(0, 7 * DAY_MS)
            items.append(
                (
                    generate_id(rng=rng),
                    " ".join(rng.choices(LOREM_WORDS, k=rng.randint(2, 6))),
                    self._sentences(rng, rng.randint(1, 4)),
                    created,
                    min(modified, now - i),
                )
            )

        cursor = self.conn.cursor()
        cursor.executemany(
            """
            INSERT OR IGNORE INTO item (id, title, description, created, modified)
            VALUES (?, ?, ?, ?, ?)
        """,
            items,
        )
        self.conn.commit()
        logger.info("Seeded %d items", cursor.rowcount)
        return cursor.rowcount

    @staticmethod
    def _sentences(rng: random.Random, count: int) -> str:
        sentences = []
        for _ in range(count):
            words = rng.choices(LOREM_WORDS, k=rng.randint(5, 12))
            sentences.append(" ".join(words).capitalize() + ".")
        return " ".join(sentences)

    def close(self):
        """Close database connection"""
        self.conn.close()
