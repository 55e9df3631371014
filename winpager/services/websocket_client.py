"""WebSocket page source for a remote item server."""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional

import websockets

from winpager.core.protocols import PageResult
from winpager.domain.errors import PageSourceError

logger = logging.getLogger("WINPAGER.WebSocketPageSource")


def context_to_dict(list_context: Any) -> Any:
    if hasattr(list_context, "to_dict"):
        return list_context.to_dict()
    return list_context


class WebSocketPageSource:
    """Page source that forwards queries to a PageQueryService.

    Responses are matched to requests by ``request_id``; server messages
    without one (``items_changed`` broadcasts) go to ``on_event``.
    """

    def __init__(
        self,
        uri: str = "ws://localhost:8765",
        max_size: int = 5 * 1024 * 1024,
        on_event: Optional[Callable[[dict], None]] = None,
        connect_attempts: int = 5,
    ):
        self.uri = uri
        self.max_size = max_size
        self.on_event = on_event
        self.connect_attempts = connect_attempts
        self._websocket = None
        self._listener: Optional[asyncio.Task] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._next_request_id = 0

    @property
    def is_connected(self) -> bool:
        return self._websocket is not None

    async def open(self, websocket=None):
        """Connect to the server, or adopt an already open connection."""
        if websocket is None:
            websocket = await self._connect()
        self._websocket = websocket
        self._listener = asyncio.ensure_future(self._listen_for_messages())

    async def _connect(self):
        for attempt in range(1, self.connect_attempts + 1):
            try:
                logger.info("Connecting to %s (attempt %d)...", self.uri, attempt)
                websocket = await websockets.connect(
                    self.uri, max_size=self.max_size, open_timeout=5
                )
                logger.info("Connected to WebSocket server")
                return websocket
            except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
                if attempt == self.connect_attempts:
                    raise PageSourceError(f"Failed to connect to {self.uri}: {e}") from e
                delay = 2 ** attempt
                logger.warning("WebSocket connection failed: %s. Retrying in %d seconds...", e, delay)
                await asyncio.sleep(delay)

    async def _listen_for_messages(self):
        try:
            async for message in self._websocket:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError as e:
                    logger.error("Invalid JSON from server: %s", e)
                    continue
                self._dispatch(data)
        except websockets.exceptions.ConnectionClosed as e:
            logger.warning("WebSocket connection closed: %s", e)
        finally:
            self._fail_pending(PageSourceError("Connection closed"))
            self._websocket = None

    def _dispatch(self, data: dict):
        request_id = data.get("request_id")
        future = self._pending.pop(request_id, None) if request_id is not None else None
        if future is None:
            if data.get("type") == "error":
                logger.error("Server error: %s", data.get("message"))
            elif self.on_event:
                try:
                    self.on_event(data)
                except Exception as e:
                    logger.error("Error in event handler: %s", e)
            return
        if future.done():
            return
        if data.get("type") == "error":
            future.set_exception(PageSourceError(data.get("message", "Unknown error")))
        else:
            future.set_result(data)

    def _fail_pending(self, error: Exception):
        pending, self._pending = self._pending, {}
        for future in pending.values():
            if not future.done():
                future.set_exception(error)

    async def request(self, action: str, **params) -> dict:
        if self._websocket is None:
            raise PageSourceError("Not connected")

        self._next_request_id += 1
        request_id = self._next_request_id
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        try:
            await self._websocket.send(
                json.dumps({"action": action, "request_id": request_id, **params})
            )
        except websockets.exceptions.ConnectionClosed as e:
            self._pending.pop(request_id, None)
            raise PageSourceError(f"Connection closed while sending {action}") from e
        return await future

    async def fetch_page(
        self, limit: int, cursor: Optional[Any], direction: str, list_context: Any
    ) -> PageResult:
        response = await self.request(
            "get_page",
            limit=limit,
            cursor=cursor,
            direction=direction,
            list_context=context_to_dict(list_context),
        )
        return PageResult(rows=response.get("rows", []), complete=response.get("complete", True))

    async def fetch_by_id(self, record_id: str, list_context: Any) -> Optional[Any]:
        response = await self.request(
            "get_item", id=record_id, list_context=context_to_dict(list_context)
        )
        return response.get("item")

    async def get_total_count(self, list_context: Any = None) -> int:
        response = await self.request(
            "get_total_count", list_context=context_to_dict(list_context)
        )
        return response["total_count"]

    async def add_item(self, title: str, description: str = "") -> dict:
        response = await self.request("add_item", title=title, description=description)
        return response["item"]

    async def edit_item(
        self, item_id: str, title: Optional[str] = None, description: Optional[str] = None
    ) -> Optional[dict]:
        response = await self.request("edit_item", id=item_id, title=title, description=description)
        return response.get("item")

    async def delete_item(self, item_id: str) -> bool:
        response = await self.request("delete_item", id=item_id)
        return bool(response.get("success"))

    async def close(self):
        websocket = self._websocket
        if websocket is not None:
            await websocket.close()
        if self._listener is not None:
            await asyncio.gather(self._listener, return_exceptions=True)
            self._listener = None
        self._fail_pending(PageSourceError("Connection closed"))
