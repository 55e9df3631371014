"""
WebSocket Service - Serves page queries and item mutations to list clients
"""
import asyncio
import json
import logging
from typing import Optional, Set

import websockets

from winpager.core.protocols import BACKWARD, FORWARD

logger = logging.getLogger("WINPAGER.WebSocketService")


class PageQueryService:
    """Service for WebSocket communication with paged list clients.

    Every request carries a ``request_id`` that is echoed in its response so
    a client can have many queries in flight on one connection.
    """

    def __init__(self, database_service, max_page_size: int = 10000):
        """
        Initialize page query service

        Args:
            database_service: Database service
            max_page_size: Largest ``limit`` a single get_page may ask for
        """
        self.db_service = database_service
        self.max_page_size = max_page_size
        self.clients: Set = set()

    async def websocket_handler(self, websocket):
        """Handle WebSocket client connections"""
        logger.info("WebSocket client connected from %s", websocket.remote_address)
        self.clients.add(websocket)

        try:
            async for message in websocket:
                await self._handle_message(websocket, message)

        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            self.clients.discard(websocket)
            logger.info("WebSocket client disconnected")

    async def _handle_message(self, websocket, message: str):
        """Handle individual WebSocket message"""
        try:
            data = json.loads(message)
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON from client: %s", e)
            await self._send_error(websocket, None, "Invalid JSON")
            return

        action = data.get("action")
        request_id = data.get("request_id")

        try:
            if action == "get_page":
                await self._handle_get_page(websocket, data)
            elif action == "get_item":
                await self._handle_get_item(websocket, data)
            elif action == "get_total_count":
                await self._handle_get_total_count(websocket, data)
            elif action == "add_item":
                await self._handle_add_item(websocket, data)
            elif action == "edit_item":
                await self._handle_edit_item(websocket, data)
            elif action == "delete_item":
                await self._handle_delete_item(websocket, data)
            else:
                logger.warning("Unknown WebSocket action: %s", action)
                await self._send_error(websocket, request_id, f"Unknown action: {action}")
        except websockets.exceptions.ConnectionClosed:
            raise
        except Exception as e:
            logger.error("Error handling %s request: %s", action, e)
            await self._send_error(websocket, request_id, str(e))

    async def _send(self, websocket, response: dict):
        await websocket.send(json.dumps(response))

    async def _send_error(self, websocket, request_id, message: str):
        await self._send(
            websocket, {"type": "error", "request_id": request_id, "message": message}
        )

    async def _handle_get_page(self, websocket, data):
        """Handle get_page action"""
        limit = int(data.get("limit", 0))
        if limit <= 0 or limit > self.max_page_size:
            raise ValueError(f"limit must be between 1 and {self.max_page_size}")
        direction = data.get("direction", FORWARD)
        if direction not in (FORWARD, BACKWARD):
            raise ValueError(f"Unknown direction: {direction}")

        rows = self.db_service.get_page(
            limit, data.get("cursor"), direction, data.get("list_context")
        )
        logger.debug("Returning %d %s rows", len(rows), direction)
        await self._send(
            websocket,
            {
                "type": "page",
                "request_id": data.get("request_id"),
                "rows": rows,
                "complete": True,
            },
        )

    async def _handle_get_item(self, websocket, data):
        """Handle get_item action"""
        item = self.db_service.get_item(data.get("id"), data.get("list_context"))
        await self._send(
            websocket, {"type": "item", "request_id": data.get("request_id"), "item": item}
        )

    async def _handle_get_total_count(self, websocket, data):
        """Handle get_total_count action"""
        total_count = self.db_service.get_total_count(data.get("list_context"))
        await self._send(
            websocket,
            {
                "type": "total_count",
                "request_id": data.get("request_id"),
                "total_count": total_count,
            },
        )

    async def _handle_add_item(self, websocket, data):
        """Handle add_item action"""
        title = data.get("title")
        if not title:
            raise ValueError("title is required")
        item = self.db_service.add_item(title, data.get("description", ""))
        logger.info("Added item %s", item["id"])
        await self._send(
            websocket, {"type": "item_added", "request_id": data.get("request_id"), "item": item}
        )
        await self.broadcast({"type": "items_changed", "change": "added", "id": item["id"]}, websocket)

    async def _handle_edit_item(self, websocket, data):
        """Handle edit_item action"""
        item_id = data.get("id")
        if not item_id:
            raise ValueError("id is required")
        item = self.db_service.edit_item(item_id, data.get("title"), data.get("description"))
        await self._send(
            websocket,
            {
                "type": "item_edited",
                "request_id": data.get("request_id"),
                "item": item,
                "success": item is not None,
            },
        )
        if item is not None:
            await self.broadcast({"type": "items_changed", "change": "edited", "id": item_id}, websocket)

    async def _handle_delete_item(self, websocket, data):
        """Handle delete_item action"""
        item_id = data.get("id")
        if not item_id:
            raise ValueError("id is required")
        success = self.db_service.delete_item(item_id)
        await self._send(
            websocket,
            {
                "type": "item_deleted",
                "request_id": data.get("request_id"),
                "id": item_id,
                "success": success,
            },
        )
        if success:
            await self.broadcast({"type": "items_changed", "change": "deleted", "id": item_id}, websocket)

    async def broadcast(self, message: dict, exclude: Optional[object] = None):
        """Broadcast message to all WebSocket clients but ``exclude``"""
        recipients = [client for client in self.clients if client is not exclude]
        if recipients:
            message_json = json.dumps(message)
            await asyncio.gather(
                *[client.send(message_json) for client in recipients], return_exceptions=True
            )
