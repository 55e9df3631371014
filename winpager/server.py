#!/usr/bin/env python3
"""
Winpager Server - Serves the item database to paged list clients over WebSocket
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

import websockets

from winpager.config import AppPaths, SettingsManager, get_settings
from winpager.services import DatabaseService, PageQueryService

logger = logging.getLogger("WINPAGER.Server")


def open_database(db_path: Path, seed_items: int) -> DatabaseService:
    """Open the item database, seeding it when it starts out empty"""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    database_service = DatabaseService(str(db_path))
    if seed_items and database_service.get_total_count() == 0:
        logger.info("Database is empty, seeding %d items", seed_items)
        database_service.seed(seed_items)
    return database_service


async def serve(settings_manager: SettingsManager, database_service: DatabaseService):
    """Start WebSocket server and run forever"""
    server_settings = settings_manager.settings.server
    service = PageQueryService(database_service)
    logger.info(
        "Starting WebSocket server on ws://%s:%d", server_settings.host, server_settings.port
    )
    logger.info(
        "WebSocket server configured with max_size: %d bytes", server_settings.max_message_size
    )
    async with websockets.serve(
        service.websocket_handler,
        server_settings.host,
        server_settings.port,
        max_size=server_settings.max_message_size,
    ):
        await asyncio.Future()  # Run forever


def main(argv: Optional[list] = None):
    parser = argparse.ArgumentParser(description="Serve paged item queries over WebSocket")
    parser.add_argument("--config", type=Path, help="Path to settings.yml")
    parser.add_argument("--db", type=Path, help="Path to the item database")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    paths = AppPaths.default()
    settings_manager = get_settings(args.config or paths.config_path)
    database_service = open_database(
        args.db or paths.db_path, settings_manager.settings.server.seed_items
    )

    try:
        asyncio.run(serve(settings_manager, database_service))
    except KeyboardInterrupt:
        logger.info("Stopping server...")
    finally:
        database_service.close()


def run():
    main()


if __name__ == "__main__":
    run()
