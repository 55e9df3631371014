"""Tests for server startup helpers."""

import asyncio
import json
from pathlib import Path


def test_open_database_seeds_empty_database(temp_db_path: Path):
    from winpager.server import open_database

    service = open_database(temp_db_path, seed_items=25)

    assert service.get_total_count() == 25
    service.close()


def test_open_database_does_not_reseed(temp_db_path: Path):
    from winpager.server import open_database

    open_database(temp_db_path, seed_items=25).close()
    service = open_database(temp_db_path, seed_items=25)

    assert service.get_total_count() == 25
    service.close()


def test_open_database_without_seeding(tmp_path: Path):
    from winpager.server import open_database

    service = open_database(tmp_path / "nested" / "items.db", seed_items=0)

    assert service.get_total_count() == 0
    service.close()


def test_serve_answers_page_queries(temp_db_path: Path, temp_config_path: Path):
    import websockets
    from winpager.config import SettingsManager
    from winpager.server import open_database, serve

    temp_config_path.write_text("server:\n  host: 127.0.0.1\n  port: 8799\n")
    settings_manager = SettingsManager(temp_config_path)
    service = open_database(temp_db_path, seed_items=10)

    async def scenario():
        server = asyncio.ensure_future(serve(settings_manager, service))
        try:
            for _ in range(50):
                try:
                    websocket = await websockets.connect("ws://127.0.0.1:8799")
                    break
                except OSError:
                    await asyncio.sleep(0.05)
            await websocket.send(
                json.dumps({"action": "get_page", "request_id": 1, "limit": 4})
            )
            response = json.loads(await websocket.recv())
            await websocket.close()
            return response
        finally:
            server.cancel()
            await asyncio.gather(server, return_exceptions=True)

    response = asyncio.run(scenario())
    service.close()

    assert response["type"] == "page"
    assert len(response["rows"]) == 4


def test_main_wires_settings_and_database(monkeypatch, temp_db_path: Path, temp_config_path: Path):
    from winpager import server
    from winpager.config import settings as settings_module

    monkeypatch.setattr(settings_module, "_settings_manager", None)
    temp_config_path.write_text("server:\n  port: 9123\n  seed_items: 12\n")
    served = []

    async def fake_serve(settings_manager, database_service):
        served.append((settings_manager, database_service.get_total_count()))

    monkeypatch.setattr(server, "serve", fake_serve)

    server.main(["--config", str(temp_config_path), "--db", str(temp_db_path)])

    settings_manager, total = served[0]
    assert settings_manager is settings_module.get_settings()
    assert settings_manager.server_port == 9123
    assert total == 12
