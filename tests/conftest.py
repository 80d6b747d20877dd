"""
Pytest configuration and fixtures for Makita tests.
"""

import sys
from pathlib import Path

import pytest_asyncio

# Add src directory to path so imports work without an editable install
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from makita.database.db_connection import ConnectionManager  # noqa: E402
from makita.scheduler.task_broadcast import TaskBroadcast  # noqa: E402


@pytest_asyncio.fixture
async def db(tmp_path):
    """A fresh database file with the schema applied."""
    manager = ConnectionManager()
    await manager.open(tmp_path / "makita.db")
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def broadcast():
    channel = TaskBroadcast()
    yield channel
    channel.close()
