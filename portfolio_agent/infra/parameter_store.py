"""
Parameter store backed by SQLite.

Holds the profile content (resume, interests, pinned prompt), the model
name and the OpenAI token payload under hierarchical names such as
"/portfolio-agent/resume".
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import aiosqlite
from loguru import logger

from portfolio_agent.config.settings import settings, resolve_path
from portfolio_agent.utils.errors import ParameterNotFoundError, StoreError


SCHEMA = """
CREATE TABLE IF NOT EXISTS parameters (
    name TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class ParameterStore:
    """Named string parameters, read by the configuration cache and the OpenAI client"""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = Path(db_path) if db_path else resolve_path(settings.parameter_db_path)
        self._initialized = False
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def _connect(self):
        conn = await aiosqlite.connect(str(self.db_path), timeout=10.0)
        try:
            yield conn
        finally:
            await conn.close()

    async def async_init(self):
        """Create the parameters table if needed"""
        if self._initialized:
            return
        try:
            async with self._connect() as conn:
                await conn.executescript(SCHEMA)
                await conn.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"initialize parameter store: {e}") from e
        self._initialized = True
        logger.info(f"Initialized parameter store at {self.db_path}")

    @staticmethod
    def _normalize_name(name: str) -> str:
        trimmed = (name or "").strip()
        if not trimmed:
            raise ValueError("parameter name is required")
        return trimmed

    async def get_parameter(self, name: str) -> str:
        """
        Fetch a parameter value by name.

        Raises:
            ValueError: If the name is blank
            ParameterNotFoundError: If no parameter has that name
            StoreError: If the database read fails
        """
        key = self._normalize_name(name)
        try:
            async with self._connect() as conn:
                cursor = await conn.execute("SELECT value FROM parameters WHERE name = ?", (key,))
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError(f"get parameter {key}: {e}") from e

        if row is None:
            raise ParameterNotFoundError(f"parameter not found: {key}")
        return row[0]

    async def put_parameter(self, name: str, value: str) -> None:
        """Create or overwrite a parameter"""
        key = self._normalize_name(name)
        if value is None:
            raise ValueError("parameter value is required")
        updated_at = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        try:
            async with self._connect() as conn:
                await conn.execute(
                    "INSERT INTO parameters (name, value, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(name) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                    (key, value, updated_at),
                )
                await conn.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"put parameter {key}: {e}") from e
        logger.debug(f"Stored parameter {key} ({len(value)} chars)")
