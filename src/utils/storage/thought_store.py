"""
Reasoning-trace persistence for the think tool.

Every structured thought produced during a conversation is written as one
row of the ``agent_thoughts`` table so that a conversation's reasoning can
be audited or replayed later. Connections are short-lived: one per
operation, which keeps the store safe to share between concurrent tool
executions.
"""

import json
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite

from ..config import config
from ..config.constants import THOUGHTS_TABLE
from ..logging import log_execution
from ..logging.framework import SmartLogger

logger = SmartLogger("storage")

# Columns serialized as JSON text
_JSON_COLUMNS = ("metadata", "reflection_data")


class ThoughtStore(ABC):
    """Sink for structured reasoning records."""

    @abstractmethod
    async def save_thought(self, record: Dict[str, Any]) -> None:
        """Persist one reasoning record."""

    @abstractmethod
    async def get_thoughts(self, conversation_id: str) -> List[Dict[str, Any]]:
        """Return the stored records of a conversation, oldest first."""


class SQLiteThoughtStore(ThoughtStore):
    """aiosqlite-backed thought store."""

    def __init__(self, database_path: Optional[str] = None, timeout: Optional[float] = None):
        self.database_path = database_path or config.thoughts_db_path
        self.timeout = timeout if timeout is not None else config.db_timeout
        self._schema_initialized = False

    @asynccontextmanager
    async def _connection(self):
        Path(self.database_path).parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(self.database_path, timeout=self.timeout)
        try:
            if not self._schema_initialized:
                await self._initialize_schema(conn)
            yield conn
        finally:
            await conn.close()

    async def _initialize_schema(self, conn: aiosqlite.Connection):
        await conn.execute(f"""
            CREATE TABLE IF NOT EXISTS {THOUGHTS_TABLE} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                conversation_id TEXT NOT NULL,
                type TEXT NOT NULL,
                content TEXT,
                metadata TEXT,
                reasoning TEXT,
                strategy TEXT,
                concerns TEXT,
                next_steps TEXT,
                thinking_budget TEXT,
                reflection_data TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await conn.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{THOUGHTS_TABLE}_conversation
            ON {THOUGHTS_TABLE}(conversation_id)
        """)

        await conn.commit()
        self._schema_initialized = True
        logger.debug("thought_schema_initialized",
                     database_path=self.database_path)

    @log_execution(component="storage", include_result=False)
    async def save_thought(self, record: Dict[str, Any]) -> None:
        """Insert one reasoning record."""
        values = (
            record["conversation_id"],
            record["type"],
            record.get("content"),
            json.dumps(record.get("metadata") or {}),
            record.get("reasoning"),
            record.get("strategy"),
            record.get("concerns"),
            record.get("next_steps"),
            record.get("thinking_budget"),
            json.dumps(record.get("reflection_data") or {}),
        )

        async with self._connection() as conn:
            await conn.execute(
                f"""INSERT INTO {THOUGHTS_TABLE}
                    (conversation_id, type, content, metadata, reasoning, strategy,
                     concerns, next_steps, thinking_budget, reflection_data)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                values
            )
            await conn.commit()

        logger.info("thought_saved",
                    conversation_id=record["conversation_id"],
                    thought_type=record["type"])

    async def get_thoughts(self, conversation_id: str) -> List[Dict[str, Any]]:
        """Load the records of a conversation in insertion order."""
        async with self._connection() as conn:
            conn.row_factory = aiosqlite.Row
            async with conn.execute(
                f"SELECT * FROM {THOUGHTS_TABLE} WHERE conversation_id = ? ORDER BY id",
                (conversation_id,)
            ) as cursor:
                rows = await cursor.fetchall()

        thoughts = []
        for row in rows:
            thought = dict(row)
            for column in _JSON_COLUMNS:
                try:
                    thought[column] = json.loads(thought[column]) if thought[column] else {}
                except json.JSONDecodeError:
                    logger.warning("thought_json_decode_error",
                                   conversation_id=conversation_id,
                                   column=column)
                    thought[column] = {}
            thoughts.append(thought)

        logger.debug("thoughts_loaded",
                     conversation_id=conversation_id,
                     count=len(thoughts))
        return thoughts
