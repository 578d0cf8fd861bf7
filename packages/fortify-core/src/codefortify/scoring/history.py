"""Quality history: SQLite log of overall scores with run-over-run change."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import aiosqlite

from codefortify.scoring.calculator import Improvement, calculate_improvement
from codefortify.scoring.results import ScoringResults

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS quality_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    overall_score REAL NOT NULL,
    max_score REAL NOT NULL,
    percentage INTEGER NOT NULL,
    overall_grade TEXT NOT NULL,
    categories_json TEXT NOT NULL DEFAULT '{}',
    project_name TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_quality_history_ts ON quality_history(timestamp);
"""


@dataclass
class HistoryEntry:
    id: int
    timestamp: str
    overall_score: float
    overall_grade: str
    percentage: int
    categories: dict[str, dict[str, Any]] = field(default_factory=dict)
    change: Improvement | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "overall_score": self.overall_score,
            "overall_grade": self.overall_grade,
            "percentage": self.percentage,
            "categories": self.categories,
            "change": None if self.change is None else {
                "change": self.change.change,
                "percentage": self.change.percentage,
                "direction": self.change.direction,
                "is_improvement": self.change.is_improvement,
                "is_significant": self.change.is_significant,
            },
        }


class HistorySink(Protocol):
    async def record_score(self, results: ScoringResults) -> HistoryEntry | None: ...


class QualityHistory:
    """Keeps the newest *max_entries* runs in SQLite."""

    def __init__(self, db_path: str | Path, max_entries: int = 100) -> None:
        self.db_path = str(db_path)
        self.max_entries = max_entries
        self._db: aiosqlite.Connection | None = None

    async def init(self) -> None:
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            await self.init()
        if self._db is None:
            raise RuntimeError("Quality history database is not open")
        return self._db

    async def record_score(self, results: ScoringResults) -> HistoryEntry | None:
        if results.overall is None:
            return None
        db = await self._conn()
        previous = await self.latest()

        overall = results.overall
        categories = {
            key: {"score": r.score, "max_score": r.max_score, "grade": r.grade}
            for key, r in results.categories.items()
        }
        cursor = await db.execute(
            """INSERT INTO quality_history
               (timestamp, overall_score, max_score, percentage, overall_grade,
                categories_json, project_name)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                overall.timestamp, overall.score, overall.max_score, overall.percentage,
                overall.grade, json.dumps(categories),
                results.metadata.get("project_name", ""),
            ),
        )
        entry_id = cursor.lastrowid
        await db.execute(
            """DELETE FROM quality_history WHERE id NOT IN
               (SELECT id FROM quality_history ORDER BY id DESC LIMIT ?)""",
            (self.max_entries,),
        )
        await db.commit()

        change = calculate_improvement(
            overall.score, previous.overall_score if previous else None
        )
        logger.debug("Recorded quality history entry %s (%s)", entry_id, change.direction)
        return HistoryEntry(
            id=entry_id,
            timestamp=overall.timestamp,
            overall_score=overall.score,
            overall_grade=overall.grade,
            percentage=overall.percentage,
            categories=categories,
            change=change if previous else None,
        )

    async def latest(self) -> HistoryEntry | None:
        entries = await self.get_entries(limit=1)
        return entries[0] if entries else None

    async def get_entries(self, limit: int = 50) -> list[HistoryEntry]:
        """Newest first."""
        db = await self._conn()
        cursor = await db.execute(
            "SELECT * FROM quality_history ORDER BY id DESC LIMIT ?", (limit,)
        )
        rows = await cursor.fetchall()
        return [
            HistoryEntry(
                id=row["id"],
                timestamp=row["timestamp"],
                overall_score=row["overall_score"],
                overall_grade=row["overall_grade"],
                percentage=row["percentage"],
                categories=json.loads(row["categories_json"]),
            )
            for row in rows
        ]
