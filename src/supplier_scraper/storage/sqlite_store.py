"""SQLite-backed cache of aggregated multi-vendor search results."""
from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from supplier_scraper.core.errors import CacheError
from supplier_scraper.hotels.models import HotelResult, RoomOption
from supplier_scraper.tasks.search_payloads import SearchParams

from .cache_key import canonicalize

ISO_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
SCHEMA_VERSION = 1

VALID_JOURNAL_MODES = frozenset({"delete", "truncate", "persist", "memory", "wal", "off"})

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _format_ts(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(ISO_FORMAT)


def _json_dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), default=str)


def _json_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return list(json.loads(value))


class ResultCache:
    """Canonical-key-addressed store of aggregated search results.

    Reads degrade to a miss and writes are logged and dropped on failure; the
    cache never breaks a search.
    """

    def __init__(
        self,
        db_path: Path,
        *,
        busy_timeout_ms: int = 2000,
        journal_mode: Optional[str] = "wal",
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._path = db_path
        self._busy_timeout_ms = busy_timeout_ms
        self._journal_mode = self._normalize_journal_mode(journal_mode)
        self._clock = clock
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # lifecycle

    async def initialize(self) -> None:
        if self._connection is not None:
            return
        async with self._lock:
            if self._connection is None:
                self._connection = await asyncio.to_thread(self._open_connection)

    async def close(self) -> None:
        if self._connection is None:
            return
        conn = self._connection
        self._connection = None
        await asyncio.to_thread(conn.close)

    def _open_connection(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self._path, check_same_thread=False)
        try:
            conn.execute("PRAGMA foreign_keys = ON;")
            conn.execute(f"PRAGMA busy_timeout = {int(max(self._busy_timeout_ms, 0))};")
            if self._journal_mode:
                conn.execute(f"PRAGMA journal_mode = {self._journal_mode.upper()};")
            self._apply_migrations(conn)
        except sqlite3.Error as exc:
            conn.close()
            logger.error("Failed to open result cache (path=%s): %s", self._path, exc)
            raise
        return conn

    @staticmethod
    def _normalize_journal_mode(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        mode = value.strip().lower()
        if not mode:
            return None
        if mode not in VALID_JOURNAL_MODES:
            raise ValueError(
                f"Unsupported SQLite journal_mode '{value}'. Expected one of: {sorted(VALID_JOURNAL_MODES)}"
            )
        return mode

    def _apply_migrations(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )
        current = self._get_schema_version(conn)
        if current >= SCHEMA_VERSION:
            return
        for version in range(current + 1, SCHEMA_VERSION + 1):
            script = MIGRATIONS.get(version)
            if not script:
                raise RuntimeError(f"Missing migration script for version {version}")
            conn.executescript(script)
            conn.execute(
                "INSERT INTO meta(key, value) VALUES('schema_version', ?)\n"
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (str(version),),
            )
        conn.commit()

    def _get_schema_version(self, conn: sqlite3.Connection) -> int:
        row = conn.execute("SELECT value FROM meta WHERE key='schema_version'").fetchone()
        if not row:
            return 0
        try:
            return int(row[0])
        except (TypeError, ValueError):
            return 0

    def _require_connection(self) -> sqlite3.Connection:
        if not self._connection:
            raise CacheError("Result cache has not been initialised")
        return self._connection

    # ------------------------------------------------------------------
    # cache operations

    async def get(self, params: SearchParams) -> Optional[List[HotelResult]]:
        """Return the cached aggregate for ``params``, or ``None`` on a miss or any failure."""
        key = canonicalize(params)

        def _op() -> Optional[List[HotelResult]]:
            conn = self._require_connection()
            entry = conn.execute("SELECT 1 FROM search_cache WHERE cache_key=?", (key,)).fetchone()
            if entry is None:
                return None
            hotel_rows = conn.execute(
                """
                SELECT id, hotel_id, name, rating, location, vendor, source, destination_code,
                       check_in, check_out, review_rating, review_count, distance_miles, certification
                FROM cached_hotels
                WHERE cache_key=?
                ORDER BY position
                """,
                (key,),
            ).fetchall()
            hotels: List[HotelResult] = []
            for row in hotel_rows:
                room_rows = conn.execute(
                    """
                    SELECT code, name, total_price, price_per_person, promotions, value_indicators
                    FROM cached_rooms
                    WHERE hotel_row_id=?
                    ORDER BY position
                    """,
                    (row[0],),
                ).fetchall()
                hotels.append(self._row_to_hotel(row, room_rows))
            return hotels

        try:
            await self.initialize()
            async with self._lock:
                hotels = await asyncio.to_thread(_op)
        except Exception as exc:  # noqa: BLE001 - a broken cache is a miss
            logger.warning("Cache read failed for %s, treating as miss: %s", key, exc)
            return None
        if hotels is not None:
            logger.info("Cache hit for %s (%s hotels)", key, len(hotels))
        return hotels

    async def put(self, params: SearchParams, hotels: Sequence[HotelResult]) -> bool:
        """Replace the entry for ``params`` with ``hotels`` in one transaction.

        Returns ``False`` when the write failed; the failure is logged, not raised.
        """
        key = canonicalize(params)
        created_at = _format_ts(self._clock())
        payload = _json_dumps(params.to_dict())

        def _op() -> None:
            conn = self._require_connection()
            with conn:
                conn.execute("DELETE FROM search_cache WHERE cache_key=?", (key,))
                conn.execute(
                    "INSERT INTO search_cache(cache_key, params, hotel_count, created_at) VALUES(?, ?, ?, ?)",
                    (key, payload, len(hotels), created_at),
                )
                for position, hotel in enumerate(hotels):
                    cursor = conn.execute(
                        """
                        INSERT INTO cached_hotels(
                            cache_key, position, hotel_id, name, rating, location, vendor, source,
                            destination_code, check_in, check_out, review_rating, review_count,
                            distance_miles, certification
                        ) VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            key,
                            position,
                            hotel.id,
                            hotel.name,
                            hotel.rating,
                            hotel.location,
                            hotel.vendor,
                            hotel.source,
                            hotel.destination_code,
                            hotel.check_in.isoformat(),
                            hotel.check_out.isoformat(),
                            hotel.review_rating,
                            hotel.review_count,
                            hotel.distance_miles,
                            hotel.certification,
                        ),
                    )
                    hotel_row_id = cursor.lastrowid
                    conn.executemany(
                        """
                        INSERT INTO cached_rooms(
                            hotel_row_id, position, code, name, total_price, price_per_person,
                            promotions, value_indicators
                        ) VALUES(?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        [
                            (
                                hotel_row_id,
                                room_position,
                                room.code,
                                room.name,
                                room.total_price,
                                room.price_per_person,
                                _json_dumps(room.promotions),
                                _json_dumps(room.value_indicators),
                            )
                            for room_position, room in enumerate(hotel.rooms)
                        ],
                    )

        try:
            await self.initialize()
            async with self._lock:
                await asyncio.to_thread(_op)
        except Exception as exc:  # noqa: BLE001 - cache writes never fail a search
            logger.error("Cache write failed for %s: %s", key, exc)
            return False
        logger.info("Cached %s hotels under %s", len(hotels), key)
        return True

    async def evict_older_than(self, days: float) -> int:
        """Delete entries created more than ``days`` ago; returns how many were removed."""
        if days < 0:
            raise ValueError("days must not be negative")
        cutoff = _format_ts(self._clock() - timedelta(days=days))

        def _op() -> int:
            conn = self._require_connection()
            with conn:
                cursor = conn.execute("DELETE FROM search_cache WHERE created_at < ?", (cutoff,))
            return cursor.rowcount

        await self.initialize()
        async with self._lock:
            removed = await asyncio.to_thread(_op)
        logger.info("Evicted %s cache entries older than %s days", removed, days)
        return removed

    @staticmethod
    def _row_to_hotel(row: Sequence[Any], room_rows: Sequence[Sequence[Any]]) -> HotelResult:
        rooms = [
            RoomOption(
                code=room[0],
                name=room[1],
                total_price=float(room[2] or 0.0),
                price_per_person=room[3],
                promotions=_json_list(room[4]),
                value_indicators=_json_list(room[5]),
            )
            for room in room_rows
        ]
        return HotelResult(
            id=row[1],
            name=row[2],
            rating=int(row[3]),
            location=row[4] or "",
            vendor=row[5] or "",
            source=row[6] or "",
            destination_code=row[7] or "",
            check_in=date.fromisoformat(row[8]),
            check_out=date.fromisoformat(row[9]),
            rooms=rooms,
            review_rating=row[10],
            review_count=row[11],
            distance_miles=row[12],
            certification=row[13],
        )


MIGRATIONS: dict[int, str] = {
    1: """
        CREATE TABLE IF NOT EXISTS search_cache (
            cache_key TEXT PRIMARY KEY,
            params TEXT NOT NULL,
            hotel_count INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_search_cache_created_at ON search_cache(created_at);

        CREATE TABLE IF NOT EXISTS cached_hotels (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            cache_key TEXT NOT NULL REFERENCES search_cache(cache_key) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            hotel_id TEXT NOT NULL,
            name TEXT NOT NULL,
            rating INTEGER NOT NULL,
            location TEXT,
            vendor TEXT,
            source TEXT,
            destination_code TEXT,
            check_in TEXT NOT NULL,
            check_out TEXT NOT NULL,
            review_rating REAL,
            review_count INTEGER,
            distance_miles REAL,
            certification TEXT
        );
        CREATE INDEX IF NOT EXISTS idx_cached_hotels_key ON cached_hotels(cache_key, position);

        CREATE TABLE IF NOT EXISTS cached_rooms (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            hotel_row_id INTEGER NOT NULL REFERENCES cached_hotels(id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            code TEXT NOT NULL,
            name TEXT NOT NULL,
            total_price REAL NOT NULL DEFAULT 0,
            price_per_person REAL,
            promotions TEXT,
            value_indicators TEXT
        );
        CREATE INDEX IF NOT EXISTS idx_cached_rooms_hotel ON cached_rooms(hotel_row_id, position);
    """,
}
