from __future__ import annotations

import sqlite3
from datetime import date, datetime, timedelta, timezone

import pytest

from supplier_scraper.hotels.models import HotelResult, RoomOption
from supplier_scraper.storage import ResultCache, canonicalize
from supplier_scraper.tasks.search_payloads import SearchParams


def _params(**overrides) -> SearchParams:
    values = dict(origin="ATL", destination="CUN", check_in="2026-01-10", check_out="2026-01-15")
    values.update(overrides)
    return SearchParams(**values)


def _hotel(hotel_id: str, rooms: list[RoomOption], **overrides) -> HotelResult:
    values = dict(
        id=hotel_id,
        name=f"Hotel {hotel_id}",
        rating=4,
        location="Hotel Zone",
        vendor="FUN",
        source="HBS",
        destination_code="CUN",
        check_in=date(2026, 1, 10),
        check_out=date(2026, 1, 15),
        rooms=rooms,
    )
    values.update(overrides)
    return HotelResult(**values)


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


def test_canonicalize_strips_punctuation_from_codes():
    assert canonicalize(_params(origin="AT-L ")) == canonicalize(_params(origin="ATL"))
    assert canonicalize(_params()) == "ATL_CUN_2026-01-10_2026-01-15_1_2"


def test_canonicalize_distinguishes_occupancy():
    one_room = canonicalize(_params())
    other_adults = canonicalize(_params(adults_per_room=[3]))
    two_rooms = canonicalize(_params(rooms=2, adults_per_room=[2, 2], children_per_room=[0, 0]))
    assert len({one_room, other_adults, two_rooms}) == 3


def test_canonicalize_appends_children_and_ages():
    params = _params(rooms=2, adults_per_room=[2, 1], children_per_room=[1, 0], child_ages=[[5], []])
    assert canonicalize(params) == "ATL_CUN_2026-01-10_2026-01-15_2_2-1_1-0_5_"


def test_canonicalize_omits_ages_segment_when_no_ages_supplied():
    params = _params(rooms=2, adults_per_room=[2, 1], children_per_room=[1, 0])
    assert canonicalize(params) == "ATL_CUN_2026-01-10_2026-01-15_2_2-1_1-0"
    with_ages = _params(rooms=2, adults_per_room=[2, 1], children_per_room=[1, 0], child_ages=[[5], []])
    assert canonicalize(params) != canonicalize(with_ages)


@pytest.mark.asyncio
async def test_result_cache_round_trip(tmp_path):
    cache = ResultCache(tmp_path / "cache.sqlite3")
    await cache.initialize()
    rooms = [
        RoomOption(code="DLX", name="Deluxe", total_price=1250.0, price_per_person=625.0, promotions=["Kids Free"]),
        RoomOption(code="STD", name="Standard", total_price=900.0, value_indicators=["Best Value"]),
    ]
    hotels = [
        _hotel("1", rooms, review_rating=4.5, review_count=10, distance_miles=1.5, certification="CLEAN"),
        _hotel("2", []),
    ]

    assert await cache.get(_params()) is None
    assert await cache.put(_params(), hotels) is True

    cached = await cache.get(_params(origin="A.T.L"))
    assert cached == hotels
    await cache.close()


@pytest.mark.asyncio
async def test_result_cache_overwrite_leaves_no_stale_rooms(tmp_path):
    db_path = tmp_path / "cache.sqlite3"
    cache = ResultCache(db_path)
    await cache.initialize()
    first = [_hotel("1", [RoomOption(code="A", name="A"), RoomOption(code="B", name="B")]), _hotel("2", [])]
    second = [_hotel("1", [RoomOption(code="C", name="C", total_price=10.0)])]

    await cache.put(_params(), first)
    await cache.put(_params(), second)

    assert await cache.get(_params()) == second
    await cache.close()

    with sqlite3.connect(db_path) as conn:
        assert conn.execute("SELECT COUNT(*) FROM cached_hotels").fetchone()[0] == 1
        assert conn.execute("SELECT COUNT(*) FROM cached_rooms").fetchone()[0] == 1


@pytest.mark.asyncio
async def test_result_cache_caches_empty_aggregate(tmp_path):
    cache = ResultCache(tmp_path / "cache.sqlite3")
    await cache.put(_params(), [])
    assert await cache.get(_params()) == []
    await cache.close()


@pytest.mark.asyncio
async def test_result_cache_evicts_old_entries(tmp_path):
    clock = _Clock()
    cache = ResultCache(tmp_path / "cache.sqlite3", clock=clock)
    await cache.initialize()
    await cache.put(_params(), [_hotel("1", [RoomOption(code="A", name="A")])])
    clock.now += timedelta(days=5)
    await cache.put(_params(destination="PUJ"), [])

    clock.now += timedelta(days=3)
    assert await cache.evict_older_than(7) == 1
    assert await cache.get(_params()) is None
    assert await cache.get(_params(destination="PUJ")) == []
    assert await cache.evict_older_than(7) == 0
    await cache.close()


@pytest.mark.asyncio
async def test_result_cache_degrades_to_miss_on_corrupt_database(tmp_path):
    db_path = tmp_path / "cache.sqlite3"
    db_path.write_bytes(b"this is not a sqlite database" * 100)
    cache = ResultCache(db_path)

    assert await cache.get(_params()) is None
    assert await cache.put(_params(), [_hotel("1", [])]) is False
