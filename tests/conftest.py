"""Shared fixtures: in-memory fake sources, a controllable clock, no-wait invokers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from flora_catalog.aggregator import Aggregator, CatalogContext
from flora_catalog.cache import RecordCache
from flora_catalog.schemas import Kingdom, SourceTag
from flora_catalog.services.throttle import RateLimiter, RetryPolicy, SourceInvoker
from flora_catalog.store import DataStore

if TYPE_CHECKING:
    from pathlib import Path

START_MS = 1_700_000_000_000

# =============================================================================
# Sample provider payloads
# =============================================================================

PERENUAL_ROSE: dict[str, Any] = {
    "id": 1,
    "common_name": "Sweet Briar",
    "scientific_name": ["Rosa rubiginosa"],
    "other_name": ["Eglantine", "Briar Rose", "Sweetbriar", "Wild Rose"],
    "cycle": "Perennial",
    "watering": "Average",
    "sunlight": ["full sun", "part shade"],
    "default_image": {"regular_url": "https://perenual.com/images/rose.jpg"},
}

INAT_ROSE: dict[str, Any] = {
    "id": 48662,
    "name": "Rosa rubiginosa",
    "preferred_common_name": "Sweet-briar",
    "rank": "species",
    "observations_count": 5120,
}

INAT_DOG_ROSE: dict[str, Any] = {
    "id": 78837,
    "name": "Rosa canina",
    "preferred_common_name": "Dog Rose",
    "rank": "species",
}

TOXIC_DEATH_CAP: dict[str, Any] = {
    "name": "Amanita phalloides",
    "commonname": "Death cap",
    "type": "deadly",
    "agent": "Amatoxins",
    "distribution": ["Europe", "North America", ""],
    "img": "//upload.wikimedia.org/death_cap.jpg",
}

TOXIC_FLY_AGARIC: dict[str, Any] = {
    "name": "Amanita muscaria",
    "commonname": "Fly agaric",
    "type": "Poisonous",
    "agent": "Muscimol",
    "distribution": "Northern Hemisphere",
}


# =============================================================================
# Fakes
# =============================================================================


class FakeSource:
    """Source client double that records calls and replays canned data."""

    def __init__(
        self,
        tag: SourceTag,
        raws: list[Any] | None = None,
        *,
        detail: dict[str, Any] | None = None,
        error: Exception | None = None,
        server_side_query: bool = True,
        taxon_filter: bool = False,
        kingdoms: frozenset[Kingdom] = frozenset({Kingdom.PLANTAE, Kingdom.FUNGI}),
        has_detail_endpoint: bool = True,
    ) -> None:
        self.tag = tag
        self.raws = raws or []
        self.detail = detail
        self.error = error
        self.server_side_query = server_side_query
        self.taxon_filter = taxon_filter
        self.kingdoms = kingdoms
        self.has_detail_endpoint = has_detail_endpoint
        self.list_calls: list[tuple[str, int, Kingdom | None]] = []
        self.filter_calls: list[dict[str, Any]] = []
        self.id_calls: list[str] = []

    async def fetch_list(
        self,
        query: str,
        page: int,
        kingdom: Kingdom | None = None,
        filters: dict[str, Any] | None = None,
    ) -> list[Any]:
        self.list_calls.append((query, page, kingdom))
        self.filter_calls.append(dict(filters or {}))
        if self.error is not None:
            raise self.error
        return list(self.raws)

    async def fetch_by_id(self, native_id: str) -> dict[str, Any]:
        self.id_calls.append(native_id)
        if self.error is not None:
            raise self.error
        assert self.detail is not None
        return self.detail


class Clock:
    """Settable epoch-millisecond clock."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class SleepRecorder:
    """Awaitable sleep that returns immediately and records durations."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def store(tmp_path: Path) -> DataStore:
    return DataStore(tmp_path)


@pytest.fixture
def cache(store: DataStore, clock: Clock) -> RecordCache:
    return RecordCache(store, clock=clock)


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def invoker(sleep: SleepRecorder) -> SourceInvoker:
    """Invoker with no cooldown and two attempts per source, never really sleeping."""
    return SourceInvoker(
        RateLimiter(cooldown=0, sleep=sleep),
        default_policy=RetryPolicy(max_attempts=2, delay_seconds=0.5),
        sleep=sleep,
    )


def make_aggregator(
    cache: RecordCache,
    invoker: SourceInvoker,
    *sources: FakeSource,
    config: dict[SourceTag, Any] | None = None,
) -> Aggregator:
    return Aggregator(
        cache,
        sources={s.tag: s for s in sources},
        config=config,
        context=CatalogContext(invoker=invoker),
    )
