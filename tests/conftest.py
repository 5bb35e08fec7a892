"""
tests/conftest.py

Fixtures wiring the comparison engine to in-memory fakes.
"""

from __future__ import annotations

import pytest

from app.comparison import (
    ComparisonCoordinator,
    CompetitorSnapshotBuilder,
    InMemoryCacheStore,
    StaticSiteSectionSource,
    SubjectSnapshotBuilder,
)
from tests.fakes import COMPETITOR_TARGETS, SUBJECT_TARGETS, FakeClock, FakeProviders


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def providers() -> FakeProviders:
    fake = FakeProviders()
    fake.load_site(SUBJECT_TARGETS, scale=1)
    fake.load_site(COMPETITOR_TARGETS, scale=2)
    return fake


@pytest.fixture()
def cache_store(clock: FakeClock) -> InMemoryCacheStore:
    return InMemoryCacheStore(clock=clock)


@pytest.fixture()
def site_cache() -> StaticSiteSectionSource:
    return StaticSiteSectionSource()


@pytest.fixture()
def coordinator(
    providers: FakeProviders,
    cache_store: InMemoryCacheStore,
    site_cache: StaticSiteSectionSource,
    clock: FakeClock,
) -> ComparisonCoordinator:
    gateway = providers.gateway()
    return ComparisonCoordinator(
        cache_store=cache_store,
        subject_builder=SubjectSnapshotBuilder(gateway=gateway, site_cache=site_cache),
        competitor_builder=CompetitorSnapshotBuilder(gateway=gateway),
        ttl_days=7,
        clock=clock,
    )
