"""Property-based tests for the latest-version and sweep invariants using hypothesis."""

import tempfile
from datetime import timedelta
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tests.helpers import BACKENDS, BASE_TIME, FakeClock, make_storage

pytestmark = pytest.mark.unit

# Offsets in minutes relative to BASE_TIME; small range so ties are common
offsets = st.lists(st.integers(min_value=-5, max_value=5), min_size=1, max_size=8)

property_settings = settings(max_examples=25, deadline=None)


@pytest.mark.parametrize("backend", BACKENDS)
@given(created_offsets=offsets)
@property_settings
def test_latest_is_max_created_at_with_last_insert_winning_ties(
    backend: str, created_offsets: list[int]
) -> None:
    clock = FakeClock()
    with tempfile.TemporaryDirectory() as directory:
        storage = make_storage(backend, Path(directory), clock)
        try:
            project_id = storage.create_project("p", "P")
            for i, offset in enumerate(created_offsets):
                clock.set(BASE_TIME + timedelta(minutes=offset))
                storage.create_model_version(project_id, f"v{i}", f"https://example.com/{i}.ifc")

            newest = max(created_offsets)
            expected = max(i for i, offset in enumerate(created_offsets) if offset == newest)

            latest = storage.get_latest_model_version(project_id)
            assert latest is not None
            assert latest.version == f"v{expected}"
        finally:
            storage.close()


@pytest.mark.parametrize("backend", BACKENDS)
@given(expiry_offsets=offsets)
@property_settings
def test_sweep_deletes_exactly_tokens_expired_before_now(
    backend: str, expiry_offsets: list[int]
) -> None:
    clock = FakeClock()
    with tempfile.TemporaryDirectory() as directory:
        storage = make_storage(backend, Path(directory), clock)
        try:
            project_id = storage.create_project("p", "P")
            version_id = storage.create_model_version(project_id, "v1", "https://example.com/m.ifc")
            for i, offset in enumerate(expiry_offsets):
                storage.create_token(
                    f"t{i}", project_id, version_id, "GID", BASE_TIME + timedelta(minutes=offset)
                )

            deleted = storage.delete_expired_tokens(BASE_TIME)

            assert deleted == sum(1 for offset in expiry_offsets if offset < 0)
            for i, offset in enumerate(expiry_offsets):
                survived = storage.get_token_data(f"t{i}") is not None
                assert survived == (offset >= 0)
            assert storage.delete_expired_tokens(BASE_TIME) == 0
        finally:
            storage.close()
