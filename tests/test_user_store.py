"""
Tests for the user store implementations.

The same contract checks run against the in-memory store and the
SQLAlchemy store (on a throwaway SQLite file via aiosqlite).
"""

import asyncio
import uuid

import pytest

from database.session import build_engine, build_session_factory, init_models
from database.user_store import (
    DuplicateEmailError,
    InMemoryUserStore,
    RecordValidationError,
    SqlAlchemyUserStore,
    StoreError,
)


async def _sqlite_store(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'users.db'}")
    await init_models(engine)
    return engine, SqlAlchemyUserStore(build_session_factory(engine))


async def _run_contract(store):
    user = await store.create("Ada L", "ada@test.local", "$2b$10$hash")
    assert user is not None
    assert isinstance(user.user_id, uuid.UUID)
    assert user.created_at is not None

    assert (await store.find_by_email("ada@test.local")).user_id == user.user_id
    assert (await store.find_by_id(str(user.user_id))).email == "ada@test.local"
    assert await store.find_by_email("nobody@test.local") is None
    assert await store.find_by_id(str(uuid.uuid4())) is None
    assert await store.find_by_id("not-a-uuid") is None

    with pytest.raises(DuplicateEmailError):
        await store.create("Ada Again", "ada@test.local", "$2b$10$other")

    updated = await store.update_by_id(str(user.user_id), {"name": "Ada Lovelace"})
    assert updated.name == "Ada Lovelace"
    assert updated.email == "ada@test.local"
    assert updated.updated_at >= user.created_at

    with pytest.raises(RecordValidationError):
        await store.update_by_id(str(user.user_id), {"name": "Al"})
    assert (await store.find_by_id(str(user.user_id))).name == "Ada Lovelace"

    with pytest.raises(RecordValidationError):
        await store.update_by_id(str(user.user_id), {"user_id": uuid.uuid4()})

    other = await store.create("Grace H", "grace@test.local", "$2b$10$hash")
    with pytest.raises(DuplicateEmailError):
        await store.update_by_id(str(other.user_id), {"email": "ada@test.local"})

    assert await store.update_by_id(str(uuid.uuid4()), {"name": "Nobody"}) is None


class TestInMemoryUserStore:
    @pytest.mark.asyncio
    async def test_contract(self):
        await _run_contract(InMemoryUserStore())

    @pytest.mark.asyncio
    async def test_concurrent_registrations_same_email(self):
        store = InMemoryUserStore()
        results = await asyncio.gather(
            *(store.create("Ada L", "ada@test.local", "h") for _ in range(5)),
            return_exceptions=True,
        )
        created = [r for r in results if not isinstance(r, Exception)]
        assert len(created) == 1
        assert all(isinstance(r, DuplicateEmailError) for r in results if r not in created)
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_invalid_email_rejected_on_create(self):
        with pytest.raises(RecordValidationError):
            await InMemoryUserStore().create("Ada L", "nope", "h")


class TestSqlAlchemyUserStore:
    @pytest.mark.asyncio
    async def test_contract(self, tmp_path):
        engine, store = await _sqlite_store(tmp_path)
        try:
            await _run_contract(store)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_storage_failure_is_store_error(self, tmp_path):
        # No tables created, so every query fails at the database.
        engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        store = SqlAlchemyUserStore(build_session_factory(engine))
        try:
            with pytest.raises(StoreError) as exc_info:
                await store.find_by_email("ada@test.local")
            assert not isinstance(exc_info.value, DuplicateEmailError)
        finally:
            await engine.dispose()


class TestWriteTimeEmailCheck:
    @pytest.mark.asyncio
    async def test_in_memory_rejects_trailing_newline(self):
        store = InMemoryUserStore()
        with pytest.raises(RecordValidationError):
            await store.create("Ada L", "ada@test.local\n", "h")
        user = await store.create("Ada L", "ada@test.local", "h")
        with pytest.raises(RecordValidationError):
            await store.update_by_id(str(user.user_id), {"email": "grace@test.local\n"})
        assert (await store.find_by_id(str(user.user_id))).email == "ada@test.local"
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_sqlalchemy_rejects_trailing_newline(self, tmp_path):
        engine, store = await _sqlite_store(tmp_path)
        try:
            with pytest.raises(RecordValidationError):
                await store.create("Ada L", "ada@test.local\n", "h")
            assert await store.find_by_email("ada@test.local\n") is None
        finally:
            await engine.dispose()
