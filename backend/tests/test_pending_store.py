import threading
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest
import redis

from otpauth.auth.pending_store import (
    InMemoryPendingStore,
    PendingRegistration,
    RedisPendingStore,
    build_pending_store,
)

def make_pending(email="dave@mail.com", otp="123456"):
    return PendingRegistration(
        email=email,
        password_hash="$2b$04$hash",
        otp=otp,
        otp_expires_at=datetime(2024, 1, 1, 12, 10, 0)
    )

class TestPendingRegistration:

    def test_expiry_boundary(self):
        pending = make_pending()

        assert not pending.is_expired(datetime(2024, 1, 1, 12, 9, 59))
        assert pending.is_expired(datetime(2024, 1, 1, 12, 10, 0))

    def test_json_round_trip_keeps_expiry(self):
        pending = make_pending()

        restored = PendingRegistration.from_json(pending.to_json())

        assert restored == pending

class TestInMemoryPendingStore:

    def test_save_get_delete(self):
        store = InMemoryPendingStore()
        pending = make_pending()

        store.save(pending)
        assert store.get(pending.email) == pending
        assert pending.email in store

        store.delete(pending.email)
        assert store.get(pending.email) is None
        assert len(store) == 0

    def test_save_overwrites_by_email(self):
        store = InMemoryPendingStore()

        store.save(make_pending(otp="111111"))
        store.save(make_pending(otp="222222"))

        assert len(store) == 1
        assert store.get("dave@mail.com").otp == "222222"

    def test_delete_missing_is_noop(self):
        InMemoryPendingStore().delete("nobody@mail.com")

    def test_lock_is_per_email(self):
        store = InMemoryPendingStore()
        other_acquired = threading.Event()

        def lock_other():
            with store.lock("other@mail.com"):
                other_acquired.set()

        with store.lock("dave@mail.com"):
            thread = threading.Thread(target=lock_other)
            thread.start()
            assert other_acquired.wait(timeout=2)
            thread.join(timeout=2)

    def test_lock_serializes_same_email(self):
        store = InMemoryPendingStore()
        entered = threading.Event()

        def lock_same():
            with store.lock("dave@mail.com"):
                entered.set()

        with store.lock("dave@mail.com"):
            thread = threading.Thread(target=lock_same)
            thread.start()
            assert not entered.wait(timeout=0.2)

        assert entered.wait(timeout=2)
        thread.join(timeout=2)
        assert store._key_locks == {}

    def test_lock_entry_dropped_after_release(self):
        store = InMemoryPendingStore()

        with store.lock("dave@mail.com"):
            assert "dave@mail.com" in store._key_locks

        assert store._key_locks == {}

    def test_lock_entry_dropped_after_error(self):
        store = InMemoryPendingStore()

        with pytest.raises(RuntimeError):
            with store.lock("dave@mail.com"):
                raise RuntimeError("boom")

        assert store._key_locks == {}

class TestRedisPendingStore:

    @pytest.fixture
    def redis_client(self):
        data = {}
        client = Mock(spec=redis.Redis)
        client.get.side_effect = data.get
        client.set.side_effect = lambda key, value: data.__setitem__(key, value)
        client.delete.side_effect = lambda key: data.pop(key, None)
        client.lock.return_value = Mock(acquire=Mock(return_value=True))
        client.data = data
        return client

    def test_save_writes_json_without_ttl(self, redis_client):
        store = RedisPendingStore(redis_client)
        pending = make_pending()

        store.save(pending)

        redis_client.set.assert_called_once_with("pending_registration:dave@mail.com", pending.to_json())
        assert store.get(pending.email) == pending

    def test_get_missing(self, redis_client):
        assert RedisPendingStore(redis_client).get("nobody@mail.com") is None

    def test_delete(self, redis_client):
        store = RedisPendingStore(redis_client)
        store.save(make_pending())

        store.delete("dave@mail.com")

        assert "dave@mail.com" not in store
        assert redis_client.data == {}

    def test_lock_acquires_and_releases(self, redis_client):
        store = RedisPendingStore(redis_client, lock_timeout=7, blocking_timeout=3)

        with store.lock("dave@mail.com"):
            pass

        redis_client.lock.assert_called_once_with(
            "pending_registration_lock:dave@mail.com",
            timeout=7,
            blocking_timeout=3
        )
        redis_client.lock.return_value.release.assert_called_once()

    def test_lock_timeout_raises(self, redis_client):
        redis_client.lock.return_value.acquire.return_value = False
        store = RedisPendingStore(redis_client)

        with pytest.raises(redis.exceptions.LockError):
            with store.lock("dave@mail.com"):
                pass

    def test_lock_released_after_error(self, redis_client):
        store = RedisPendingStore(redis_client)

        with pytest.raises(RuntimeError):
            with store.lock("dave@mail.com"):
                raise RuntimeError("boom")

        redis_client.lock.return_value.release.assert_called_once()

class TestBuildPendingStore:

    def test_memory_backend(self):
        store = build_pending_store(SimpleNamespace(pending_store_backend="memory"))

        assert isinstance(store, InMemoryPendingStore)

    def test_redis_backend(self):
        settings = SimpleNamespace(pending_store_backend="redis", redis_url="redis://cache:6379/2")

        with patch("otpauth.auth.pending_store.redis.from_url") as from_url:
            store = build_pending_store(settings)

        assert isinstance(store, RedisPendingStore)
        from_url.assert_called_once_with("redis://cache:6379/2", decode_responses=True)
