import threading
import time

import pytest

from noctua.worker import RateLimiter, Worker


def test_limiter_first_token_is_immediate():
    limiter = RateLimiter(60.0)
    start = time.monotonic()
    assert limiter.wait() is True
    assert time.monotonic() - start < 0.5


def test_limiter_returns_false_when_cancelled_while_waiting():
    limiter = RateLimiter(60.0)
    assert limiter.wait() is True
    cancelled = threading.Event()
    threading.Timer(0.05, cancelled.set).start()
    start = time.monotonic()
    assert limiter.wait(cancelled) is False
    assert time.monotonic() - start < 5


def test_limiter_returns_false_when_already_cancelled():
    cancelled = threading.Event()
    cancelled.set()
    assert RateLimiter(0).wait(cancelled) is False


def test_limiter_spaces_calls():
    limiter = RateLimiter(0.1)
    start = time.monotonic()
    results = [limiter.wait() for _ in range(3)]
    assert results == [True, True, True]
    assert time.monotonic() - start >= 0.18


def test_limiter_rejects_negative_interval():
    with pytest.raises(ValueError):
        RateLimiter(-1)


def test_worker_rejects_non_positive_qps():
    with pytest.raises(ValueError):
        Worker("q", 30, 0)


def test_worker_id_carries_queue_key():
    worker = Worker("search", 30, 1)
    assert worker.id.startswith("search-")
    assert worker.queue_key == "search"


def test_worker_limiter_interval_is_per_minute():
    worker = Worker("q", 30, 60)
    assert worker.limiter.interval == pytest.approx(1.0)


def test_try_acquire_is_exclusive_until_release():
    worker = Worker("q", 30, 1)
    assert worker.is_active() is False
    assert worker.try_acquire() is True
    assert worker.is_active() is True
    assert worker.try_acquire() is False
    worker.release()
    assert worker.is_active() is False
    assert worker.try_acquire() is True


def test_release_refreshes_last_active():
    worker = Worker("q", 30, 1)
    worker.last_active -= 100
    assert worker.idle_seconds >= 100
    worker.try_acquire()
    worker.release()
    assert worker.idle_seconds < 5


def test_stop_is_idempotent():
    worker = Worker("q", 30, 1)
    assert worker.stopped() is False
    worker.stop()
    worker.stop()
    assert worker.stopped() is True