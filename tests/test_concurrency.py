import threading
import time
import unittest
from unittest.mock import MagicMock

from keybind import Container


THREADS = 16


def run_concurrently(target):
    barrier = threading.Barrier(THREADS)
    results = []
    lock = threading.Lock()

    def worker():
        barrier.wait()
        value = target()
        with lock:
            results.append(value)

    threads = [threading.Thread(target=worker) for _ in range(THREADS)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


class TestConcurrentResolution(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_shared_producer_runs_once_under_concurrent_first_resolution(self):
        def slow_make():
            # widen the race window
            time.sleep(0.05)
            return object()

        producer = MagicMock(side_effect=slow_make)
        self.cont.register_shared("service", lambda: producer())

        results = run_concurrently(lambda: self.cont.get("service"))

        assert producer.call_count == 1
        assert len(results) == THREADS
        assert all(r is results[0] for r in results)

    def test_factory_runs_for_every_concurrent_resolution(self):
        calls = []

        def make():
            calls.append(1)
            return object()

        self.cont.register_factory("service", make)

        results = run_concurrently(lambda: self.cont.get("service"))

        assert len(calls) == THREADS
        assert len({id(r) for r in results}) == THREADS

    def test_shared_producer_may_resolve_from_container_while_others_wait(self):
        self.cont.register_shared("db", lambda: object())
        self.cont.register_shared("repo", lambda c: (time.sleep(0.05), c.get("db"))[1])

        results = run_concurrently(lambda: self.cont.get("repo"))

        assert all(r is self.cont.get("db") for r in results)

    def test_registration_during_resolution(self):
        self.cont.register_shared("entry", lambda: "old")

        def register_and_get():
            self.cont.register_shared("entry", lambda: "new")
            return self.cont.get("entry")

        results = run_concurrently(register_and_get)

        assert results == ["new"] * THREADS
        assert self.cont.get("entry") == "new"
