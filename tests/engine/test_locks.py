"""Tests for per-key mutation locks in CabDispatch."""

import threading

import pytest

from cabdispatch.engine.errors import ConcurrentModification
from cabdispatch.engine.locks import KeyedLocks, booking_key, driver_key


class TestKeyedLocks:
    """Test class for booking and driver serialisation."""

    def test_second_holder_gets_concurrent_modification(self):
        locks = KeyedLocks(timeout=0.05)
        holding = threading.Event()
        release = threading.Event()
        errors = []

        def first():
            with locks.hold(booking_key("b-1")):
                holding.set()
                release.wait(2)

        def second():
            try:
                with locks.hold(booking_key("b-1"), driver_key("d-1")):
                    pass
            except ConcurrentModification as e:
                errors.append(e)

        t1 = threading.Thread(target=first)
        t1.start()
        holding.wait(2)
        t2 = threading.Thread(target=second)
        t2.start()
        t2.join(2)
        release.set()
        t1.join(2)

        assert len(errors) == 1
        assert errors[0].key == "booking:b-1"

    def test_partial_acquisition_is_released(self):
        """A holder that fails on a later key gives back the earlier ones."""
        locks = KeyedLocks(timeout=0.05)
        held = threading.Event()
        release = threading.Event()

        def hold_driver():
            with locks.hold(driver_key("d-1")):
                held.set()
                release.wait(2)

        t = threading.Thread(target=hold_driver)
        t.start()
        held.wait(2)

        with pytest.raises(ConcurrentModification):
            with locks.hold(booking_key("b-1"), driver_key("d-1")):
                pass

        release.set()
        t.join(2)

        with locks.hold(booking_key("b-1")):
            pass

    def test_disjoint_keys_do_not_block(self):
        locks = KeyedLocks(timeout=0.05)
        with locks.hold(booking_key("b-1")):
            with locks.hold(booking_key("b-2")):
                pass

    def test_duplicate_and_empty_keys(self):
        locks = KeyedLocks(timeout=0.05)
        with locks.hold(booking_key("b-1"), booking_key("b-1"), driver_key(None)):
            pass

    def test_serialises_updates(self):
        locks = KeyedLocks(timeout=None)
        counter = {"value": 0}

        def bump():
            for _ in range(200):
                with locks.hold("booking:shared"):
                    current = counter["value"]
                    counter["value"] = current + 1

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert counter["value"] == 800
