import threading

import pytest

from damsim.time import AtomicTime, Time


def test_time_equality():
    inf0 = Time(0, True)
    inf1 = Time(1, True)
    assert inf0 == inf1
    assert inf1 == inf0

    fin0 = Time(0)
    assert fin0 != inf0
    assert inf0 != fin0

    fin00 = Time(0)
    assert fin0 == fin00
    assert fin00 == fin0


def test_time_cmp():
    inf0 = Time.infinite()
    fin1 = Time(1)
    assert inf0 > fin1
    assert fin1 < inf0

    fin0 = Time(0)
    assert fin0 < fin1
    assert fin1 > fin0

    assert min(inf0, fin1) == fin1
    assert max(inf0, fin1) == inf0
    assert min(fin0, fin1) == fin0
    assert max(fin0, fin1) == fin1


def test_time_add():
    fin0 = Time(0)
    fin42 = fin0 + 42
    assert fin42.time == 42
    assert not fin42.done

    fin1 = Time(1)
    fin1 += 1
    assert fin1.time == 2


def test_add_times_merges_done_flag():
    total = Time(3) + Time(4, True)
    assert total.time == 7
    assert total.is_infinite()


def test_sub_below_zero_raises():
    with pytest.raises(ValueError):
        Time(1) - 2
    assert (Time(5) - 2).time == 3


def test_negative_time_rejected():
    with pytest.raises(ValueError):
        Time(-1)


def test_str_and_with_infinite():
    assert str(Time(42)) == "42"
    marked = Time(7).with_infinite()
    assert marked.time == 7
    assert str(marked) == "inf 7"


def test_equal_times_hash_equal():
    assert hash(Time(0, True)) == hash(Time(9, True))
    assert len({Time(3), Time(3), Time(1, True), Time(2, True)}) == 2


def test_compare_with_int():
    assert Time(3) == 3
    assert Time(2) < 3
    assert Time.infinite() > 10**9


def test_atomic_try_advance():
    clock = AtomicTime()
    assert clock.try_advance(Time(5))
    assert not clock.try_advance(Time(3))
    assert clock.load() == Time(5)
    assert clock.try_advance(Time.infinite())
    assert not clock.try_advance(Time(100))
    assert clock.load().is_infinite()
    assert clock.load().time == 5


def test_atomic_incr_and_set_infinite():
    clock = AtomicTime()
    clock.incr_cycles(4)
    assert clock.load() == Time(4)
    clock.set_infinite()
    assert clock.load().is_infinite()
    with pytest.raises(ValueError):
        clock.incr_cycles(-1)


def test_atomic_concurrent_increments():
    clock = AtomicTime()

    def work():
        for _ in range(1000):
            clock.incr_cycles(1)

    threads = [threading.Thread(target=work) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert clock.load().time == 4000