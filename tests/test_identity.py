import itertools
import re

from eavesdrop.identity import COUNTER_WRAP, IdGenerator


def broken_random():
    raise NotImplementedError("no randomness here")


def test_ids_are_unique():
    generate = IdGenerator()
    ids = [generate() for _ in range(10_000)]
    assert len(set(ids)) == len(ids)


def test_uses_random_source():
    generate = IdGenerator(random_source=lambda: "fixed")
    assert generate() == "fixed"


def test_fallback_when_random_source_fails():
    generate = IdGenerator(random_source=broken_random)
    ids = [generate() for _ in range(1000)]

    assert all(re.fullmatch(r"\d+-\d+", i) for i in ids)
    # Same millisecond or not, the counter keeps them apart
    assert len(set(ids)) == len(ids)


def test_fallback_counter_wraps():
    generate = IdGenerator(random_source=broken_random)
    generate._counter = itertools.count(COUNTER_WRAP - 1)

    assert generate().endswith(f"-{COUNTER_WRAP - 1}")
    assert generate().endswith("-0")
    assert generate().endswith("-1")
