from typing import Dict

import pytest

from app.ring import ConsistentHashRing


class StubHasher:
    """Maps known inputs to fixed positions; anything else hashes to 0."""

    name = "stub"
    bits = 32

    def __init__(self, table: Dict[str, int]):
        self.table = table
        self.calls = []

    @property
    def max_position(self) -> int:
        return (1 << self.bits) - 1

    def hash(self, value) -> int:
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        self.calls.append(value)
        return self.table.get(str(value), 0)


SCENARIO_POSITIONS = {
    "A0": 10,
    "A1": 40,
    "A2": 70,
    "A3": 100,
    "B0": 20,
    "B1": 50,
    "B2": 80,
    "B3": 110,
    "r15": 15,
    "r45": 45,
    "r110": 110,
    "r115": 115,
}


@pytest.fixture
def stub_hasher():
    return StubHasher(dict(SCENARIO_POSITIONS))


@pytest.fixture
def scenario_ring(stub_hasher):
    ring = ConsistentHashRing(stub_hasher, replicas=4, chooser=lambda targets: targets[0])
    ring.add_targets(["A", "B"])
    return ring
