import logging
from typing import Dict, Hashable, Iterable, List, Optional

from .config import Settings, settings as default_settings
from .exceptions import NoTargets
from .hashers import Hasher, create_hasher
from .models import DistributionReport
from .ring import ConsistentHashRing

logger = logging.getLogger("ring.distribution")


class ModuloSharder:
    """Simple key modulo sharding for comparison."""

    def __init__(self, targets: Iterable[Hashable], hasher: Hasher):
        self.targets = list(targets)
        self.hasher = hasher

    def assign(self, key: Hashable) -> Hashable:
        if not self.targets:
            raise NoTargets()
        return self.targets[self.hasher.hash(key) % len(self.targets)]

    def distribution(self, keys: Iterable[Hashable]) -> Dict[Hashable, int]:
        counts: Dict[Hashable, int] = {}
        for key in keys:
            target = self.assign(key)
            counts[target] = counts.get(target, 0) + 1
        return counts


class DistributionHarness:
    """Runs repeated lookups against a ring and tallies where keys land."""

    def __init__(self, ring: ConsistentHashRing):
        self.ring = ring

    def tally(self, keys: Iterable[Hashable]) -> Dict[Hashable, int]:
        counts = {target: 0 for target in self.ring.get_all_targets()}
        for key in keys:
            counts[self.ring.lookup(key)] += 1
        return counts

    @staticmethod
    def spread(counts: Dict[Hashable, int]) -> int:
        if not counts:
            return 0
        return max(counts.values()) - min(counts.values())

    def owners(self, keys: Iterable[Hashable]) -> Dict[Hashable, Optional[Hashable]]:
        result = {}
        for key in keys:
            targets = self.ring.lookup_list(key, 1)
            result[key] = targets[0] if targets else None
        return result

    def remap_fraction(self, keys: Iterable[Hashable], target: Hashable, weight: float = 1) -> float:
        """Share of ``keys`` whose owner changes when ``target`` joins the ring.

        The ring is left without ``target`` afterwards.
        """
        keys = list(keys)
        if not keys:
            return 0.0
        before = self.owners(keys)
        self.ring.add_target(target, weight)
        try:
            after = self.owners(keys)
        finally:
            self.ring.remove_target(target)
        moved = sum(1 for key in keys if before[key] != after[key])
        return moved / len(keys)

    def modulo_comparison(self, keys: Iterable[Hashable]) -> Dict[str, Dict[Hashable, int]]:
        keys = list(keys)
        modulo = ModuloSharder(self.ring.get_all_targets(), self.ring.hasher)
        return {
            "consistent_hash": self.ring.distribution(keys),
            "modulo": modulo.distribution(keys),
        }

    def report(self, keys: Iterable[Hashable]) -> DistributionReport:
        keys = list(keys)
        counts = self.tally(keys)
        return DistributionReport(
            hasher=getattr(self.ring.hasher, "name", type(self.ring.hasher).__name__),
            replicas=self.ring.replicas,
            key_count=len(keys),
            counts={str(k): v for k, v in counts.items()},
            spread=self.spread(counts),
        )


def build_ring(config: Settings) -> ConsistentHashRing:
    ring = ConsistentHashRing(create_hasher(config.hasher), replicas=config.replicas)
    # two bulk calls, as a cluster would grow in steps
    half = len(config.targets) // 2
    ring.add_targets(config.targets[:half], config.target_weight)
    ring.add_targets(config.targets[half:], config.target_weight)
    return ring


def run_repartition(config: Optional[Settings] = None) -> DistributionReport:
    config = config or default_settings
    ring = build_ring(config)
    keys: List[str] = [str(i) for i in range(1, config.sample_keys + 1)]

    report = DistributionHarness(ring).report(keys)
    logger.info(
        "Repartition finished",
        extra={"ring": str(ring), "counts": report.counts, "spread": report.spread},
    )
    return report


if __name__ == "__main__":
    from .logging_config import setup_json_logging

    setup_json_logging(default_settings.log_level)
    result = run_repartition()
    print(" | ".join(str(count) for count in result.counts.values()))
