import bisect
import math
import random
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence

from .exceptions import InvalidLookupCount, NoTargets, TargetAlreadyExists, TargetNotFound
from .hashers import Crc32Hasher, Hasher

DEFAULT_REPLICAS = 64

Chooser = Callable[[Sequence[Hashable]], Hashable]


class ConsistentHashRing:
    """Consistent hashing ring with weighted virtual positions and a pluggable hasher.

    Each target is hashed to ``round(replicas * weight)`` positions from the
    string ``f"{target}{i}"``. When two inputs land on the same position the
    later one owns it, so a registered target can end up with no positions
    of its own and is then never returned by a lookup. If every registered
    target is in that state, ``lookup`` raises ``NoTargets`` although
    ``len(ring)`` is non-zero. Weights that round to zero positions are
    rejected with ``ValueError``. The sorted position index is rebuilt lazily
    on the first lookup after a mutation.

    Not safe for concurrent mutation; callers sharing a ring across threads
    must serialize access.
    """

    def __init__(
        self,
        hasher: Optional[Hasher] = None,
        replicas: int = DEFAULT_REPLICAS,
        chooser: Chooser = random.choice,
    ):
        if replicas <= 0:
            raise ValueError("replicas must be > 0")
        self.hasher: Hasher = hasher or Crc32Hasher()
        self.replicas = replicas
        self.chooser = chooser

        self._position_to_target: Dict[int, Hashable] = {}
        self._target_to_positions: Dict[Hashable, List[int]] = {}
        self._target_count = 0
        self._positions: Optional[List[int]] = None
        self._position_count = 0

    def _replica_count(self, weight: float) -> int:
        if not math.isfinite(weight):
            raise ValueError(f"weight must be finite, got {weight}")
        # half-up rounding so 0.5 steps behave the same for every weight
        count = int(math.floor(self.replicas * weight + 0.5))
        if count < 1:
            raise ValueError(f"weight {weight} gives no positions with {self.replicas} replicas")
        return count

    def add_target(self, target: Hashable, weight: float = 1) -> "ConsistentHashRing":
        if target in self._target_to_positions:
            raise TargetAlreadyExists(target)
        count = self._replica_count(weight)

        positions: List[int] = []
        for i in range(count):
            position = self.hasher.hash(f"{target}{i}")
            self._position_to_target[position] = target
            positions.append(position)

        self._target_to_positions[target] = positions
        self._positions = None
        self._target_count += 1
        return self

    def add_targets(self, targets: Iterable[Hashable], weight: float = 1) -> "ConsistentHashRing":
        """Add targets one by one; a failure keeps the targets added before it."""
        for target in targets:
            self.add_target(target, weight)
        return self

    def add_targets_atomic(self, targets: Iterable[Hashable], weight: float = 1) -> "ConsistentHashRing":
        """Add all targets or none of them."""
        targets = list(targets)
        seen = set()
        for target in targets:
            if target in self._target_to_positions or target in seen:
                raise TargetAlreadyExists(target)
            seen.add(target)
        self._replica_count(weight)
        return self.add_targets(targets, weight)

    def remove_target(self, target: Hashable) -> "ConsistentHashRing":
        if target not in self._target_to_positions:
            raise TargetNotFound(target)

        for position in self._target_to_positions.pop(target):
            # a later colliding target keeps the position
            if self._position_to_target.get(position) == target:
                del self._position_to_target[position]

        self._positions = None
        self._target_count -= 1
        return self

    def get_all_targets(self) -> List[Hashable]:
        return list(self._target_to_positions)

    def positions_for(self, target: Hashable) -> List[int]:
        if target not in self._target_to_positions:
            raise TargetNotFound(target)
        return list(self._target_to_positions[target])

    @property
    def position_count(self) -> int:
        return len(self._position_to_target)

    def compile(self) -> None:
        if self._positions is None:
            self._positions = sorted(self._position_to_target)
            self._position_count = len(self._positions)

    def lookup_list(self, resource: Hashable, requested_count: int) -> List[Hashable]:
        """Targets for ``resource`` in order of precedence.

        Walks ``requested_count`` positions clockwise from the resource and
        drops repeated targets, so fewer targets than requested may come back
        even when the ring holds more.
        """
        if requested_count <= 0:
            raise InvalidLookupCount(requested_count)

        if self._target_count == 0:
            return []
        if self._target_count == 1:
            return list(self._target_to_positions)

        resource_position = self.hasher.hash(resource)
        self.compile()
        positions = self._positions

        probe = bisect.bisect_right(positions, resource_position)
        if probe == self._position_count:
            probe = 0

        results: List[Hashable] = []
        # past one full lap no new targets can appear
        for _ in range(min(requested_count, self._position_count)):
            target = self._position_to_target[positions[probe]]
            if target not in results:
                results.append(target)
            probe += 1
            if probe == self._position_count:
                probe = 0
        return results

    def lookup(self, resource: Hashable, replicas: int = 1) -> Hashable:
        """One target for ``resource``, chosen among the top ``replicas`` owners."""
        targets = self.lookup_list(resource, replicas)
        if not targets:
            raise NoTargets()
        if len(targets) == 1:
            return targets[0]
        return self.chooser(targets)

    def distribution(self, keys: Iterable[Hashable]) -> Dict[Hashable, int]:
        counts: Dict[Hashable, int] = {}
        for key in keys:
            for node in self.lookup_list(key, 1):
                counts[node] = counts.get(node, 0) + 1
        return counts

    def position_share(self) -> Dict[Hashable, float]:
        total = len(self._position_to_target)
        if total == 0:
            return {}
        counts: Dict[Hashable, int] = {}
        for target in self._position_to_target.values():
            counts[target] = counts.get(target, 0) + 1
        return {target: count / total for target, count in counts.items()}

    def __len__(self) -> int:
        return self._target_count

    def __contains__(self, target: Hashable) -> bool:
        return target in self._target_to_positions

    def __str__(self) -> str:
        return "%s{targets:[%s]}" % (
            type(self).__name__,
            ",".join(str(t) for t in self.get_all_targets()),
        )
