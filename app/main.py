import logging
import threading
from typing import Dict, List

from fastapi import FastAPI, HTTPException, Query

from .config import Settings, settings
from .distribution import DistributionHarness, build_ring
from .exceptions import NoTargets, TargetAlreadyExists, TargetNotFound
from .logging_config import setup_json_logging
from .models import (
    AddTargetsRequest,
    DistributionRequest,
    LookupListResponse,
    LookupResponse,
    RingInfo,
)
from .ring import ConsistentHashRing


class RingRegistry:
    """Holds the service's ring; one lock covers every mutation and lookup."""

    def __init__(self, config: Settings):
        self.config = config
        self.ring: ConsistentHashRing = build_ring(config)
        self._lock = threading.Lock()

    def info(self) -> RingInfo:
        with self._lock:
            return RingInfo(
                description=str(self.ring),
                hasher=self.config.hasher,
                replicas=self.ring.replicas,
                targets=[str(t) for t in self.ring.get_all_targets()],
                position_count=self.ring.position_count,
            )

    def add(self, targets: List[str], weight: float, atomic: bool) -> List[str]:
        with self._lock:
            if atomic:
                self.ring.add_targets_atomic(targets, weight)
            else:
                self.ring.add_targets(targets, weight)
            return self.ring.get_all_targets()

    def remove(self, target: str) -> List[str]:
        with self._lock:
            self.ring.remove_target(target)
            return self.ring.get_all_targets()

    def lookup(self, resource: str, replicas: int) -> str:
        with self._lock:
            return self.ring.lookup(resource, replicas)

    def lookup_list(self, resource: str, count: int) -> List[str]:
        with self._lock:
            return self.ring.lookup_list(resource, count)

    def comparison(self, keys: List[str]) -> Dict[str, Dict[str, int]]:
        with self._lock:
            return DistributionHarness(self.ring).modulo_comparison(keys)


setup_json_logging(settings.log_level)
logger = logging.getLogger("ring.service")

app = FastAPI(
    title="Hash Ring Service",
    version="0.1.0",
    description="Consistent hashing ring with weighted targets and pluggable hashers.",
)

registry = RingRegistry(settings)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/ring")
async def ring_info() -> RingInfo:
    return registry.info()


@app.post("/targets")
async def add_targets(request: AddTargetsRequest) -> dict:
    try:
        targets = registry.add(request.targets, request.weight, request.atomic)
    except TargetAlreadyExists as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info("Targets added", extra={"added": request.targets, "weight": request.weight})
    return {"targets": targets}


@app.delete("/targets/{target}")
async def remove_target(target: str) -> dict:
    try:
        targets = registry.remove(target)
    except TargetNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    logger.info("Target removed", extra={"removed": target})
    return {"targets": targets}


@app.get("/lookup/{resource}")
async def lookup(resource: str, replicas: int = Query(default=settings.lookup_replicas, ge=1)) -> LookupResponse:
    try:
        target = registry.lookup(resource, replicas)
    except NoTargets as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return LookupResponse(resource=resource, target=target)


@app.get("/lookup-list/{resource}")
async def lookup_list(resource: str, count: int = Query(default=1, ge=1)) -> LookupListResponse:
    targets = registry.lookup_list(resource, count)
    return LookupListResponse(resource=resource, requested_count=count, targets=targets)


@app.post("/distribution")
async def distribution(request: DistributionRequest) -> dict:
    if not request.keys:
        raise HTTPException(status_code=400, detail="No keys provided")
    try:
        comparison = registry.comparison(request.keys)
    except NoTargets as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return {"comparison": comparison}
