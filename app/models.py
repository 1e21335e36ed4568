from typing import Dict, List

from pydantic import BaseModel, Field

# caps positions per target at MAX_WEIGHT * replicas
MAX_WEIGHT = 100.0


class AddTargetsRequest(BaseModel):
    """Targets to register; ``atomic`` rejects the whole batch on any duplicate."""

    targets: List[str] = Field(min_length=1)
    weight: float = Field(default=1.0, gt=0, le=MAX_WEIGHT, allow_inf_nan=False)
    atomic: bool = False


class RingInfo(BaseModel):
    description: str
    hasher: str
    replicas: int
    targets: List[str]
    position_count: int


class LookupResponse(BaseModel):
    resource: str
    target: str


class LookupListResponse(BaseModel):
    resource: str
    requested_count: int
    targets: List[str]


class DistributionRequest(BaseModel):
    keys: List[str]


class DistributionReport(BaseModel):
    hasher: str
    replicas: int
    key_count: int
    counts: Dict[str, int]
    spread: int
