"""Value types shared by the waste-estimation engine."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from normalize.quantity import Quantity, ResourceKind, parse_quantity


class Outcome(Enum):
    COMPUTED = "computed"
    HEURISTIC_FALLBACK = "heuristic_fallback"
    SKIPPED = "skipped"


def _raw(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class ResourceValues:
    """Memory/CPU pair as declared (raw string) and as parsed (Quantity)."""
    memory_raw: Optional[str] = None
    cpu_raw: Optional[str] = None
    memory: Optional[Quantity] = None
    cpu: Optional[Quantity] = None

    @classmethod
    def from_raw(cls, memory: Any = None, cpu: Any = None):
        memory_raw, cpu_raw = _raw(memory), _raw(cpu)
        return cls(
            memory_raw=memory_raw,
            cpu_raw=cpu_raw,
            memory=parse_quantity(memory_raw, ResourceKind.MEMORY),
            cpu=parse_quantity(cpu_raw, ResourceKind.CPU),
        )

    @property
    def memory_mb(self) -> Optional[int]:
        return self.memory.magnitude if self.memory is not None else None

    @property
    def cpu_millicores(self) -> Optional[int]:
        return self.cpu.magnitude if self.cpu is not None else None

    def is_declared(self) -> bool:
        return self.memory_raw is not None or self.cpu_raw is not None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"memory": self.memory_raw, "cpu": self.cpu_raw}


@dataclass(frozen=True)
class UsageSample(ResourceValues):
    """Measured consumption of one pod."""


@dataclass(frozen=True)
class ContainerSpec:
    pod_name: str
    namespace: str
    requests: ResourceValues = field(default_factory=ResourceValues)
    limits: ResourceValues = field(default_factory=ResourceValues)


@dataclass(frozen=True)
class PodFinding:
    name: str
    namespace: str
    memory_waste_cost: int = 0
    cpu_waste_cost: int = 0
    memory_waste_mb: int = 0
    cpu_waste_millicores: int = 0
    memory_outcome: Outcome = Outcome.SKIPPED
    cpu_outcome: Outcome = Outcome.SKIPPED
    requests: ResourceValues = field(default_factory=ResourceValues)
    limits: ResourceValues = field(default_factory=ResourceValues)
    actual: Optional[UsageSample] = None
    no_requests: bool = False

    @property
    def total_waste_cost(self) -> int:
        return self.memory_waste_cost + self.cpu_waste_cost

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "namespace": self.namespace,
            "monthlyWaste": self.total_waste_cost,
            "memoryWaste": self.memory_waste_cost,
            "cpuWaste": self.cpu_waste_cost,
            "requests": self.requests.to_dict(),
            "limits": self.limits.to_dict(),
            "actual": self.actual.to_dict() if self.actual is not None else None,
        }


@dataclass
class CategoryTotals:
    """Running monthly totals per waste category for one analysis pass."""
    memory: int = 0
    cpu: int = 0
    storage: int = 0
    load_balancers: int = 0

    @property
    def total(self) -> int:
        return self.memory + self.cpu + self.storage + self.load_balancers

    def freeze(self) -> "WasteBreakdown":
        return WasteBreakdown(
            memory=self.memory,
            cpu=self.cpu,
            storage=self.storage,
            load_balancers=self.load_balancers,
        )


@dataclass(frozen=True)
class WasteBreakdown:
    memory: int = 0
    cpu: int = 0
    storage: int = 0
    load_balancers: int = 0

    @property
    def total(self) -> int:
        return self.memory + self.cpu + self.storage + self.load_balancers

    def to_dict(self) -> Dict[str, int]:
        return {
            "memory": self.memory,
            "cpu": self.cpu,
            "storage": self.storage,
            "loadBalancers": self.load_balancers,
        }


@dataclass(frozen=True)
class Report:
    generated_at: str
    context_hash: str
    total_pods: int
    total_nodes: int
    namespaces: int
    metrics_available: bool
    analysis_mode: str
    breakdown: WasteBreakdown
    monthly_waste: int
    outcome: Outcome
    top_offender: Optional[PodFinding]
    pods_over_provisioned: int
    pods_no_requests: int
    orphaned_load_balancers: int
    unbound_storage_gb: int

    @property
    def annual_savings(self) -> int:
        return self.monthly_waste * 12

    @property
    def is_heuristic(self) -> bool:
        return self.outcome is Outcome.HEURISTIC_FALLBACK

    @property
    def total_issues(self) -> int:
        return self.pods_over_provisioned + self.orphaned_load_balancers + self.pods_no_requests

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.generated_at,
            "cluster": {
                "context": self.context_hash,
                "totalPods": self.total_pods,
                "totalNodes": self.total_nodes,
                "namespaces": self.namespaces,
                "metricsAvailable": self.metrics_available,
            },
            "costs": {
                "monthlyWaste": self.monthly_waste,
                "annualSavings": self.annual_savings,
                "source": "heuristic" if self.is_heuristic else "measured",
            },
            "breakdown": self.breakdown.to_dict(),
            "details": {
                "pods_over_provisioned": self.pods_over_provisioned,
                "pods_no_requests": self.pods_no_requests,
                "orphaned_load_balancers": self.orphaned_load_balancers,
                "unbound_storage_gb": self.unbound_storage_gb,
                "analysis_mode": self.analysis_mode,
                "top_offender": self.top_offender.to_dict() if self.top_offender is not None else None,
            },
        }
