"""Waste classification strategies.

One strategy is chosen per run: usage-based when live metrics could be
fetched at all, limit-based otherwise. Both keep a 50% headroom above the
baseline, so the recoverable amount is ``declared - 1.5 * baseline`` once the
declared value crosses ``ratio * baseline``.
"""
import logging
from typing import Dict, Optional

from analysis.models import ContainerSpec, Outcome, PodFinding, UsageSample
from config import merge_pricing

logger = logging.getLogger(__name__)

# request vs. measured usage
USAGE_MEMORY_RATIO = 2
USAGE_CPU_RATIO = 2
# limit vs. request; CPU limits are conventionally set further above requests
LIMIT_MEMORY_RATIO = 2
LIMIT_CPU_RATIO = 3

MB_PER_GB = 1024
MILLICORES_PER_CORE = 1000


def excess(declared: Optional[int], baseline: Optional[int], ratio: int) -> Optional[int]:
    """Recoverable amount of ``declared`` over ``baseline``.

    Returns None when either side is missing, 0 when the ratio threshold is
    not crossed.
    """
    if declared is None or baseline is None:
        return None
    if declared > baseline * ratio:
        return declared - baseline * 3 // 2
    return 0


def memory_cost(waste_mb: int, rate_per_gb: float) -> int:
    return round(waste_mb / MB_PER_GB * rate_per_gb)


def cpu_cost(waste_millicores: int, rate_per_core: float) -> int:
    return round(waste_millicores / MILLICORES_PER_CORE * rate_per_core)


class WasteStrategy:
    """Turns one pod's ContainerSpec (and usage, if any) into a PodFinding."""

    mode = ""

    def __init__(self, pricing: Optional[Dict[str, float]] = None):
        self.pricing = merge_pricing(pricing)

    def classify(self, spec: ContainerSpec, usage: Optional[UsageSample] = None) -> PodFinding:
        if not spec.requests.is_declared():
            return PodFinding(
                name=spec.pod_name,
                namespace=spec.namespace,
                requests=spec.requests,
                limits=spec.limits,
                actual=usage,
                no_requests=True,
            )
        memory_mb, cpu_mc = self._waste(spec, usage)
        return PodFinding(
            name=spec.pod_name,
            namespace=spec.namespace,
            memory_waste_cost=memory_cost(memory_mb or 0, self.pricing["memory_per_gb_month"]),
            cpu_waste_cost=cpu_cost(cpu_mc or 0, self.pricing["cpu_per_core_month"]),
            memory_waste_mb=memory_mb or 0,
            cpu_waste_millicores=cpu_mc or 0,
            memory_outcome=Outcome.SKIPPED if memory_mb is None else Outcome.COMPUTED,
            cpu_outcome=Outcome.SKIPPED if cpu_mc is None else Outcome.COMPUTED,
            requests=spec.requests,
            limits=spec.limits,
            actual=usage,
        )

    def _waste(self, spec: ContainerSpec, usage: Optional[UsageSample]):
        """Return (memory MiB, CPU millicores) waste; None marks a skipped dimension."""
        raise NotImplementedError


class UsageBasedStrategy(WasteStrategy):
    """Compare requests against measured usage."""

    mode = "usage"

    def _waste(self, spec, usage):
        if usage is None:
            # Requests are declared but the pod has no sample
            logger.debug(f"No usage sample for {spec.namespace}/{spec.pod_name}, skipping")
            return None, None
        return (
            excess(spec.requests.memory_mb, usage.memory_mb, USAGE_MEMORY_RATIO),
            excess(spec.requests.cpu_millicores, usage.cpu_millicores, USAGE_CPU_RATIO),
        )


class LimitBasedStrategy(WasteStrategy):
    """Compare limits against requests when no usage data exists."""

    mode = "limits"

    def _waste(self, spec, usage):
        return (
            excess(spec.limits.memory_mb, spec.requests.memory_mb, LIMIT_MEMORY_RATIO),
            excess(spec.limits.cpu_millicores, spec.requests.cpu_millicores, LIMIT_CPU_RATIO),
        )


def select_strategy(metrics_available: bool, pricing: Optional[Dict[str, float]] = None) -> WasteStrategy:
    if metrics_available:
        return UsageBasedStrategy(pricing)
    return LimitBasedStrategy(pricing)
