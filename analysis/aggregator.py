import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from analysis.infrastructure import LoadBalancerScan, StorageScan
from analysis.models import CategoryTotals, Outcome, PodFinding, Report
from config import merge_pricing

logger = logging.getLogger(__name__)


def heuristic_estimate(node_count: int, pod_count: int, pricing: Optional[Dict[str, float]] = None) -> int:
    """Conservative monthly waste: a fixed share of an estimated cluster cost."""
    pricing = merge_pricing(pricing)
    estimated_cost = (node_count * pricing["estimated_node_month"]
                      + pod_count * pricing["estimated_pod_month"])
    return int(estimated_cost * pricing["fallback_waste_percent"] / 100)


class Aggregator:
    """Accumulates findings and scan results for a single analysis pass.

    A new instance must be used for every run; nothing is carried over.
    """

    def __init__(self):
        self.totals = CategoryTotals()
        self.top_offender: Optional[PodFinding] = None
        self.pods_over_provisioned = 0
        self.pods_no_requests = 0
        self.orphaned_load_balancers = 0
        self.unbound_storage_gb = 0

    def add_finding(self, finding: PodFinding) -> None:
        if finding.no_requests:
            self.pods_no_requests += 1
            return

        self.totals.memory += finding.memory_waste_cost
        self.totals.cpu += finding.cpu_waste_cost
        # CPU-only waste does not count as over-provisioned
        if finding.memory_waste_mb > 0:
            self.pods_over_provisioned += 1

        current_max = self.top_offender.total_waste_cost if self.top_offender else 0
        if finding.name and finding.total_waste_cost > current_max:
            self.top_offender = finding

    def add_storage(self, scan: StorageScan) -> None:
        self.totals.storage += scan.monthly_cost
        self.unbound_storage_gb += scan.unbound_gb

    def add_load_balancers(self, scan: LoadBalancerScan) -> None:
        self.totals.load_balancers += scan.monthly_cost
        self.orphaned_load_balancers += scan.orphaned

    def build_report(
        self,
        total_pods: int,
        total_nodes: int,
        namespaces: int = 0,
        context_hash: str = "unknown",
        metrics_available: bool = False,
        analysis_mode: str = "",
        pricing: Optional[Dict[str, float]] = None,
        generated_at: Optional[str] = None,
    ) -> Report:
        monthly_waste = self.totals.total
        outcome = Outcome.COMPUTED
        if monthly_waste == 0:
            monthly_waste = heuristic_estimate(total_nodes, total_pods, pricing)
            outcome = Outcome.HEURISTIC_FALLBACK
            logger.warning(f"No specific waste detected, using conservative estimate of {monthly_waste}/month")

        return Report(
            generated_at=generated_at or datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            context_hash=context_hash,
            total_pods=total_pods,
            total_nodes=total_nodes,
            namespaces=namespaces,
            metrics_available=metrics_available,
            analysis_mode=analysis_mode,
            breakdown=self.totals.freeze(),
            monthly_waste=monthly_waste,
            outcome=outcome,
            top_offender=self.top_offender,
            pods_over_provisioned=self.pods_over_provisioned,
            pods_no_requests=self.pods_no_requests,
            orphaned_load_balancers=self.orphaned_load_balancers,
            unbound_storage_gb=self.unbound_storage_gb,
        )


def accumulate(findings: Iterable[PodFinding]) -> Aggregator:
    """Fold findings into a fresh Aggregator (totals, counters, top offender)."""
    aggregator = Aggregator()
    for finding in findings:
        aggregator.add_finding(finding)
    return aggregator
