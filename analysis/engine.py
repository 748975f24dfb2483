"""Waste-estimation pass: raw cluster snapshots in, one Report out.

No I/O happens here. Collections are whatever ``kubectl get -o json``
returned (a dict with ``items``) or plain lists.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from analysis.aggregator import Aggregator
from analysis.infrastructure import scan_orphaned_load_balancers, scan_unbound_storage
from analysis.models import Report
from analysis.usage_resolver import UsageTable, pod_key, resolve
from analysis.waste_strategy import select_strategy

logger = logging.getLogger(__name__)

Collection = Union[Dict[str, Any], List[Dict[str, Any]], None]


def items(collection: Collection) -> List[Dict[str, Any]]:
    if collection is None:
        return []
    if isinstance(collection, dict):
        return [i for i in (collection.get("items") or []) if i]
    return [i for i in collection if i]


def analyze(
    pods: Collection,
    nodes: Collection,
    volumes: Collection = None,
    services: Collection = None,
    usage_table: Optional[UsageTable] = None,
    context_hash: str = "unknown",
    pricing: Optional[Dict[str, float]] = None,
    generated_at: Optional[str] = None,
) -> Report:
    """Run one full analysis pass.

    ``usage_table`` being None means live metrics could not be fetched for
    this run, which selects limit-based classification for every pod. An
    empty dict still counts as available.
    """
    pod_items = items(pods)
    node_items = items(nodes)
    metrics_available = usage_table is not None
    strategy = select_strategy(metrics_available, pricing)
    logger.info(f"Analyzing {len(pod_items)} pods on {len(node_items)} nodes (mode={strategy.mode})")

    aggregator = Aggregator()
    for pod in pod_items:
        spec, usage = resolve(pod, metrics_available, usage_table)
        aggregator.add_finding(strategy.classify(spec, usage))

    aggregator.add_storage(scan_unbound_storage(items(volumes), pricing))
    aggregator.add_load_balancers(scan_orphaned_load_balancers(items(services), pricing))

    namespaces = {pod_key(pod)[0] for pod in pod_items}
    return aggregator.build_report(
        total_pods=len(pod_items),
        total_nodes=len(node_items),
        namespaces=len(namespaces),
        context_hash=context_hash,
        metrics_available=metrics_available,
        analysis_mode=strategy.mode,
        pricing=pricing,
        generated_at=generated_at,
    )
