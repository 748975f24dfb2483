import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from analysis.usage_resolver import UsageTable
from config import METRICS_SOURCE
from . import kubectl
from .prometheus_client import PrometheusError, fetch_pod_usage

logger = logging.getLogger(__name__)

_EMPTY_LIST: Dict[str, Any] = {"items": []}


@dataclass
class ClusterSnapshot:
    """Raw ``kubectl get -o json`` lists gathered for one audit."""
    pods: Dict[str, Any] = field(default_factory=lambda: dict(_EMPTY_LIST))
    nodes: Dict[str, Any] = field(default_factory=lambda: dict(_EMPTY_LIST))
    volumes: Dict[str, Any] = field(default_factory=lambda: dict(_EMPTY_LIST))
    services: Dict[str, Any] = field(default_factory=lambda: dict(_EMPTY_LIST))
    context: str = "default"


def hash_context(context: str) -> str:
    """Stable, non-reversible identifier for a kubectl context name."""
    return hashlib.sha256(context.encode("utf-8")).hexdigest()


def _optional_list(kind: str, all_namespaces: bool) -> Dict[str, Any]:
    try:
        return kubectl.list_resources(kind, all_namespaces=all_namespaces)
    except kubectl.KubectlError as e:
        logger.warning(f"Could not list {kind}, treating as empty: {e}")
        return {"items": []}


def discover_cluster() -> ClusterSnapshot:
    """Collect pods, nodes, persistent volumes and services.

    Pods and nodes are required and raise KubectlError; volumes and services
    fall back to empty lists.
    """
    pods = kubectl.list_resources("pods", all_namespaces=True)
    nodes = kubectl.list_resources("nodes", all_namespaces=False)
    volumes = _optional_list("pv", all_namespaces=False)
    services = _optional_list("svc", all_namespaces=True)
    return ClusterSnapshot(
        pods=pods,
        nodes=nodes,
        volumes=volumes,
        services=services,
        context=kubectl.current_context(),
    )


def discover_usage(source: Optional[str] = None) -> Optional[UsageTable]:
    """Fetch live usage from the configured source.

    None means metrics are unavailable for the whole run and the audit
    falls back to request/limit analysis.
    """
    source = (source or METRICS_SOURCE).lower()
    if source == "none":
        logger.info("Live metrics disabled, using request/limit analysis")
        return None
    if source == "prometheus":
        try:
            table = fetch_pod_usage()
        except PrometheusError as e:
            logger.warning(f"Prometheus usage unavailable: {e}")
            return None
        if table is None:
            logger.warning("Prometheus returned no pod usage, using request/limit analysis")
        return table
    table = kubectl.top_pods()
    if table is not None:
        logger.info(f"Live metrics available for {len(table)} pods (kubectl top)")
    return table
