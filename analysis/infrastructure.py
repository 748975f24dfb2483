"""Scanners for cluster resources that cost money without serving pods."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple

from config import merge_pricing
from normalize.quantity import parse_storage_gb

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageScan:
    unbound_gb: int = 0
    monthly_cost: int = 0
    volumes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class LoadBalancerScan:
    orphaned: int = 0
    monthly_cost: int = 0
    services: Tuple[str, ...] = ()


def scan_unbound_storage(volumes: Iterable[Dict[str, Any]], pricing: Optional[Dict[str, float]] = None) -> StorageScan:
    """Sum capacity of persistent volumes whose phase is not Bound."""
    pricing = merge_pricing(pricing)
    total_gb = 0
    names = []
    for pv in volumes:
        phase = (pv.get("status") or {}).get("phase") or "Unknown"
        if phase == "Bound":
            continue
        capacity = ((pv.get("spec") or {}).get("capacity") or {}).get("storage") or "0Gi"
        size_gb = parse_storage_gb(capacity)
        name = (pv.get("metadata") or {}).get("name") or ""
        if size_gb is None:
            logger.debug(f"Unrecognized capacity '{capacity}' on volume {name}, skipping")
            continue
        total_gb += size_gb
        names.append(name)
    return StorageScan(
        unbound_gb=total_gb,
        monthly_cost=round(total_gb * pricing["storage_per_gb_month"]),
        volumes=tuple(names),
    )


def scan_orphaned_load_balancers(services: Iterable[Dict[str, Any]], pricing: Optional[Dict[str, float]] = None) -> LoadBalancerScan:
    """Count LoadBalancer services that select no pods."""
    pricing = merge_pricing(pricing)
    names = []
    for svc in services:
        spec = svc.get("spec") or {}
        if spec.get("type") != "LoadBalancer":
            continue
        if spec.get("selector"):
            continue
        metadata = svc.get("metadata") or {}
        names.append(f"{metadata.get('namespace') or 'default'}/{metadata.get('name') or ''}")
    return LoadBalancerScan(
        orphaned=len(names),
        monthly_cost=round(len(names) * pricing["load_balancer_month"]),
        services=tuple(names),
    )
