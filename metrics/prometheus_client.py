import logging
import time
from typing import Any, Dict, List, Optional

import requests

from analysis.models import UsageSample
from analysis.usage_resolver import UsageTable
from config import (
    PROMETHEUS_URL, PROMETHEUS_TIMEOUT_SECONDS, PROMETHEUS_RETRY_COUNT,
    PROMETHEUS_RETRY_BACKOFF_BASE, PROMETHEUS_VERIFY_TLS
)
from normalize.quantity import Quantity, ResourceKind, format_quantity

logger = logging.getLogger(__name__)

POD_CPU_USAGE = 'sum by (namespace, pod)(rate(container_cpu_usage_seconds_total{container!=""}[5m]))'
POD_MEMORY_USAGE = 'sum by (namespace, pod)(container_memory_working_set_bytes{container!=""})'


class PrometheusError(Exception):
    pass


class PrometheusConnectionError(PrometheusError):
    pass


class PrometheusQueryError(PrometheusError):
    pass


def query_instant(promql: str, url: Optional[str] = None) -> List[Dict[str, Any]]:
    """Run an instant query against ``/api/v1/query`` and return ``data.result``.

    Connection errors and timeouts are retried with exponential backoff;
    HTTP and query errors are not.
    """
    base = (url or PROMETHEUS_URL).rstrip('/')
    last_error: Optional[Exception] = None
    for attempt in range(PROMETHEUS_RETRY_COUNT):
        try:
            r = requests.get(
                f"{base}/api/v1/query",
                params={"query": promql},
                timeout=PROMETHEUS_TIMEOUT_SECONDS,
                verify=PROMETHEUS_VERIFY_TLS,
            )
        except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
            last_error = e
            logger.warning(f"Prometheus request failed (attempt {attempt + 1}/{PROMETHEUS_RETRY_COUNT}): {e}")
            if attempt < PROMETHEUS_RETRY_COUNT - 1:
                time.sleep(PROMETHEUS_RETRY_BACKOFF_BASE * (2 ** attempt))
            continue
        except requests.RequestException as e:
            raise PrometheusQueryError(f"request failed: {e}")

        if r.status_code != 200:
            raise PrometheusQueryError(f"prometheus returned status {r.status_code}: {r.text}")
        data = r.json()
        if data.get("status") != "success":
            raise PrometheusQueryError(f"prometheus error: {data}")
        return data.get("data", {}).get("result", [])

    raise PrometheusConnectionError(f"could not reach Prometheus at {base}: {last_error}")


def _values_by_pod(result: List[Dict[str, Any]]) -> Dict[tuple, float]:
    values = {}
    for item in result:
        labels = item.get("metric", {})
        ns, pod = labels.get("namespace"), labels.get("pod")
        if not ns or not pod:
            continue
        try:
            values[(ns, pod)] = float(item.get("value", [None, None])[1])
        except (ValueError, TypeError, IndexError):
            continue
    return values


def fetch_pod_usage(url: Optional[str] = None) -> Optional[UsageTable]:
    """Current per-pod usage as a usage table, or None if Prometheus has none.

    CPU cores become millicores and working-set bytes become MiB, both
    truncated, so samples read the same as ``kubectl top`` output.
    """
    cpu = _values_by_pod(query_instant(POD_CPU_USAGE, url))
    memory = _values_by_pod(query_instant(POD_MEMORY_USAGE, url))
    if not cpu and not memory:
        return None

    table: UsageTable = {}
    for key in set(cpu) | set(memory):
        cpu_raw = mem_raw = None
        if key in cpu:
            cpu_raw = format_quantity(Quantity(ResourceKind.CPU, int(cpu[key] * 1000)))
        if key in memory:
            mem_raw = format_quantity(Quantity(ResourceKind.MEMORY, int(memory[key] / (1024 * 1024))))
        table[key] = UsageSample.from_raw(memory=mem_raw, cpu=cpu_raw)
    return table
