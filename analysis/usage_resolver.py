from typing import Any, Dict, Optional, Tuple

from analysis.models import ContainerSpec, ResourceValues, UsageSample

UsageTable = Dict[Tuple[str, str], UsageSample]


def pod_key(pod: Dict[str, Any]) -> Tuple[str, str]:
    """(namespace, name) of a raw pod object; namespace defaults to 'default'."""
    metadata = pod.get("metadata") or {}
    return (metadata.get("namespace") or "default", metadata.get("name") or "")


def first_container(pod: Dict[str, Any]) -> Dict[str, Any]:
    containers = (pod.get("spec") or {}).get("containers") or []
    if not containers:
        return {}
    return containers[0] or {}


def resolve(
    pod: Dict[str, Any],
    metrics_available: bool,
    metrics_table: Optional[UsageTable] = None,
) -> Tuple[ContainerSpec, Optional[UsageSample]]:
    """Project a raw pod into its ContainerSpec and, when live metrics exist,
    its UsageSample.

    Only the first container is read; multi-container pods are not summed.
    Usage is looked up by exact (namespace, name); a pod missing from the
    table has no usage even though metrics are available for the run.
    """
    namespace, name = pod_key(pod)
    resources = first_container(pod).get("resources") or {}
    requests = resources.get("requests") or {}
    limits = resources.get("limits") or {}

    spec = ContainerSpec(
        pod_name=name,
        namespace=namespace,
        requests=ResourceValues.from_raw(memory=requests.get("memory"), cpu=requests.get("cpu")),
        limits=ResourceValues.from_raw(memory=limits.get("memory"), cpu=limits.get("cpu")),
    )

    usage = None
    if metrics_available and metrics_table:
        usage = metrics_table.get((namespace, name))
    return spec, usage
