import json
import logging
import subprocess
from typing import Any, Dict, List, Optional

from analysis.models import UsageSample
from analysis.usage_resolver import UsageTable
from config import KUBECTL_BIN, KUBECTL_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class KubectlError(Exception):
    pass


def run_kubectl(args: List[str], timeout: Optional[int] = None) -> str:
    """Run kubectl and return stdout.

    Raises:
        KubectlError: binary missing, non-zero exit or timeout
    """
    cmd = [KUBECTL_BIN] + args
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            check=True,
            timeout=timeout or KUBECTL_TIMEOUT_SECONDS,
        )
    except FileNotFoundError:
        raise KubectlError(f"{KUBECTL_BIN} not found in PATH")
    except subprocess.TimeoutExpired:
        raise KubectlError(f"kubectl {' '.join(args)} timed out")
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise KubectlError(f"kubectl {' '.join(args)} failed (exit {e.returncode}): {stderr}")
    return result.stdout


def get_json(args: List[str]) -> Dict[str, Any]:
    output = run_kubectl(args + ["-o", "json"])
    try:
        return json.loads(output)
    except json.JSONDecodeError as e:
        raise KubectlError(f"kubectl {' '.join(args)} returned invalid JSON: {e}")


def list_resources(kind: str, all_namespaces: bool = True) -> Dict[str, Any]:
    args = ["get", kind]
    if all_namespaces:
        args.append("--all-namespaces")
    return get_json(args)


def check_cluster() -> None:
    """Raise KubectlError unless kubectl is installed and the cluster answers."""
    run_kubectl(["cluster-info"])


def current_context() -> str:
    try:
        return run_kubectl(["config", "current-context"]).strip() or "default"
    except KubectlError:
        return "default"


def parse_top_output(text: str) -> UsageTable:
    """Parse ``kubectl top pods --all-namespaces --no-headers`` lines.

    Format: NAMESPACE NAME CPU(cores) MEMORY(bytes). The first line for a
    given (namespace, name) wins.
    """
    table: UsageTable = {}
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 4:
            continue
        key = (parts[0], parts[1])
        if key in table:
            continue
        table[key] = UsageSample.from_raw(memory=parts[3], cpu=parts[2])
    return table


def top_pods() -> Optional[UsageTable]:
    """Live usage from metrics-server, or None when it is not available."""
    try:
        output = run_kubectl(["top", "pods", "--all-namespaces", "--no-headers"])
    except KubectlError as e:
        logger.warning(f"Metrics server not available: {e}")
        return None
    return parse_top_output(output)
