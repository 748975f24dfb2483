"""
Test fixtures and configuration for pytest
"""
import json
import pytest

from analysis.models import UsageSample


def make_pod(name, namespace="default", requests=None, limits=None, extra_containers=None):
    """Build a pod object shaped like `kubectl get pods -o json` items"""
    resources = {}
    if requests is not None:
        resources["requests"] = requests
    if limits is not None:
        resources["limits"] = limits
    containers = [{"name": "app", "image": "nginx", "resources": resources}]
    containers.extend(extra_containers or [])
    return {
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"containers": containers},
    }


@pytest.fixture
def pod_factory():
    return make_pod


@pytest.fixture
def sample_pods():
    """Pod list covering over-provisioned, healthy and undeclared workloads"""
    return {
        "items": [
            make_pod("api-server", "prod",
                     requests={"memory": "4Gi", "cpu": "1"},
                     limits={"memory": "8Gi", "cpu": "2"}),
            make_pod("web-frontend", "prod",
                     requests={"memory": "1024Mi", "cpu": "250m"},
                     limits={"memory": "1Gi", "cpu": "500m"}),
            make_pod("batch-worker", "batch",
                     requests={"memory": "512Mi", "cpu": "100m"},
                     limits={"memory": "4Gi", "cpu": "1"}),
            make_pod("debug-shell", "default"),
        ]
    }


@pytest.fixture
def sample_nodes():
    return {"items": [{"metadata": {"name": f"node-{i}"}} for i in range(3)]}


@pytest.fixture
def sample_usage():
    """Usage table as produced by kubectl top"""
    return {
        ("prod", "api-server"): UsageSample.from_raw(memory="1024Mi", cpu="200m"),
        ("prod", "web-frontend"): UsageSample.from_raw(memory="600Mi", cpu="200m"),
        ("batch", "batch-worker"): UsageSample.from_raw(memory="500Mi", cpu="90m"),
    }


@pytest.fixture
def sample_volumes():
    return {
        "items": [
            {"metadata": {"name": "pv-bound"}, "spec": {"capacity": {"storage": "100Gi"}}, "status": {"phase": "Bound"}},
            {"metadata": {"name": "pv-released"}, "spec": {"capacity": {"storage": "50Gi"}}, "status": {"phase": "Released"}},
            {"metadata": {"name": "pv-available"}, "spec": {"capacity": {"storage": "30Gi"}}, "status": {"phase": "Available"}},
        ]
    }


@pytest.fixture
def sample_services():
    return {
        "items": [
            {"metadata": {"name": "public-api", "namespace": "prod"},
             "spec": {"type": "LoadBalancer", "selector": {"app": "api-server"}}},
            {"metadata": {"name": "old-ingress", "namespace": "prod"},
             "spec": {"type": "LoadBalancer"}},
            {"metadata": {"name": "internal", "namespace": "prod"},
             "spec": {"type": "ClusterIP"}},
        ]
    }


@pytest.fixture
def sample_report_dict():
    """Report JSON as written by orchestrator.py"""
    return {
        "timestamp": "2026-01-04T10:00:00Z",
        "cluster": {"context": "abc123", "totalPods": 47, "totalNodes": 5,
                    "namespaces": 4, "metricsAvailable": True},
        "costs": {"monthlyWaste": 120, "annualSavings": 1440, "source": "measured"},
        "breakdown": {"memory": 80, "cpu": 20, "storage": 0, "loadBalancers": 20},
        "details": {"pods_over_provisioned": 3, "pods_no_requests": 1,
                    "orphaned_load_balancers": 1, "unbound_storage_gb": 0,
                    "analysis_mode": "usage", "top_offender": None},
    }


@pytest.fixture
def report_file(tmp_path, sample_report_dict):
    path = tmp_path / "waste_audit.json"
    path.write_text(json.dumps(sample_report_dict))
    return path
