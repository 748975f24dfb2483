"""
Tests for the kubectl wrapper
"""
import json
import subprocess
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from metrics import kubectl
from metrics.kubectl import KubectlError


TOP_OUTPUT = """prod        api-server-7d9f8b6c5-abcde   12m    300Mi
prod        api-server-7d9f8b6c5-abcde   99m    999Mi
batch       worker-0                     1      1Gi
kube-system coredns-abc                  3m     20Mi
garbage-line
"""


def _completed(stdout):
    return SimpleNamespace(stdout=stdout, stderr="", returncode=0)


class TestRunKubectl:

    @patch('metrics.kubectl.subprocess.run')
    def test_returns_stdout(self, mock_run):
        mock_run.return_value = _completed("ok")
        assert kubectl.run_kubectl(["version"]) == "ok"
        cmd = mock_run.call_args[0][0]
        assert cmd[1:] == ["version"]

    @patch('metrics.kubectl.subprocess.run', side_effect=FileNotFoundError())
    def test_missing_binary(self, mock_run):
        with pytest.raises(KubectlError, match="not found"):
            kubectl.run_kubectl(["version"])

    @patch('metrics.kubectl.subprocess.run')
    def test_non_zero_exit(self, mock_run):
        mock_run.side_effect = subprocess.CalledProcessError(1, ["kubectl"], stderr="forbidden")
        with pytest.raises(KubectlError, match="forbidden"):
            kubectl.run_kubectl(["get", "pv"])

    @patch('metrics.kubectl.subprocess.run')
    def test_timeout(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(["kubectl"], 60)
        with pytest.raises(KubectlError, match="timed out"):
            kubectl.run_kubectl(["get", "pods"])


class TestResources:

    @patch('metrics.kubectl.subprocess.run')
    def test_list_resources_all_namespaces(self, mock_run):
        mock_run.return_value = _completed(json.dumps({"items": [{"metadata": {"name": "p"}}]}))

        data = kubectl.list_resources("pods")

        assert data["items"][0]["metadata"]["name"] == "p"
        cmd = mock_run.call_args[0][0]
        assert cmd[1:] == ["get", "pods", "--all-namespaces", "-o", "json"]

    @patch('metrics.kubectl.subprocess.run')
    def test_invalid_json(self, mock_run):
        mock_run.return_value = _completed("not json")
        with pytest.raises(KubectlError, match="invalid JSON"):
            kubectl.list_resources("nodes", all_namespaces=False)

    def test_current_context_falls_back(self, monkeypatch):
        def boom(*a, **k):
            raise KubectlError("no context")
        monkeypatch.setattr(kubectl, 'run_kubectl', boom)
        assert kubectl.current_context() == "default"

    def test_current_context(self, monkeypatch):
        monkeypatch.setattr(kubectl, 'run_kubectl', lambda *a, **k: "prod-cluster\n")
        assert kubectl.current_context() == "prod-cluster"


class TestTopPods:

    def test_parse_top_output(self):
        table = kubectl.parse_top_output(TOP_OUTPUT)

        assert len(table) == 3
        first = table[("prod", "api-server-7d9f8b6c5-abcde")]
        # first line for a pod wins
        assert first.cpu_millicores == 12
        assert first.memory_mb == 300
        worker = table[("batch", "worker-0")]
        assert worker.cpu_millicores == 1000
        assert worker.memory_mb == 1024

    def test_top_pods_unavailable(self, monkeypatch):
        def boom(*a, **k):
            raise KubectlError("Metrics API not available")
        monkeypatch.setattr(kubectl, 'run_kubectl', boom)
        assert kubectl.top_pods() is None

    def test_top_pods_empty_output_is_available(self, monkeypatch):
        monkeypatch.setattr(kubectl, 'run_kubectl', lambda *a, **k: "")
        assert kubectl.top_pods() == {}
