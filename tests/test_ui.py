"""
Tests for UI endpoints
"""
import pytest
from unittest.mock import patch
import json

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

import ui
from ui import app, load_json


@pytest.fixture
def client():
    """Flask test client"""
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


class TestHealthEndpoint:
    """Tests for /health endpoint"""

    def test_health_returns_200(self, client):
        """Health endpoint should always return 200"""
        response = client.get('/health')
        assert response.status_code == 200

    def test_health_returns_json(self, client):
        """Health endpoint should return JSON"""
        response = client.get('/health')
        data = json.loads(response.data)
        assert data['status'] == 'healthy'
        assert 'timestamp' in data


class TestReadyEndpoint:
    """Tests for /ready endpoint"""

    @patch('ui.load_json')
    def test_ready_returns_200_when_report_exists(self, mock_load, client, sample_report_dict):
        """Ready endpoint should return 200 when a report exists"""
        mock_load.return_value = sample_report_dict

        response = client.get('/ready')

        assert response.status_code == 200
        data = json.loads(response.data)
        assert data['status'] == 'ready'
        assert data['report_timestamp'] == '2026-01-04T10:00:00Z'

    @patch('ui.load_json', return_value=None)
    def test_ready_returns_503_without_report(self, mock_load, client):
        """Ready endpoint should return 503 when no report exists"""
        response = client.get('/ready')

        assert response.status_code == 503
        assert json.loads(response.data)['status'] == 'not_ready'


class TestReportEndpoint:
    """Tests for /api/report endpoint"""

    def test_serves_report_file(self, client, report_file, monkeypatch, sample_report_dict):
        monkeypatch.setattr(ui, 'REPORT_FILE', report_file)

        response = client.get('/api/report')

        assert response.status_code == 200
        assert json.loads(response.data) == sample_report_dict

    def test_missing_report_returns_404(self, client, tmp_path, monkeypatch):
        monkeypatch.setattr(ui, 'REPORT_FILE', tmp_path / 'missing.json')

        response = client.get('/api/report')

        assert response.status_code == 404
        assert 'error' in json.loads(response.data)


class TestMetricsEndpoint:
    """Tests for /metrics endpoint"""

    @patch('ui.load_json')
    def test_exports_waste_gauges(self, mock_load, client, sample_report_dict):
        mock_load.return_value = sample_report_dict

        response = client.get('/metrics')
        text = response.data.decode()

        assert response.status_code == 200
        assert response.mimetype == 'text/plain'
        assert 'waste_report_available 1' in text
        assert 'waste_monthly_total{source="measured"} 120' in text
        assert 'waste_monthly_by_category{category="memory"} 80' in text
        assert 'waste_monthly_by_category{category="loadBalancers"} 20' in text
        assert 'waste_ui_requests_by_endpoint{endpoint="/metrics"}' in text

    @patch('ui.load_json', return_value=None)
    def test_without_report(self, mock_load, client):
        text = client.get('/metrics').data.decode()

        assert 'waste_report_available 0' in text
        assert 'waste_monthly_total' not in text


class TestLoadJson:
    """Tests for load_json helper"""

    def test_missing_file_returns_none(self, tmp_path):
        assert load_json(tmp_path / 'nope.json') is None

    def test_invalid_json_returns_none(self, tmp_path):
        path = tmp_path / 'bad.json'
        path.write_text('{not json')
        errors_before = ui._metrics['errors_total']

        assert load_json(path) is None
        assert ui._metrics['errors_total'] == errors_before + 1

    def test_valid_file(self, report_file, sample_report_dict):
        assert load_json(report_file) == sample_report_dict
