#!/usr/bin/env python3
"""
Read-only local viewer for the last waste audit.

Endpoints:
- /api/report: the report JSON written by orchestrator.py
- /health, /ready: liveness and readiness probes
- /metrics: Prometheus text format, request counters plus waste gauges
"""
import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from flask import Flask, jsonify, Response

from config import setup_logging, OUTPUT_PATH, UI_HOST, UI_PORT

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

app = Flask(__name__)

REPORT_FILE = Path(OUTPUT_PATH)

# Metrics for observability
_metrics = {
    'requests_total': 0,
    'requests_by_endpoint': {},
    'errors_total': 0,
    'start_time': time.time()
}


def _record_request(endpoint: str):
    """Record request metrics"""
    _metrics['requests_total'] += 1
    _metrics['requests_by_endpoint'][endpoint] = _metrics['requests_by_endpoint'].get(endpoint, 0) + 1


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def load_json(filepath):
    """Load JSON file safely"""
    try:
        filepath = Path(filepath)
        if not filepath.exists():
            return None
        with open(filepath, 'r') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error loading {filepath}: {e}")
        _metrics['errors_total'] += 1
        return None


@app.route('/api/report')
def get_report():
    """Last audit report"""
    _record_request('/api/report')
    data = load_json(REPORT_FILE)
    if data:
        return jsonify(data)
    return jsonify({"error": "No audit report found. Run: python orchestrator.py"}), 404


@app.route('/health')
def health():
    """Health check endpoint for liveness probes"""
    _record_request('/health')
    return jsonify({
        "status": "healthy",
        "timestamp": _now()
    })


@app.route('/ready')
def ready():
    """Readiness check endpoint - verifies a report exists"""
    _record_request('/ready')
    report = load_json(REPORT_FILE)
    if report:
        return jsonify({
            "status": "ready",
            "report_timestamp": report.get("timestamp"),
            "timestamp": _now()
        })
    return jsonify({
        "status": "not_ready",
        "reason": "No audit report found",
        "timestamp": _now()
    }), 503


@app.route('/metrics')
def metrics():
    """Prometheus metrics endpoint for self-monitoring"""
    _record_request('/metrics')
    uptime = time.time() - _metrics['start_time']
    report = load_json(REPORT_FILE)

    lines = [
        "# HELP waste_ui_requests_total Total number of HTTP requests",
        "# TYPE waste_ui_requests_total counter",
        f"waste_ui_requests_total {_metrics['requests_total']}",
        "",
        "# HELP waste_ui_errors_total Total number of errors",
        "# TYPE waste_ui_errors_total counter",
        f"waste_ui_errors_total {_metrics['errors_total']}",
        "",
        "# HELP waste_ui_uptime_seconds UI uptime in seconds",
        "# TYPE waste_ui_uptime_seconds gauge",
        f"waste_ui_uptime_seconds {uptime:.2f}",
        "",
        "# HELP waste_report_available Whether an audit report exists",
        "# TYPE waste_report_available gauge",
        f"waste_report_available {1 if report else 0}",
    ]

    if report:
        costs = report.get('costs', {})
        lines.append("")
        lines.append("# HELP waste_monthly_total Estimated monthly waste from the last audit")
        lines.append("# TYPE waste_monthly_total gauge")
        lines.append(f'waste_monthly_total{{source="{costs.get("source", "measured")}"}} {costs.get("monthlyWaste", 0)}')
        lines.append("")
        lines.append("# HELP waste_monthly_by_category Monthly waste per category from the last audit")
        lines.append("# TYPE waste_monthly_by_category gauge")
        for category, amount in report.get('breakdown', {}).items():
            lines.append(f'waste_monthly_by_category{{category="{category}"}} {amount}')

    lines.append("")
    lines.append("# HELP waste_ui_requests_by_endpoint Requests per endpoint")
    lines.append("# TYPE waste_ui_requests_by_endpoint counter")
    for endpoint, count in _metrics['requests_by_endpoint'].items():
        lines.append(f'waste_ui_requests_by_endpoint{{endpoint="{endpoint}"}} {count}')

    return Response('\n'.join(lines), mimetype='text/plain')


if __name__ == '__main__':
    logger.info(f"Waste audit viewer: http://{UI_HOST}:{UI_PORT}/api/report")
    logger.info(f"Health: http://{UI_HOST}:{UI_PORT}/health")
    logger.info(f"Metrics: http://{UI_HOST}:{UI_PORT}/metrics")
    app.run(debug=False, host=UI_HOST, port=UI_PORT)
