"""Orchestrator: discovery -> waste analysis -> console summary -> atomic JSON write.
The analysis itself is pure; everything that touches the cluster or disk lives here or in metrics/.
"""
import argparse
import json
import logging
import os
import sys
import tempfile
from typing import Dict, List, Optional

import yaml

import config
from config import setup_logging, validate_config, validate_pricing, ConfigValidationError, load_pricing
from analysis.engine import analyze
from analysis.models import Report
from metrics import discovery as discovery_mod
from metrics.kubectl import KubectlError, check_cluster
import render

logger = logging.getLogger(__name__)


def _atomic_write(path: str, data: str) -> None:
    dirp = os.path.dirname(path) or '.'
    os.makedirs(dirp, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix='.tmp_audit_', dir=dirp)
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(data)
        # Atomic replace
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)


def run_audit(metrics_source: Optional[str] = None, pricing: Optional[Dict[str, float]] = None) -> Report:
    """Collect cluster data and build the Report.

    Raises:
        KubectlError: If pods or nodes cannot be listed
    """
    logger.info("Collecting cluster data...")
    snapshot = discovery_mod.discover_cluster()

    logger.info("Fetching live metrics...")
    usage = discovery_mod.discover_usage(metrics_source)
    if usage is None:
        logger.warning("Metrics not available - using request/limit analysis")

    return analyze(
        snapshot.pods,
        snapshot.nodes,
        snapshot.volumes,
        snapshot.services,
        usage_table=usage,
        context_hash=discovery_mod.hash_context(snapshot.context),
        pricing=pricing,
    )


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Estimate wasted spend in a Kubernetes cluster")
    parser.add_argument("--output", default=config.OUTPUT_PATH,
                        help=f"report JSON path (default: {config.OUTPUT_PATH})")
    parser.add_argument("--pricing", default=None,
                        help="YAML file with pricing overrides")
    parser.add_argument("--metrics-source", choices=config.METRICS_SOURCES, default=None,
                        help=f"where live usage comes from (default: {config.METRICS_SOURCE})")
    parser.add_argument("--json", action="store_true",
                        help="print the report JSON instead of the summary")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    # stdout carries the report with --json
    setup_logging(sys.stderr if args.json else None)

    try:
        validate_config()
    except ConfigValidationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    pricing = None
    if args.pricing:
        try:
            pricing = load_pricing(args.pricing)
            validate_pricing(pricing)
        except (OSError, yaml.YAMLError, ValueError) as e:
            logger.error(f"Could not load pricing from {args.pricing}: {e}")
            return 1
        except ConfigValidationError as e:
            logger.error(f"Invalid pricing in {args.pricing}: {e}")
            return 1

    logger.info("Checking prerequisites...")
    try:
        check_cluster()
    except KubectlError as e:
        logger.error(f"Cannot connect to cluster: {e}")
        return 1

    try:
        report = run_audit(args.metrics_source, pricing)
    except KubectlError as e:
        logger.error(f"Failed to collect cluster data: {e}")
        return 1

    payload = json.dumps(report.to_dict(), indent=2)
    if args.json:
        print(payload)
    else:
        render.print_report(report)

    try:
        _atomic_write(args.output, payload)
    except OSError as e:
        logger.error(f"Failed to write report to {args.output}: {e}")
        return 1
    logger.info(f"Audit data saved to: {args.output}")
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
