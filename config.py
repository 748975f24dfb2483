import os
import logging
import sys
from typing import Optional, Dict
from urllib.parse import urlparse

import yaml


# =============================================================================
# Logging Configuration
# =============================================================================
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT: str = os.getenv(
    "LOG_FORMAT",
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def setup_logging(stream=None):
    """Configure application-wide logging

    Args:
        stream: Where log lines go; stdout unless given. Pass sys.stderr
            when stdout carries machine-readable output.
    """
    level = getattr(logging, LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(stream or sys.stdout)]
    )
    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "on")


# =============================================================================
# Cluster Access
# =============================================================================
KUBECTL_BIN: str = os.getenv("KUBECTL_BIN", "kubectl")
KUBECTL_TIMEOUT_SECONDS: int = int(os.getenv("KUBECTL_TIMEOUT_SECONDS", "60"))

# Where live usage comes from: "kubectl" (kubectl top), "prometheus" or "none"
METRICS_SOURCE: str = os.getenv("METRICS_SOURCE", "kubectl").lower()
METRICS_SOURCES = ("kubectl", "prometheus", "none")

PROMETHEUS_URL: str = os.getenv("PROMETHEUS_URL", "http://localhost:9090")
PROMETHEUS_TIMEOUT_SECONDS: int = int(os.getenv("PROMETHEUS_TIMEOUT_SECONDS", "30"))
PROMETHEUS_RETRY_COUNT: int = int(os.getenv("PROMETHEUS_RETRY_COUNT", "3"))
PROMETHEUS_RETRY_BACKOFF_BASE: int = int(os.getenv("PROMETHEUS_RETRY_BACKOFF_BASE", "1"))
PROMETHEUS_VERIFY_TLS: bool = _env_bool("PROMETHEUS_VERIFY_TLS", True)

# =============================================================================
# Output
# =============================================================================
OUTPUT_PATH: str = os.getenv("OUTPUT_PATH", os.path.join("output", "waste_audit.json"))

UI_HOST: str = os.getenv("UI_HOST", "127.0.0.1")
UI_PORT: int = int(os.getenv("UI_PORT", "8080"))

# =============================================================================
# Pricing
# =============================================================================
# Conservative averages across AWS/GCP/Azure, all per month
DEFAULT_PRICING: Dict[str, float] = {
    "memory_per_gb_month": 7.20,      # $0.01/GB/hour
    "cpu_per_core_month": 21.60,      # $0.03/vCPU/hour
    "storage_per_gb_month": 0.10,     # EBS gp3 / PD-SSD average
    "load_balancer_month": 20,        # ALB/NLB/Cloud LB average
    "estimated_node_month": 150,
    "estimated_pod_month": 3,
    "fallback_waste_percent": 20,
}

_PRICING_ENV: Dict[str, str] = {
    "memory_per_gb_month": "MEMORY_COST_PER_GB_MONTH",
    "cpu_per_core_month": "CPU_COST_PER_CORE_MONTH",
    "storage_per_gb_month": "STORAGE_COST_PER_GB_MONTH",
    "load_balancer_month": "LB_COST_PER_MONTH",
    "estimated_node_month": "ESTIMATED_NODE_COST_PER_MONTH",
    "estimated_pod_month": "ESTIMATED_POD_COST_PER_MONTH",
    "fallback_waste_percent": "FALLBACK_WASTE_PERCENT",
}

PRICING_FILE: Optional[str] = os.getenv("PRICING_FILE")


def load_pricing(path: Optional[str] = None) -> Dict[str, float]:
    """Build the pricing table: defaults, then YAML file, then env overrides.

    The YAML file may hold the keys at top level or under a ``pricing:``
    section. Unknown keys are ignored with a warning.

    Raises:
        OSError: If ``path`` cannot be read
        yaml.YAMLError: If the file is not valid YAML
        ValueError: If a value is not numeric
    """
    pricing = dict(DEFAULT_PRICING)
    if path:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping, got {type(data).__name__}")
        section = data.get("pricing", data)
        for key, value in section.items():
            if key not in pricing:
                logging.warning(f"Ignoring unknown pricing key '{key}' in {path}")
                continue
            pricing[key] = float(value)
    for key, env_name in _PRICING_ENV.items():
        v = os.getenv(env_name)
        if v is not None:
            pricing[key] = float(v)
    return pricing


def _load_pricing_or_defaults() -> Dict[str, float]:
    try:
        return load_pricing(PRICING_FILE)
    except (OSError, yaml.YAMLError, ValueError) as e:
        logging.warning(f"Invalid pricing configuration ({e}), using defaults")
        return dict(DEFAULT_PRICING)


PRICING: Dict[str, float] = _load_pricing_or_defaults()


def merge_pricing(pricing: Optional[Dict[str, float]] = None) -> Dict[str, float]:
    """Caller rates layered over the configured table, so partial dicts work."""
    return {**PRICING, **(pricing or {})}


__all__ = [
    "LOG_LEVEL",
    "LOG_FORMAT",
    "setup_logging",
    "KUBECTL_BIN",
    "KUBECTL_TIMEOUT_SECONDS",
    "METRICS_SOURCE",
    "METRICS_SOURCES",
    "PROMETHEUS_URL",
    "PROMETHEUS_TIMEOUT_SECONDS",
    "PROMETHEUS_RETRY_COUNT",
    "PROMETHEUS_RETRY_BACKOFF_BASE",
    "PROMETHEUS_VERIFY_TLS",
    "OUTPUT_PATH",
    "UI_HOST",
    "UI_PORT",
    "DEFAULT_PRICING",
    "PRICING_FILE",
    "PRICING",
    "load_pricing",
    "merge_pricing",
    "validate_pricing",
    "validate_config",
    "ConfigValidationError",
]


# =============================================================================
# Configuration Validation
# =============================================================================
class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""
    pass


def _validate_positive_int(name: str, value: int) -> None:
    if value <= 0:
        raise ConfigValidationError(f"{name} must be positive, got {value}")


def _validate_url(name: str, value: str) -> None:
    try:
        result = urlparse(value)
        if not all([result.scheme, result.netloc]):
            raise ValueError("Missing scheme or netloc")
        if result.scheme not in ('http', 'https'):
            raise ValueError(f"Invalid scheme: {result.scheme}")
    except Exception as e:
        raise ConfigValidationError(f"{name} is not a valid URL: {value} ({e})")


def _validate_metrics_source(value: str) -> None:
    if value not in METRICS_SOURCES:
        raise ConfigValidationError(
            f"METRICS_SOURCE must be one of {', '.join(METRICS_SOURCES)}, got '{value}'"
        )


def validate_pricing(pricing: Dict[str, float]) -> None:
    negative = [k for k, v in pricing.items() if v < 0]
    if negative:
        raise ConfigValidationError(f"Pricing values must not be negative: {', '.join(sorted(negative))}")
    if pricing.get("fallback_waste_percent", 0) > 100:
        raise ConfigValidationError("fallback_waste_percent must not exceed 100")


def validate_config() -> None:
    """Validate all configuration values on startup

    Raises:
        ConfigValidationError: If any configuration value is invalid
    """
    errors = []

    for name, value in (
        ("KUBECTL_TIMEOUT_SECONDS", KUBECTL_TIMEOUT_SECONDS),
        ("PROMETHEUS_TIMEOUT_SECONDS", PROMETHEUS_TIMEOUT_SECONDS),
        ("PROMETHEUS_RETRY_COUNT", PROMETHEUS_RETRY_COUNT),
    ):
        try:
            _validate_positive_int(name, value)
        except ConfigValidationError as e:
            errors.append(str(e))

    try:
        _validate_metrics_source(METRICS_SOURCE)
    except ConfigValidationError as e:
        errors.append(str(e))

    # Prometheus URL only matters when it is the usage source
    if METRICS_SOURCE == "prometheus":
        try:
            _validate_url("PROMETHEUS_URL", PROMETHEUS_URL)
        except ConfigValidationError as e:
            errors.append(str(e))

    # PRICING falls back to defaults on a bad file; re-read it so the run fails instead
    pricing = PRICING
    if PRICING_FILE:
        try:
            pricing = load_pricing(PRICING_FILE)
        except (OSError, yaml.YAMLError, ValueError) as e:
            errors.append(f"PRICING_FILE {PRICING_FILE} is invalid: {e}")

    try:
        validate_pricing(pricing)
    except ConfigValidationError as e:
        errors.append(str(e))

    if errors:
        raise ConfigValidationError(
            "Configuration validation failed:\n  - " + "\n  - ".join(errors)
        )
