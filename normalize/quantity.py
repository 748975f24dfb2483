"""Parsing of Kubernetes resource quantity strings.

Memory is normalized to MiB ("megabytes", base unit ``Mi``) and CPU to
millicores (base unit ``m``). Anything that does not match a recognized
notation resolves to ``None`` so callers can tell "not declared" apart from
"declared as zero".
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class ResourceKind(Enum):
    MEMORY = "memory"
    CPU = "cpu"


BASE_UNITS = {
    ResourceKind.MEMORY: "Mi",
    ResourceKind.CPU: "m",
}

_NUMBER = r"(\d+(?:\.\d*)?|\.\d+)"
_MEMORY_RE = re.compile(rf"^{_NUMBER}(Gi|Mi)$")
_CPU_RE = re.compile(rf"^{_NUMBER}(m?)$")
_STORAGE_RE = re.compile(rf"^{_NUMBER}(Ti|Gi|T|G)$")


@dataclass(frozen=True)
class Quantity:
    """A resource amount already converted to its kind's base unit."""
    kind: ResourceKind
    magnitude: int

    @property
    def base_unit(self) -> str:
        return BASE_UNITS[self.kind]

    def __str__(self) -> str:
        return format_quantity(self)


def _clean(raw: Any) -> str:
    if raw is None:
        return ""
    return str(raw).strip()


def _number(text: str) -> Union[int, float]:
    # whole numbers stay exact
    if "." in text:
        return float(text)
    return int(text)


def parse_memory(raw: Any) -> Optional[int]:
    """Return memory in MiB for ``Gi``/``Mi`` strings, else None."""
    m = _MEMORY_RE.match(_clean(raw))
    if not m:
        return None
    value, unit = _number(m.group(1)), m.group(2)
    if unit == "Gi":
        return int(value * 1024)
    return int(value)


def parse_cpu(raw: Any) -> Optional[int]:
    """Return CPU in millicores for ``500m`` or bare core counts like ``1.5``."""
    m = _CPU_RE.match(_clean(raw))
    if not m:
        return None
    value, unit = _number(m.group(1)), m.group(2)
    if unit == "m":
        return int(value)
    return int(value * 1000)


_PARSERS = {
    ResourceKind.MEMORY: parse_memory,
    ResourceKind.CPU: parse_cpu,
}


def parse_quantity(raw: Any, kind: ResourceKind) -> Optional[Quantity]:
    magnitude = _PARSERS[kind](raw)
    if magnitude is None:
        return None
    return Quantity(kind=kind, magnitude=magnitude)


def format_quantity(quantity: Quantity) -> str:
    return f"{quantity.magnitude}{quantity.base_unit}"


def parse_storage_gb(raw: Any) -> Optional[int]:
    """Volume capacity in whole GB. ``Gi`` and ``G`` are both read as GB."""
    m = _STORAGE_RE.match(_clean(raw))
    if not m:
        return None
    value, unit = _number(m.group(1)), m.group(2)
    if unit in ("Ti", "T"):
        value *= 1024
    return int(value)
