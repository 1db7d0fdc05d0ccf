from __future__ import annotations

from typing import Dict, List

from .errors import InvalidConfiguration

_REGISTRY: Dict[str, object] = {}


def register_metric(name: str, metric, *, overwrite: bool = False) -> None:
    if name in _REGISTRY and not overwrite:
        raise InvalidConfiguration(f"Metric '{name}' already registered. Use overwrite=True to replace.")
    _REGISTRY[name] = metric


def get_metric(name: str):
    if name not in _REGISTRY:
        raise InvalidConfiguration(
            f"Unknown metric '{name}'. Available: {available_metrics()} or 'all'."
        )
    return _REGISTRY[name]


def available_metrics() -> List[str]:
    return list(_REGISTRY)
