"""Order endpoints by their mean connect latency."""

from __future__ import annotations

from ._models import Endpoint, TargetRegistry


def latency_key(endpoint: Endpoint) -> tuple[bool, float]:
    """Sort key: fastest mean latency first.

    Endpoints without a single success have no latency to compare, so
    nothing may be assumed about where they end up. They are currently
    placed after the measured ones in their original relative order.
    """
    mean = endpoint.mean_latency
    return (mean is None, mean if mean is not None else 0.0)


def rank(registry: TargetRegistry) -> TargetRegistry:
    """Sort the endpoints of every target in ``registry`` in place."""
    for target in registry:
        target.endpoints.sort(key=latency_key)
    return registry
