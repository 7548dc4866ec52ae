"""
Health check helpers shared by the REST API and the WebSocket gateway.

Usage:
    from shared.utils.health import health_check_with_timeout, aggregate_health_checks

    @health_check_with_timeout(timeout=3.0, component="redis")
    async def check_redis():
        await redis.ping()

    report = await aggregate_health_checks([check_redis()])
"""

from __future__ import annotations

import asyncio
import functools
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Coroutine

from shared.config.logging import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class HealthCheckResult:
    """Outcome of probing one dependency."""
    status: HealthStatus
    component: str
    latency_ms: float | None = None
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"status": self.status.value}
        if self.latency_ms is not None:
            result["latency_ms"] = round(self.latency_ms, 2)
        if self.error:
            result["error"] = self.error
        if self.details:
            result.update(self.details)
        return result


def health_check_with_timeout(timeout: float = 5.0, component: str | None = None):
    """
    Wrap an async probe so it always returns a HealthCheckResult.

    The probe may return a dict of extra details. A timeout or any exception
    marks the component unhealthy instead of propagating.
    """
    def decorator(
        func: Callable[..., Coroutine[Any, Any, dict[str, Any] | None]]
    ) -> Callable[..., Coroutine[Any, Any, HealthCheckResult]]:
        name = component or func.__name__.replace("check_", "").replace("_health", "")

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> HealthCheckResult:
            started = time.perf_counter()
            try:
                details = await asyncio.wait_for(func(*args, **kwargs), timeout=timeout)
            except asyncio.TimeoutError:
                elapsed = (time.perf_counter() - started) * 1000
                logger.warning("Health check timeout", component=name, timeout=timeout)
                return HealthCheckResult(
                    status=HealthStatus.UNHEALTHY,
                    component=name,
                    latency_ms=elapsed,
                    error=f"timeout after {timeout}s",
                )
            except Exception as e:
                elapsed = (time.perf_counter() - started) * 1000
                logger.warning("Health check failed", component=name, error=str(e))
                return HealthCheckResult(
                    status=HealthStatus.UNHEALTHY, component=name, latency_ms=elapsed, error=str(e)
                )

            return HealthCheckResult(
                status=HealthStatus.HEALTHY,
                component=name,
                latency_ms=(time.perf_counter() - started) * 1000,
                details=details if isinstance(details, dict) else {},
            )

        return wrapper
    return decorator


async def aggregate_health_checks(
    checks: list[Coroutine[Any, Any, HealthCheckResult]],
) -> dict[str, Any]:
    """Run probes concurrently. Overall status is degraded if any is unhealthy."""
    results = await asyncio.gather(*checks)
    components = {result.component: result.to_dict() for result in results}
    healthy = all(result.status == HealthStatus.HEALTHY for result in results)
    return {
        "status": HealthStatus.HEALTHY.value if healthy else HealthStatus.DEGRADED.value,
        "components": components,
    }
