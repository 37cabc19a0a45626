"""Liveness, readiness and system metrics."""

import asyncio
import os
import platform
import resource
import sys
import time
from datetime import datetime, timezone
from typing import Any

from scrapegate.core.cache import ResponseCache
from scrapegate.core.logging import get_logger

logger = get_logger("scrapegate.core.health")

PROCESS_STARTED = time.monotonic()
EVENT_LOOP_PROBE_SECONDS = 0.1
EVENT_LOOP_LAG_LIMIT_MS = 100.0


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def uptime() -> float:
    """Seconds since the process imported this module."""
    return round(time.monotonic() - PROCESS_STARTED, 3)


def _max_rss_mb() -> float:
    usage = resource.getrusage(resource.RUSAGE_SELF)
    # ru_maxrss is KiB on Linux and bytes on macOS
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return round(usage.ru_maxrss / divisor, 2)


def check_liveness() -> dict[str, Any]:
    """Report that the process is alive."""
    return {
        "status": "alive",
        "timestamp": _now(),
        "pid": os.getpid(),
        "uptime": uptime(),
    }


async def check_event_loop_lag(probe: float = EVENT_LOOP_PROBE_SECONDS) -> float:
    """Measure how late a short sleep wakes up, in milliseconds."""
    start = time.perf_counter()
    await asyncio.sleep(probe)
    elapsed = time.perf_counter() - start
    return round(max(0.0, (elapsed - probe) * 1000), 3)


async def check_readiness(cache: ResponseCache | None = None) -> dict[str, Any]:
    """Check whether the service can take traffic.

    Args:
        cache: Response cache to probe with a write/read round trip

    Returns:
        Dict with overall status and per-check results
    """
    readiness: dict[str, Any] = {
        "status": "ready",
        "timestamp": _now(),
        "checks": {},
    }

    readiness["checks"]["python"] = {
        "status": "ok",
        "version": platform.python_version(),
    }

    lag = await check_event_loop_lag()
    readiness["checks"]["eventLoop"] = {
        "status": "ok" if lag < EVENT_LOOP_LAG_LIMIT_MS else "degraded",
        "lag": lag,
    }

    if cache is not None:
        try:
            await cache.set("readiness:probe", {"ok": True}, ttl=5)
            probe = await cache.get("readiness:probe")
            readiness["checks"]["cache"] = {
                "status": "ok" if probe else "degraded",
                "backend": type(cache.backend).__name__,
            }
        except Exception as e:
            logger.error("readiness_cache_failed", error=str(e))
            readiness["checks"]["cache"] = {"status": "error", "error": str(e)}

    if any(check["status"] == "error" for check in readiness["checks"].values()):
        readiness["status"] = "not_ready"

    return readiness


def get_system_metrics() -> dict[str, Any]:
    """Collect process and host metrics."""
    usage = resource.getrusage(resource.RUSAGE_SELF)
    try:
        loadavg = list(os.getloadavg())
    except OSError:
        loadavg = []
    return {
        "timestamp": _now(),
        "uptime": uptime(),
        "memory": {
            "maxRss": _max_rss_mb(),
            "unit": "MB",
        },
        "cpu": {
            "user": round(usage.ru_utime, 6),
            "system": round(usage.ru_stime, 6),
            "unit": "seconds",
        },
        "loadavg": loadavg,
        "platform": sys.platform,
        "pythonVersion": platform.python_version(),
    }
