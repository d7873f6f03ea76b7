import time
from typing import Any, Callable, Dict

import structlog
from django.core.cache import cache
from django.db import DatabaseError, connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

logger = structlog.get_logger()


def _timed(probe: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
    start = time.monotonic()
    details = probe()
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
        **details,
    }


def _probe_database() -> Dict[str, Any]:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()
    # Without row locks concurrent stock debits are serialised only by
    # the database's own write lock (SQLite).
    return {
        "vendor": conn.vendor,
        "row_locking": conn.features.has_select_for_update,
    }


def _probe_cache() -> Dict[str, Any]:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")
    return {}


def health_check(request: HttpRequest) -> JsonResponse:
    """Public liveness probe: database and cache (throttle counters)."""
    services: Dict[str, Dict[str, Any]] = {}

    try:
        services["database"] = _timed(_probe_database)
    except DatabaseError as exc:
        services["database"] = {"status": "down"}
        logger.error("health_check.database_down", error=str(exc))

    # Redis in production, locmem under tests; any client error means down.
    try:
        services["cache"] = _timed(_probe_cache)
    except Exception as exc:
        services["cache"] = {"status": "down"}
        logger.error("health_check.cache_down", error=str(exc))

    healthy = all(service["status"] == "up" for service in services.values())
    logger.info("health_check.completed", healthy=healthy)

    return JsonResponse(
        {
            "status": "healthy" if healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
        },
        status=200 if healthy else 503,
    )
