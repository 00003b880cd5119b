"""
Core views and view helpers.

health_check is used by Docker health checks, Kubernetes liveness checks and load
balancers. failure_response turns a failed ServiceResult into the API's
error body with a status derived from the error code.
"""

from __future__ import annotations

from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse
from rest_framework import status
from rest_framework.response import Response

from core.services import ServiceResult

# Error code suffixes that map to something other than 400
_STATUS_BY_SUFFIX = (
    ("NOT_FOUND", status.HTTP_404_NOT_FOUND),
    ("PERMISSION_DENIED", status.HTTP_403_FORBIDDEN),
    ("FORBIDDEN", status.HTTP_403_FORBIDDEN),
    ("CONFLICT", status.HTTP_409_CONFLICT),
    ("STALE_RECORD", status.HTTP_409_CONFLICT),
    ("LOCK_CONTENTION", status.HTTP_409_CONFLICT),
    ("RATE_LIMITED", status.HTTP_429_TOO_MANY_REQUESTS),
)


def failure_response(result: ServiceResult) -> Response:
    """
    Build the error Response for a failed service result.

    Body is {"error": ..., "error_code": ...}; unmatched codes are 400.
    """
    code = result.error_code or ""
    http_status = status.HTTP_400_BAD_REQUEST
    for suffix, mapped in _STATUS_BY_SUFFIX:
        if code.endswith(suffix):
            http_status = mapped
            break
    return Response(result.to_response(), status=http_status)


def health_check(request):
    """
    Report database and cache connectivity.

    Returns 200 when the database answers, 503 otherwise. Cache failures are
    reported but do not fail the check.
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    try:
        cache.set("health_check", "ok", timeout=1)
        if cache.get("health_check") == "ok":
            health_status["cache"] = "connected"
        else:
            health_status["cache"] = "disconnected"
    except Exception:
        health_status["cache"] = "disconnected"

    return JsonResponse(health_status, status=200 if is_healthy else 503)
