"""
Core views providing infrastructure endpoints.

health_check reports the three backends every message passes through:
the database (message log), the cache (presence) and the channel layer
(fan-out).
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    HTTP Status Codes:
        200: Database reachable (cache and channel layer may be degraded)
        503: Database unreachable

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
            "channel_layer": "connected"
        }
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
        "channel_layer": "unknown",
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        logger.exception("Health check: database unreachable")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    # Cache failures degrade presence suppression only
    try:
        cache.set("health_check", "ok", timeout=1)
        health_status["cache"] = (
            "connected" if cache.get("health_check") == "ok" else "disconnected"
        )
    except Exception as e:
        logger.warning(f"Health check: cache unavailable: {e}")
        health_status["cache"] = "disconnected"

    try:
        layer = get_channel_layer()
        if layer is None:
            health_status["channel_layer"] = "disabled"
        else:
            async_to_sync(layer.group_send)("health", {"type": "health.ping"})
            health_status["channel_layer"] = "connected"
    except Exception as e:
        logger.warning(f"Health check: channel layer unavailable: {e}")
        health_status["channel_layer"] = "disconnected"

    return JsonResponse(health_status, status=200 if is_healthy else 503)


def api_exception_handler(exc, context):
    """
    DRF exception handler that renders core.exceptions as JSON.

    BaseApplicationError subclasses carry their own status code; retryable
    errors also get a Retry-After header so clients back off. Everything
    else is left to DRF's default handler.
    """
    if isinstance(exc, BaseApplicationError):
        response = Response(exc.to_dict(), status=exc.http_status)
        if exc.retryable:
            response["Retry-After"] = "2"
        return response
    return exception_handler(exc, context)
