"""
Views for the push device-token API.

Endpoints:
    POST /api/v1/notifications/devices/tokens/         - Token issued
    POST /api/v1/notifications/devices/tokens/rotate/  - Token rotated

Both endpoints accept anonymous callers: the platform may issue a token
before the user signs in. Such tokens are only cached per installation and
attached to the profile by POST /api/v1/auth/session/ later on.
"""

from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import ValidationError
from notifications.serializers import (
    DeviceTokenRegisterSerializer,
    DeviceTokenResponseSerializer,
    DeviceTokenRotateSerializer,
)
from notifications.services import TokenLifecycleManager, clean_token

logger = logging.getLogger(__name__)


def _signed_in_uid(request) -> str | None:
    user = request.user
    return user.uid if user and user.is_authenticated else None


class DeviceTokenView(APIView):
    """
    Register a newly issued push token.

    Signed in: the token is added to the caller's profile (idempotent).
    With installation_id: the token is also cached for that installation.
    Anonymous callers must send installation_id.

    URL: /api/v1/notifications/devices/tokens/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Register push token",
        tags=["Notifications - Devices"],
        request=DeviceTokenRegisterSerializer,
        responses={
            200: DeviceTokenResponseSerializer,
            201: DeviceTokenResponseSerializer,
            400: OpenApiResponse(description="Blank token or missing installation id"),
        },
    )
    def post(self, request):
        serializer = DeviceTokenRegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        token = clean_token(serializer.validated_data["token"])
        installation_id = serializer.validated_data["installation_id"].strip()
        uid = _signed_in_uid(request)

        if uid is None and not installation_id:
            raise ValidationError(
                "installation_id is required when not signed in",
                error_code="INSTALLATION_ID_REQUIRED",
            )

        manager = TokenLifecycleManager(installation_id or None)

        cached = False
        if installation_id:
            async_to_sync(manager.store_issued)(token)
            cached = True

        registered = False
        if uid is not None:
            registered = async_to_sync(manager.register_token)(uid, token)

        logger.info(
            f"Push token received (user={uid or 'anonymous'}, "
            f"registered={registered}, cached={cached})"
        )
        return Response(
            {"registered": registered, "cached": cached},
            status=status.HTTP_201_CREATED if registered else status.HTTP_200_OK,
        )


class DeviceTokenRotateView(APIView):
    """
    Record a platform-issued token rotation.

    The new token replaces the installation's cached token and is added to
    the caller's profile when signed in. The old token is kept until a send
    rejects it.

    URL: /api/v1/notifications/devices/tokens/rotate/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Rotate push token",
        tags=["Notifications - Devices"],
        request=DeviceTokenRotateSerializer,
        responses={200: DeviceTokenResponseSerializer, 201: DeviceTokenResponseSerializer},
    )
    def post(self, request):
        serializer = DeviceTokenRotateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        manager = TokenLifecycleManager(data["installation_id"])
        registered = async_to_sync(manager.rotate_token)(
            data["old_token"],
            data["new_token"],
            profile_id=_signed_in_uid(request),
        )
        return Response(
            {"registered": registered, "cached": True},
            status=status.HTTP_201_CREATED if registered else status.HTTP_200_OK,
        )
