"""
Authentication views.

This module provides API views for:
- Session refresh: exchange an identity-provider ID token for a profile
- Profile: read the caller's profile, update its display name
- Contacts: every other profile the caller can start a conversation with

Related files:
    - serializers.py: Request/response serialization
    - services.py: ProfileStore
    - backends.py: Bearer ID token authentication used by the other endpoints

Note:
    Sign-in itself happens on the client against the identity provider.
    POST /session/ is the first call after sign-in and after every app start.
"""

import logging

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from authentication.serializers import (
    DisplayNameUpdateSerializer,
    ProfileSerializer,
    SessionRequestSerializer,
)
from authentication.services import ProfileStore
from notifications.services import TokenLifecycleManager

logger = logging.getLogger(__name__)


class SessionView(APIView):
    """
    Refresh the caller's session.

    POST: Verify the ID token (retrying identity-provider outages), create or
    merge the profile, advance last_seen and attach the installation's cached
    push token.

    URL: /api/v1/auth/session/
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        summary="Refresh session",
        description=(
            "Verify an identity-provider ID token and return the caller's profile. "
            "Pass installation_id to register a push token issued before sign-in."
        ),
        tags=["Auth - Session"],
        request=SessionRequestSerializer,
        responses={
            200: ProfileSerializer,
            403: OpenApiResponse(description="Credential rejected"),
            503: OpenApiResponse(description="Identity provider unavailable, retry later"),
        },
    )
    def post(self, request):
        serializer = SessionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        store = ProfileStore()
        profile = async_to_sync(store.refresh_session)(serializer.validated_data["id_token"])

        installation_id = serializer.validated_data["installation_id"]
        if installation_id:
            manager = TokenLifecycleManager(installation_id, profile_store=store)
            async_to_sync(manager.sync_with_profile)(profile.uid)

        logger.info(f"Session refreshed for {profile.uid}")
        return Response(ProfileSerializer(profile).data)


class ProfileView(APIView):
    """
    API view for the caller's profile.

    GET: Retrieve the profile
    PATCH: Update the display name

    URL: /api/v1/auth/profile/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Get current user's profile",
        tags=["Auth - Profile"],
        responses={200: ProfileSerializer},
    )
    def get(self, request):
        return Response(ProfileSerializer(request.user).data)

    @extend_schema(
        summary="Update display name",
        description="Sets the name shown to contacts and used as the push title.",
        tags=["Auth - Profile"],
        request=DisplayNameUpdateSerializer,
        responses={200: ProfileSerializer},
    )
    def patch(self, request):
        serializer = DisplayNameUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        profile = async_to_sync(ProfileStore().update_display_name)(
            request.user.uid, serializer.validated_data["display_name"]
        )
        return Response(ProfileSerializer(profile).data)


class ContactsView(APIView):
    """
    List the profiles the caller can message.

    URL: /api/v1/auth/contacts/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List contacts",
        tags=["Auth - Profile"],
        responses={200: ProfileSerializer(many=True)},
    )
    def get(self, request):
        contacts = async_to_sync(ProfileStore().list_contacts)(request.user.uid)
        return Response(ProfileSerializer(contacts, many=True).data)
