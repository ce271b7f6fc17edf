"""
Serializers for the push device-token API.

Serializers:
    DeviceTokenRegisterSerializer: A freshly issued token
    DeviceTokenRotateSerializer: A platform token rotation
    DeviceTokenResponseSerializer: Outcome of either call
"""

from __future__ import annotations

from rest_framework import serializers

from notifications.constants import TOKEN_CACHE_CONFIG


class DeviceTokenRegisterSerializer(serializers.Serializer):
    """
    Token issued to an installation.

    installation_id is optional for signed-in callers and required for
    anonymous ones, whose token can only be cached until sign-in.
    """

    token = serializers.CharField(max_length=TOKEN_CACHE_CONFIG.MAX_TOKEN_LENGTH)
    installation_id = serializers.CharField(
        max_length=TOKEN_CACHE_CONFIG.MAX_INSTALLATION_ID_LENGTH,
        required=False,
        allow_blank=True,
        default="",
    )


class DeviceTokenRotateSerializer(serializers.Serializer):
    old_token = serializers.CharField(
        max_length=TOKEN_CACHE_CONFIG.MAX_TOKEN_LENGTH,
        required=False,
        allow_blank=True,
        default="",
    )
    new_token = serializers.CharField(max_length=TOKEN_CACHE_CONFIG.MAX_TOKEN_LENGTH)
    installation_id = serializers.CharField(
        max_length=TOKEN_CACHE_CONFIG.MAX_INSTALLATION_ID_LENGTH,
    )


class DeviceTokenResponseSerializer(serializers.Serializer):
    registered = serializers.BooleanField(
        help_text="The token was newly added to the caller's profile"
    )
    cached = serializers.BooleanField(
        help_text="The token was cached for the installation"
    )
