"""
Authentication serializers.

- ProfileSerializer: Read representation of a Profile (also used for contacts)
- DisplayNameUpdateSerializer: PATCH body for the profile endpoint
- SessionRequestSerializer: Sign-in / session refresh body
"""

from rest_framework import serializers

from authentication.models import Profile


class ProfileSerializer(serializers.ModelSerializer):
    """
    Profile as seen by its owner and by contacts.

    `name` is the resolved display name (display_name, then the legacy
    alias, then "Usuario"); clients should render it instead of
    display_name.
    """

    name = serializers.CharField(source="resolved_name", read_only=True)

    class Meta:
        model = Profile
        fields = [
            "uid",
            "name",
            "display_name",
            "email",
            "phone",
            "photo_url",
            "last_seen",
        ]
        read_only_fields = fields


class DisplayNameUpdateSerializer(serializers.Serializer):
    """Request body for PATCH /api/v1/auth/profile/."""

    display_name = serializers.CharField(max_length=150, trim_whitespace=True)


class SessionRequestSerializer(serializers.Serializer):
    """
    Request body for POST /api/v1/auth/session/.

    installation_id links a push token cached before sign-in to the profile.
    """

    id_token = serializers.CharField(trim_whitespace=True)
    installation_id = serializers.CharField(
        max_length=128,
        required=False,
        allow_blank=True,
        default="",
    )
