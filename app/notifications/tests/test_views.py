"""
Tests for the device-token API.

Covers:
- POST /api/v1/notifications/devices/tokens/
- POST /api/v1/notifications/devices/tokens/rotate/
"""

import pytest
from asgiref.sync import async_to_sync
from rest_framework import status

from authentication.models import DeviceToken
from notifications.services import TokenLifecycleManager

TOKENS_URL = "/api/v1/notifications/devices/tokens/"
ROTATE_URL = "/api/v1/notifications/devices/tokens/rotate/"


def tokens_of(uid):
    return sorted(DeviceToken.objects.filter(profile_id=uid).values_list("token", flat=True))


def cached_token(installation_id):
    return async_to_sync(TokenLifecycleManager(installation_id).current_token)()


@pytest.mark.django_db
class TestRegisterTokenView:
    def test_signed_in_registers_token(self, client_for, ana):
        response = client_for(ana).post(TOKENS_URL, {"token": "tA"}, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data == {"registered": True, "cached": False}
        assert tokens_of("u1") == ["tA"]

    def test_signed_in_registration_goes_through_lifecycle_manager(
        self, client_for, ana, monkeypatch
    ):
        calls = []
        original_register = TokenLifecycleManager.register_token

        async def recording_register(manager, profile_id, token):
            calls.append((manager.installation_id, profile_id, token))
            return await original_register(manager, profile_id, token)

        monkeypatch.setattr(TokenLifecycleManager, "register_token", recording_register)

        client_for(ana).post(TOKENS_URL, {"token": " tA "}, format="json")

        assert calls == [(None, "u1", "tA")]
        assert tokens_of("u1") == ["tA"]

    def test_signed_in_registration_moves_token_from_previous_account(
        self, client_for, ana, beto
    ):
        client_for(beto).post(TOKENS_URL, {"token": "tShared"}, format="json")

        response = client_for(ana).post(TOKENS_URL, {"token": "tShared"}, format="json")

        assert response.data["registered"] is True
        assert tokens_of("u1") == ["tShared"]
        assert "tShared" not in tokens_of("u2")

    def test_repeat_registration_returns_200(self, client_for, ana):
        client = client_for(ana)
        client.post(TOKENS_URL, {"token": "tA"}, format="json")

        response = client.post(TOKENS_URL, {"token": "tA"}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["registered"] is False
        assert tokens_of("u1") == ["tA"]

    def test_installation_token_is_cached(self, client_for, ana):
        response = client_for(ana).post(
            TOKENS_URL, {"token": "tA", "installation_id": "install-1"}, format="json"
        )

        assert response.data == {"registered": True, "cached": True}
        assert cached_token("install-1") == "tA"

    def test_anonymous_token_is_only_cached(self, api_client):
        response = api_client.post(
            TOKENS_URL, {"token": "tA", "installation_id": "install-1"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"registered": False, "cached": True}
        assert cached_token("install-1") == "tA"
        assert not DeviceToken.objects.exists()

    def test_anonymous_without_installation_returns_400(self, api_client):
        response = api_client.post(TOKENS_URL, {"token": "tA"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INSTALLATION_ID_REQUIRED"

    def test_blank_token_returns_400(self, client_for, ana):
        response = client_for(ana).post(TOKENS_URL, {"token": "  "}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not DeviceToken.objects.exists()


@pytest.mark.django_db
class TestRotateTokenView:
    def test_signed_in_rotation_adds_new_token(self, client_for, ana):
        client = client_for(ana)
        client.post(TOKENS_URL, {"token": "old"}, format="json")

        response = client.post(
            ROTATE_URL,
            {"old_token": "old", "new_token": "new", "installation_id": "install-1"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert tokens_of("u1") == ["new", "old"]
        assert cached_token("install-1") == "new"

    def test_anonymous_rotation_only_caches(self, api_client):
        response = api_client.post(
            ROTATE_URL, {"new_token": "new", "installation_id": "install-1"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"registered": False, "cached": True}

    def test_installation_id_is_required(self, api_client):
        response = api_client.post(ROTATE_URL, {"new_token": "new"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
