"""
Django admin configuration for identity models.

Profiles are created by the identity flow, never by hand, so the admin is
read-mostly: uid and provider-sourced contact fields are read-only.
"""

from django.contrib import admin

from authentication.models import DeviceToken, Profile


class DeviceTokenInline(admin.TabularInline):
    model = DeviceToken
    extra = 0
    fields = ("token", "created_at")
    readonly_fields = ("token", "created_at")


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    """Admin configuration for Profile model."""

    list_display = ("uid", "display_name", "email", "phone", "last_seen", "created_at")
    search_fields = ("uid", "display_name", "legacy_name", "email", "phone")
    ordering = ("-created_at",)
    readonly_fields = ("uid", "email", "phone", "last_seen", "created_at", "updated_at")
    fieldsets = (
        (None, {"fields": ("uid", "display_name", "legacy_name", "photo_url")}),
        ("Identity provider", {"fields": ("email", "phone")}),
        ("Activity", {"fields": ("last_seen", "created_at", "updated_at")}),
    )
    inlines = [DeviceTokenInline]


@admin.register(DeviceToken)
class DeviceTokenAdmin(admin.ModelAdmin):
    """Admin configuration for DeviceToken model."""

    list_display = ("profile", "short_token", "created_at")
    search_fields = ("profile__uid", "token")
    raw_id_fields = ("profile",)
    readonly_fields = ("created_at", "updated_at")

    @admin.display(description="Token")
    def short_token(self, obj):
        return f"{obj.token[:16]}..."
