"""
Django admin configuration for notification models.

MessageNotification rows are written only by the dispatcher, so the admin
is read-only and exists for support and delivery debugging.
"""

from django.contrib import admin

from notifications.models import MessageNotification


@admin.register(MessageNotification)
class MessageNotificationAdmin(admin.ModelAdmin):
    """Read-only view of push dispatch records."""

    list_display = [
        "idempotency_key",
        "recipient_id",
        "status",
        "skipped_reason",
        "success_count",
        "failure_count",
        "pruned_count",
        "attempt_count",
        "created_at",
    ]
    list_filter = ["status", "skipped_reason", "created_at"]
    search_fields = ["idempotency_key", "recipient_id"]
    ordering = ["-created_at"]
    readonly_fields = [
        "idempotency_key",
        "message",
        "recipient_id",
        "title",
        "body",
        "status",
        "skipped_reason",
        "success_count",
        "failure_count",
        "pruned_count",
        "attempt_count",
        "last_error",
        "sent_at",
        "created_at",
        "updated_at",
    ]
    fieldsets = (
        (None, {"fields": ("idempotency_key", "message", "recipient_id")}),
        ("Alert", {"fields": ("title", "body")}),
        (
            "Delivery",
            {
                "fields": (
                    "status",
                    "skipped_reason",
                    "success_count",
                    "failure_count",
                    "pruned_count",
                    "attempt_count",
                    "last_error",
                    "sent_at",
                ),
            },
        ),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
