"""
Django admin configuration for chat models.

Messages are immutable, so both admins are read-only.
"""

from django.contrib import admin

from chat.models import Conversation, Message


class MessageInline(admin.TabularInline):
    model = Message
    extra = 0
    fields = ("id", "sender_id", "body", "attachment_url", "created_at")
    readonly_fields = fields
    ordering = ("-created_at", "-id")
    can_delete = False
    show_change_link = True

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ("id", "user_lower", "user_higher", "last_message_at", "created_at")
    search_fields = ("id", "user_lower", "user_higher")
    readonly_fields = ("id", "user_lower", "user_higher", "last_message_at", "created_at", "updated_at")
    inlines = [MessageInline]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ("id", "conversation", "sender_id", "receiver_id", "created_at")
    list_filter = ("created_at",)
    search_fields = ("conversation__id", "sender_id", "receiver_id")
    readonly_fields = (
        "conversation",
        "sender_id",
        "receiver_id",
        "body",
        "attachment_url",
        "created_at",
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
