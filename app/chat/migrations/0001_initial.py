import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Conversation",
            fields=[
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "id",
                    models.CharField(
                        help_text="Canonical conversation id derived from the participant pair",
                        max_length=257,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "user_lower",
                    models.CharField(
                        db_index=True,
                        help_text="Participant uid that sorts first",
                        max_length=128,
                    ),
                ),
                (
                    "user_higher",
                    models.CharField(
                        db_index=True,
                        help_text="Participant uid that sorts second",
                        max_length=128,
                    ),
                ),
                (
                    "last_message_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="Timestamp of the newest message",
                        null=True,
                    ),
                ),
            ],
            options={
                "db_table": "chat_conversation",
                "ordering": ["-last_message_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user_lower", "user_higher"),
                        name="unique_conversation_pair",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(user_lower__lte=models.F("user_higher")),
                        name="conversation_pair_canonical_order",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "sender_id",
                    models.CharField(
                        db_index=True, help_text="uid of the sender", max_length=128
                    ),
                ),
                (
                    "receiver_id",
                    models.CharField(
                        db_index=True, help_text="uid of the receiver", max_length=128
                    ),
                ),
                (
                    "body",
                    models.TextField(blank=True, default="", help_text="Message text"),
                ),
                (
                    "attachment_url",
                    models.URLField(
                        blank=True,
                        help_text="Attached image URL",
                        max_length=2048,
                        null=True,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        help_text="Server-assigned timestamp, non-decreasing within a conversation"
                    ),
                ),
                (
                    "conversation",
                    models.ForeignKey(
                        help_text="Conversation this message belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.conversation",
                    ),
                ),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["conversation", "created_at", "id"],
                        name="chat_msg_conv_order_idx",
                    )
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("body", ""), _negated=True),
                            ("attachment_url__isnull", False),
                            _connector="OR",
                        ),
                        name="message_has_body_or_attachment",
                    )
                ],
            },
        ),
    ]
