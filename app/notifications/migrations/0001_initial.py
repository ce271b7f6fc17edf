import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("chat", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="MessageNotification",
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
                    "idempotency_key",
                    models.CharField(
                        help_text="Deduplication key, message:<message id>",
                        max_length=64,
                        unique=True,
                    ),
                ),
                (
                    "recipient_id",
                    models.CharField(
                        db_index=True,
                        help_text="uid of the message receiver",
                        max_length=128,
                    ),
                ),
                (
                    "title",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Rendered alert title",
                        max_length=150,
                    ),
                ),
                (
                    "body",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Rendered alert body",
                        max_length=255,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("sent", "Sent"),
                            ("skipped", "Skipped"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Current dispatch status",
                        max_length=20,
                    ),
                ),
                (
                    "skipped_reason",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("self_message", "Sender is the receiver"),
                            ("recipient_not_found", "Recipient has no profile"),
                            ("recipient_viewing", "Recipient has the conversation open"),
                            ("no_device_token", "No device token"),
                        ],
                        default="",
                        help_text="Reason if status=SKIPPED",
                        max_length=30,
                    ),
                ),
                (
                    "success_count",
                    models.PositiveIntegerField(
                        default=0, help_text="Tokens accepted by the transport"
                    ),
                ),
                (
                    "failure_count",
                    models.PositiveIntegerField(
                        default=0, help_text="Tokens rejected by the transport"
                    ),
                ),
                (
                    "pruned_count",
                    models.PositiveIntegerField(
                        default=0, help_text="Rejected tokens removed from the recipient"
                    ),
                ),
                (
                    "attempt_count",
                    models.PositiveSmallIntegerField(
                        default=0, help_text="Number of dispatch attempts"
                    ),
                ),
                (
                    "last_error",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Error message of the last failed attempt",
                    ),
                ),
                (
                    "sent_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the transport accepted the batch",
                        null=True,
                    ),
                ),
                (
                    "message",
                    models.ForeignKey(
                        help_text="Message that triggered the push",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="notifications",
                        to="chat.message",
                    ),
                ),
            ],
            options={
                "verbose_name": "message notification",
                "verbose_name_plural": "message notifications",
                "db_table": "notifications_message_notification",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "-created_at"],
                        name="notif_msg_status_idx",
                    )
                ],
            },
        ),
    ]
