import authentication.models
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Profile",
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
                    "uid",
                    models.CharField(
                        help_text="Identity-provider user id",
                        max_length=128,
                        primary_key=True,
                        serialize=False,
                        validators=[authentication.models.validate_uid],
                    ),
                ),
                (
                    "display_name",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Canonical display name",
                        max_length=150,
                    ),
                ),
                (
                    "legacy_name",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Deprecated name alias, read only as a fallback for display_name",
                        max_length=150,
                    ),
                ),
                (
                    "email",
                    models.EmailField(
                        blank=True,
                        db_index=True,
                        default="",
                        help_text="Email from the identity provider (never overwritten once set)",
                        max_length=254,
                    ),
                ),
                (
                    "phone",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Phone from the identity provider (never overwritten once set)",
                        max_length=32,
                    ),
                ),
                (
                    "photo_url",
                    models.URLField(
                        blank=True,
                        help_text="Avatar URL",
                        max_length=2048,
                        null=True,
                    ),
                ),
                (
                    "last_seen",
                    models.BigIntegerField(
                        default=0,
                        help_text="Epoch milliseconds of the last session refresh (monotonic)",
                    ),
                ),
            ],
            options={
                "verbose_name": "profile",
                "verbose_name_plural": "profiles",
                "db_table": "authentication_profile",
                "ordering": ["display_name", "uid"],
            },
        ),
        migrations.CreateModel(
            name="DeviceToken",
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
                    "token",
                    models.CharField(
                        help_text="Opaque push token, owned by one profile at a time",
                        max_length=512,
                        unique=True,
                    ),
                ),
                (
                    "profile",
                    models.ForeignKey(
                        help_text="Profile this token delivers to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="device_tokens",
                        to="authentication.profile",
                    ),
                ),
            ],
            options={
                "verbose_name": "device token",
                "verbose_name_plural": "device tokens",
                "db_table": "authentication_device_token",
                "ordering": ["created_at", "id"],
            },
        ),
    ]
