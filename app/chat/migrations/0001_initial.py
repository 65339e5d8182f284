import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ChatRoom",
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
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "name",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="Name for group rooms (empty for DMs)",
                        max_length=100,
                    ),
                ),
                (
                    "room_type",
                    models.CharField(
                        choices=[("DM", "Direct Message"), ("GROUP", "Group")],
                        db_index=True,
                        default="GROUP",
                        help_text="Type of room (DM or GROUP)",
                        max_length=10,
                    ),
                ),
            ],
            options={
                "db_table": "chat_room",
                "ordering": ["-updated_at", "-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("room_type", "DM"), _negated=True),
                            ("name", ""),
                            _connector="OR",
                        ),
                        name="chat_room_dm_has_no_name",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DirectRoomPair",
            fields=[
                (
                    "room",
                    models.OneToOneField(
                        help_text="The DM room this pair represents",
                        on_delete=django.db.models.deletion.CASCADE,
                        primary_key=True,
                        related_name="direct_pair",
                        serialize=False,
                        to="chat.chatroom",
                    ),
                ),
                (
                    "user_lower",
                    models.ForeignKey(
                        help_text="User with lower id in this pair",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "user_higher",
                    models.ForeignKey(
                        help_text="User with higher id in this pair",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_direct_room_pair",
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user_lower", "user_higher"),
                        name="unique_direct_room_pair",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("user_lower_id__lt", models.F("user_higher_id"))
                        ),
                        name="direct_pair_user_lower_less_than_higher",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ChatRoomMember",
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
                    "joined_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        help_text="When the user joined this room",
                    ),
                ),
                (
                    "last_read_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="Last time the user read this room (for unread counts)",
                        null=True,
                    ),
                ),
                (
                    "room",
                    models.ForeignKey(
                        help_text="Room this membership belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="memberships",
                        to="chat.chatroom",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        help_text="Member of the room",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="chat_memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_room_member",
                "ordering": ["joined_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["user", "room"], name="chat_member_user_room_idx"
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("room", "user"),
                        name="unique_chat_room_member",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
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
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier for this record",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "content",
                    models.TextField(
                        help_text="Sanitized plaintext, or hex ciphertext when encrypted"
                    ),
                ),
                (
                    "message_type",
                    models.CharField(
                        choices=[("TEXT", "Text"), ("IMAGE", "Image"), ("FILE", "File")],
                        default="TEXT",
                        help_text="Type of message content",
                        max_length=10,
                    ),
                ),
                (
                    "is_encrypted",
                    models.BooleanField(
                        default=False,
                        help_text="Whether content is stored encrypted",
                    ),
                ),
                (
                    "iv",
                    models.CharField(
                        blank=True,
                        help_text="Hex-encoded AES-GCM nonce",
                        max_length=64,
                        null=True,
                    ),
                ),
                (
                    "tag",
                    models.CharField(
                        blank=True,
                        help_text="Hex-encoded AES-GCM authentication tag",
                        max_length=64,
                        null=True,
                    ),
                ),
                (
                    "author",
                    models.ForeignKey(
                        help_text="User who sent this message",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="chat_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "room",
                    models.ForeignKey(
                        help_text="Room this message belongs to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.chatroom",
                    ),
                ),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(
                        fields=["room", "created_at", "id"],
                        name="chat_msg_room_cursor_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("is_encrypted", True),
                                ("iv__isnull", False),
                                ("tag__isnull", False),
                            ),
                            models.Q(
                                ("is_encrypted", False),
                                ("iv__isnull", True),
                                ("tag__isnull", True),
                            ),
                            _connector="OR",
                        ),
                        name="chat_msg_iv_tag_iff_encrypted",
                    ),
                ],
            },
        ),
    ]
