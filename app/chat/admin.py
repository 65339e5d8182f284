"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Chat room management
- Membership viewing
- Message metadata (content is shown only when stored unencrypted)
"""

from django.contrib import admin

from chat.models import ChatRoom, ChatRoomMember, DirectRoomPair, Message


class ChatRoomMemberInline(admin.TabularInline):
    """Inline display of members in chat room admin."""

    model = ChatRoomMember
    extra = 0
    readonly_fields = ["joined_at", "last_read_at"]
    raw_id_fields = ["user"]


@admin.register(ChatRoom)
class ChatRoomAdmin(admin.ModelAdmin):
    """Admin interface for ChatRoom model."""

    list_display = ["id", "room_type", "name", "created_at", "updated_at"]
    list_filter = ["room_type", "created_at"]
    search_fields = ["name", "id"]
    readonly_fields = ["id", "created_at", "updated_at"]
    inlines = [ChatRoomMemberInline]
    ordering = ["-updated_at"]


@admin.register(DirectRoomPair)
class DirectRoomPairAdmin(admin.ModelAdmin):
    """Admin interface for DM pairs. Read-only."""

    list_display = ["room", "user_lower", "user_higher"]
    raw_id_fields = ["room", "user_lower", "user_higher"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "room",
        "author",
        "message_type",
        "is_encrypted",
        "created_at",
    ]
    list_filter = ["message_type", "is_encrypted", "created_at"]
    search_fields = ["id", "room__id", "author__email"]
    raw_id_fields = ["room", "author"]
    readonly_fields = ["id", "content", "is_encrypted", "iv", "tag", "created_at", "updated_at"]
    ordering = ["-created_at"]
