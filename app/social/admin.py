"""
Django admin configuration for social models.
"""

from django.contrib import admin

from social.models import Follow


@admin.register(Follow)
class FollowAdmin(admin.ModelAdmin):
    """Admin interface for follow edges."""

    list_display = ["id", "follower", "followed", "created_at"]
    search_fields = ["follower__email", "followed__email"]
    raw_id_fields = ["follower", "followed"]
    ordering = ["-created_at"]
