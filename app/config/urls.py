"""
URL configuration for the chat backend.

The `urlpatterns` list routes URLs to views. This is the root URL configuration
that includes all app-specific routes.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (for load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - JWT endpoints
        token/                     - Obtain access/refresh pair (email + password)
        token/refresh/             - Refresh access token
    /api/v1/chat/                  - Chat endpoints
        rooms/                     - Chat room list/create
        rooms/dm/                  - Find or create a direct message room
        rooms/{id}/                - Chat room detail/update/delete
        rooms/{id}/read/           - Mark chat room as read
        rooms/{id}/leave/          - Leave chat room
        rooms/{id}/unread-count/   - Unread message count
        rooms/{id}/members/        - Member list/add
        rooms/{id}/members/{user_id}/ - Remove member
        rooms/{id}/messages/       - Message list/send
        rooms/{id}/messages/{pk}/  - Message detail/edit

WebSocket:
    /ws/chat/{room_id}/?token=<jwt> - Real-time chat (see chat/consumers.py)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
# All routes here are prefixed with /api/v1/ automatically
api_v1_patterns = [
    # Authentication (JWT)
    path("auth/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    # Chat
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Chat Admin"
admin.site.site_title = "Chat Admin Portal"
admin.site.index_title = "Welcome to the Chat Admin Portal"
