"""
Authentication application.

Key components:
    - User model: Custom email-based user authentication
    - Profile model: Public profile data
    - UserDirectoryService: Public profile lookups for other apps

Usage:
    from authentication.models import User, Profile
    from authentication.services import UserDirectoryService
"""
