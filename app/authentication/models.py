"""
Authentication models.

Identity for the chat core:
- User: login identity keyed by email
- Profile: the public face of a user (username, display name, picture)

The chat core never reads these models directly; it goes through
UserDirectoryService, which turns a Profile into a UserSummary.

Related files:
    - managers.py: UserManager (email-based creation)
    - services.py: UserDirectoryService
    - signals.py: Creates an empty Profile for every new User
"""

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.exceptions import ValidationError
from django.core.validators import RegexValidator
from django.db import models
from django.db.models.functions import Lower

from authentication.managers import UserManager
from core.models import BaseModel

RESERVED_USERNAMES = frozenset(
    ["admin", "root", "system", "support", "api", "chat", "null", "undefined"]
)

username_format_validator = RegexValidator(
    regex=r"^[a-zA-Z0-9_-]{3,30}$",
    message="Username must be 3-30 letters, digits, underscores or hyphens.",
)


def validate_username_not_reserved(value):
    if value.lower() in RESERVED_USERNAMES:
        raise ValidationError(f"The username '{value}' is reserved.")


class User(AbstractBaseUser, PermissionsMixin):
    """
    Login identity. Email is the username field.

    Deactivating a user (is_active=False) hides them from the user
    directory, so they can no longer be added to rooms.
    """

    email = models.EmailField(
        unique=True,
        max_length=254,
        help_text="Login email address",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Inactive users cannot log in or be added to chat rooms",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site",
    )
    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        try:
            return self.profile.name or self.email
        except Profile.DoesNotExist:
            return self.email

    def get_short_name(self):
        return self.get_full_name()


class Profile(BaseModel):
    """
    Public profile shown next to rooms and messages.

    Fields:
        user: Owner (also the primary key)
        username: Handle, unique case-insensitively once chosen
        name: Display name, may be blank
        profile_picture: Optional avatar
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        primary_key=True,
    )
    username = models.CharField(
        max_length=30,
        blank=True,
        validators=[username_format_validator, validate_username_not_reserved],
        help_text="Public handle (3-30 chars), blank until chosen",
    )
    name = models.CharField(
        max_length=150,
        blank=True,
        help_text="Display name",
    )
    profile_picture = models.ImageField(
        upload_to="profile_pictures/",
        blank=True,
        null=True,
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                Lower("username"),
                name="profile_username_ci_unique",
                condition=models.Q(username__gt=""),
            ),
        ]

    def __str__(self):
        return self.username or str(self.user)

    def save(self, *args, **kwargs):
        self.username = self.username.lower()
        super().save(*args, **kwargs)
