"""
Message content sanitizing.

Content is cleaned with an allow-list before it is stored or encrypted:
only simple inline formatting survives, all attributes are removed, and
the text of disallowed tags is kept (except script/style bodies, which
are dropped entirely).
"""

from __future__ import annotations

import nh3

from chat.constants import MESSAGE_CONFIG
from chat.exceptions import InvalidMessageContentError


def sanitize_message_content(content: str) -> str:
    """
    Sanitize message content and enforce content rules.

    Args:
        content: Raw content as submitted by the client

    Returns:
        Sanitized content

    Raises:
        InvalidMessageContentError: If the sanitized content is empty or
            longer than MESSAGE_CONFIG.MAX_CONTENT_LENGTH

    Example:
        >>> sanitize_message_content('<b onclick="x()">hi</b><script>bad()</script>')
        '<b>hi</b>'
    """
    cleaned = nh3.clean(
        content,
        tags=set(MESSAGE_CONFIG.ALLOWED_TAGS),
        clean_content_tags=set(MESSAGE_CONFIG.CLEAN_CONTENT_TAGS),
        attributes={},
        strip_comments=True,
        link_rel=None,
    )

    if len(cleaned) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
        raise InvalidMessageContentError(
            "Message content exceeds maximum length",
            error_code="MESSAGE_TOO_LONG",
            details={
                "length": len(cleaned),
                "max_length": MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
            },
        )

    if not cleaned.strip():
        raise InvalidMessageContentError(
            "Message content cannot be empty",
            error_code="MESSAGE_EMPTY",
        )

    return cleaned
