"""
Social graph application.

Holds the follow relationship the chat core consults before letting
users share a room.

Usage:
    from social.services import FollowService

    FollowService.is_following(follower_id, followed_id)
"""
