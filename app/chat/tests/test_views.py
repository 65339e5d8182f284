"""
Tests for the chat REST API.

Focus on what the HTTP layer adds on top of ChatService: authentication,
input validation, response shapes, and the status code of each error
category.
"""

import uuid

import pytest
from django.urls import reverse
from rest_framework import status

from chat.models import ChatRoom, Message
from chat.tests.factories import DirectRoomFactory, GroupRoomFactory, MessageFactory
from social.tests.factories import FollowFactory, make_mutual


def rooms_url():
    return reverse("chat:room-list")


def room_url(room_id, name="room-detail"):
    return reverse(f"chat:{name}", kwargs={"pk": room_id})


def messages_url(room_id):
    return reverse("chat:room-message-list", kwargs={"room_pk": room_id})


def message_url(room_id, message_id):
    return reverse("chat:room-message-detail", kwargs={"room_pk": room_id, "pk": message_id})


def members_url(room_id):
    return reverse("chat:room-member-list", kwargs={"room_pk": room_id})


class TestAuthentication:
    """Verifies every chat endpoint requires a JWT."""

    def test_anonymous_rejected(self, api_client, db):
        response = api_client.get(rooms_url())

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_invalid_token_rejected(self, api_client, db):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")

        response = api_client.get(rooms_url())

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_token_endpoint_issues_usable_token(self, api_client, alice):
        response = api_client.post(
            reverse("token_obtain_pair"),
            {"email": alice.email, "password": "TestPass123!"},
            format="json",
        )
        assert response.status_code == status.HTTP_200_OK

        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        assert api_client.get(rooms_url()).status_code == status.HTTP_200_OK


class TestRoomEndpoints:
    """
    Verifies:
    - DM open returns the same room on repeat calls
    - Group creation returns 201 with members
    - Mutual-follow and membership failures map to 403
    - Missing rooms map to 404
    """

    def test_open_dm(self, alice_client, alice, bob):
        make_mutual(alice, bob)

        first = alice_client.post(reverse("chat:room-dm"), {"user_id": bob.id}, format="json")
        second = alice_client.post(reverse("chat:room-dm"), {"user_id": bob.id}, format="json")

        assert first.status_code == status.HTTP_200_OK
        assert first.data["id"] == second.data["id"]
        assert first.data["room_type"] == "DM"
        assert {m["user_id"] for m in first.data["members"]} == {alice.id, bob.id}

    def test_open_dm_without_mutual_follow(self, alice_client, alice, carol):
        FollowFactory(follower=alice, followed=carol)

        response = alice_client.post(
            reverse("chat:room-dm"), {"user_id": carol.id}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "MUTUAL_FOLLOW_REQUIRED"
        assert response.data["error"] == "Users must follow each other to chat"

    def test_create_group(self, alice_client, alice, bob, carol):
        make_mutual(alice, bob, carol)

        response = alice_client.post(
            rooms_url(),
            {"room_type": "GROUP", "member_ids": [alice.id, bob.id, carol.id], "name": "Trip"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["name"] == "Trip"
        assert len(response.data["members"]) == 3
        assert response.data["members"][0]["user"]["username"] == "alice"

    def test_create_group_with_non_mutual_pair(self, alice_client, alice, bob, carol):
        make_mutual(alice, bob)
        make_mutual(alice, carol)

        response = alice_client.post(
            rooms_url(),
            {"room_type": "GROUP", "member_ids": [alice.id, bob.id, carol.id]},
            format="json",
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["details"] == {"user_ids": [bob.id, carol.id]}
        assert ChatRoom.objects.count() == 0

    def test_create_room_invalid_input(self, alice_client, alice):
        response = alice_client.post(
            rooms_url(), {"room_type": "CHANNEL", "member_ids": []}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "room_type" in response.data
        assert "member_ids" in response.data

    def test_create_room_without_requester(self, alice_client, bob, carol):
        response = alice_client.post(
            rooms_url(),
            {"room_type": "GROUP", "member_ids": [bob.id, carol.id]},
            format="json",
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "REQUESTER_NOT_IN_MEMBERS"

    def test_list_rooms(self, alice_client, alice, bob):
        room = GroupRoomFactory(members=[alice, bob])
        MessageFactory(room=room, author=bob, content="hey")
        GroupRoomFactory(members=[bob])

        response = alice_client.get(rooms_url())

        assert response.status_code == status.HTTP_200_OK
        assert len(response.data) == 1
        assert response.data[0]["unread_count"] == 1
        assert response.data[0]["last_message"]["content"] == "hey"
        assert response.data[0]["last_message"]["author_name"] == "Bob Builder"

    def test_retrieve_missing_room(self, alice_client, alice):
        response = alice_client.get(room_url(uuid.uuid4()))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "CHAT_ROOM_NOT_FOUND"

    def test_retrieve_as_non_member(self, alice_client, bob):
        room = GroupRoomFactory(members=[bob])

        response = alice_client.get(room_url(room.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data == {
            "error": "User is not a member of this chat room",
            "error_code": "NOT_CHAT_ROOM_MEMBER",
            "details": {"room_id": str(room.id)},
        }

    def test_rename_group(self, alice_client, alice):
        room = GroupRoomFactory(members=[alice])

        response = alice_client.patch(room_url(room.id), {"name": "Renamed"}, format="json")

        assert response.status_code == status.HTTP_200_OK
        assert response.data["name"] == "Renamed"

    def test_rename_dm_rejected(self, alice_client, alice, bob):
        room = DirectRoomFactory(members=[alice, bob])

        response = alice_client.patch(room_url(room.id), {"name": "Nope"}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "DM_RENAME_NOT_ALLOWED"

    def test_delete_room(self, alice_client, alice):
        room = GroupRoomFactory(members=[alice])

        response = alice_client.delete(room_url(room.id))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert not ChatRoom.objects.filter(pk=room.pk).exists()

    def test_mark_read_and_unread_count(self, alice_client, alice, bob):
        room = GroupRoomFactory(members=[alice, bob])
        MessageFactory(room=room, author=bob)

        before = alice_client.get(room_url(room.id, "room-unread-count"))
        read = alice_client.post(room_url(room.id, "room-read"))
        after = alice_client.get(room_url(room.id, "room-unread-count"))

        assert before.data == {"room_id": str(room.id), "unread_count": 1}
        assert read.data["status"] == "read"
        assert after.data["unread_count"] == 0

    def test_leave_group(self, alice_client, alice, bob):
        room = GroupRoomFactory(members=[alice, bob])

        response = alice_client.post(room_url(room.id, "room-leave"))

        assert response.status_code == status.HTTP_200_OK
        assert response.data == {"status": "left"}

    def test_leave_dm_rejected(self, alice_client, alice, bob):
        room = DirectRoomFactory(members=[alice, bob])

        response = alice_client.post(room_url(room.id, "room-leave"))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "DM_MEMBERSHIP_IMMUTABLE"


class TestMemberEndpoints:
    """Verifies member listing, adding (201/409) and self-removal only."""

    def test_list_members(self, alice_client, alice, bob):
        room = GroupRoomFactory(members=[alice, bob])

        response = alice_client.get(members_url(room.id))

        assert response.status_code == status.HTTP_200_OK
        assert [m["user"]["name"] for m in response.data] == ["Alice Liddell", "Bob Builder"]

    def test_add_member(self, alice_client, alice, bob, carol):
        make_mutual(alice, bob, carol)
        room = GroupRoomFactory(members=[alice, bob])

        response = alice_client.post(members_url(room.id), {"user_id": carol.id}, format="json")

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data["user_id"] == carol.id

    def test_add_existing_member_conflicts(self, alice_client, alice, bob):
        make_mutual(alice, bob)
        room = GroupRoomFactory(members=[alice, bob])

        response = alice_client.post(members_url(room.id), {"user_id": bob.id}, format="json")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.data["error_code"] == "ALREADY_MEMBER"

    def test_remove_other_member_forbidden(self, alice_client, alice, bob):
        room = GroupRoomFactory(members=[alice, bob])
        url = reverse(
            "chat:room-member-detail", kwargs={"room_pk": room.id, "user_id": bob.id}
        )

        response = alice_client.delete(url)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error"] == "You can only remove yourself from chat rooms"

    def test_remove_self(self, alice_client, alice, bob):
        room = GroupRoomFactory(members=[alice, bob])
        url = reverse(
            "chat:room-member-detail", kwargs={"room_pk": room.id, "user_id": alice.id}
        )

        response = alice_client.delete(url)

        assert response.status_code == status.HTTP_204_NO_CONTENT


class TestMessageEndpoints:
    """
    Verifies:
    - Sending returns plaintext and stores ciphertext when a key is set
    - Content errors are 400, membership errors 403
    - Edits are author-only
    - Messages are only reachable through their own room
    """

    def test_send_and_list(self, encryption_settings, alice_client, bob_client, alice, bob):
        room = GroupRoomFactory(members=[alice, bob])

        sent = alice_client.post(messages_url(room.id), {"content": "hello"}, format="json")
        listed = bob_client.get(messages_url(room.id))

        assert sent.status_code == status.HTTP_201_CREATED
        assert sent.data["content"] == "hello"
        assert sent.data["author"]["username"] == "alice"
        assert Message.objects.get(pk=sent.data["id"]).content != "hello"
        assert [m["content"] for m in listed.data] == ["hello"]

    def test_send_empty_content(self, alice_client, alice):
        room = GroupRoomFactory(members=[alice])

        response = alice_client.post(
            messages_url(room.id), {"content": "<script>x</script>"}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "MESSAGE_EMPTY"

    def test_send_as_non_member(self, alice_client, bob):
        room = GroupRoomFactory(members=[bob])

        response = alice_client.post(messages_url(room.id), {"content": "hi"}, format="json")

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_required_encryption_without_key(self, settings, alice_client, alice):
        settings.MESSAGE_ENCRYPTION_KEY = ""
        settings.MESSAGE_ENCRYPTION_REQUIRED = True
        room = GroupRoomFactory(members=[alice])

        response = alice_client.post(messages_url(room.id), {"content": "hi"}, format="json")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data["error_code"] == "ENCRYPTION_NOT_CONFIGURED"
        assert Message.objects.count() == 0

    def test_list_invalid_query(self, alice_client, alice):
        room = GroupRoomFactory(members=[alice])

        response = alice_client.get(messages_url(room.id), {"limit": 0, "cursor": "abc"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "limit" in response.data
        assert "cursor" in response.data

    def test_list_with_cursor_from_other_room(self, alice_client, alice):
        room = GroupRoomFactory(members=[alice])
        foreign = MessageFactory(room=GroupRoomFactory(members=[alice]), author=alice)

        response = alice_client.get(messages_url(room.id), {"cursor": str(foreign.id)})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data["error_code"] == "INVALID_CURSOR"

    def test_retrieve_message(self, alice_client, alice):
        room = GroupRoomFactory(members=[alice])
        message = MessageFactory(room=room, author=alice, content="hi")

        response = alice_client.get(message_url(room.id, message.id))

        assert response.status_code == status.HTTP_200_OK
        assert response.data["content"] == "hi"

    def test_retrieve_message_through_other_room(self, alice_client, alice):
        room = GroupRoomFactory(members=[alice])
        other = GroupRoomFactory(members=[alice])
        message = MessageFactory(room=other, author=alice)

        response = alice_client.get(message_url(room.id, message.id))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data["error_code"] == "MESSAGE_NOT_FOUND"

    def test_edit_own_message(self, alice_client, alice):
        room = GroupRoomFactory(members=[alice])
        message = MessageFactory(room=room, author=alice, content="typo")

        response = alice_client.patch(
            message_url(room.id, message.id), {"content": "fixed"}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data["content"] == "fixed"

    def test_edit_other_users_message(self, bob_client, alice, bob):
        room = GroupRoomFactory(members=[alice, bob])
        message = MessageFactory(room=room, author=alice)

        response = bob_client.patch(
            message_url(room.id, message.id), {"content": "mine now"}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data["error_code"] == "NOT_MESSAGE_AUTHOR"


@pytest.mark.parametrize("url_name", ["room-detail", "room-read", "room-unread-count"])
def test_room_endpoints_reject_non_members(url_name, carol_client, bob):
    room = GroupRoomFactory(members=[bob])

    method = carol_client.post if url_name == "room-read" else carol_client.get
    response = method(room_url(room.id, url_name))

    assert response.status_code == status.HTTP_403_FORBIDDEN
