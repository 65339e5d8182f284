"""
Tests for chat model constraints.

The database enforces the invariants the services rely on, so they hold
even when two requests race past the service-level checks.
"""

import pytest
from django.db import IntegrityError, transaction

from authentication.tests.factories import UserFactory
from chat.models import ChatRoom, ChatRoomMember, DirectRoomPair, Message, RoomType
from chat.tests.factories import (
    DirectRoomFactory,
    GroupRoomFactory,
    MemberFactory,
    MessageFactory,
)


class TestChatRoomConstraints:
    """
    Verifies:
    - DM rooms cannot carry a name
    - Group rooms can

    Why it matters:
        A DM is identified by its two members, never by a title.
    """

    def test_dm_with_name_rejected(self, db):
        with pytest.raises(IntegrityError), transaction.atomic():
            ChatRoom.objects.create(room_type=RoomType.DM, name="Not allowed")

    def test_group_with_name_allowed(self, db):
        room = GroupRoomFactory(name="Book club")

        assert room.is_group is True
        assert room.is_dm is False
        assert str(room) != ""

    def test_rooms_have_uuid_primary_keys(self, db):
        room = GroupRoomFactory()

        assert len(str(room.pk)) == 36


class TestDirectRoomPair:
    """
    Verifies:
    - canonical() orders the pair lower id first
    - One DM per pair
    - The stored pair must be in canonical order

    Why it matters:
        This unique constraint is what makes concurrent find-or-create
        calls converge on one room.
    """

    def test_canonical_orders_ids(self):
        assert DirectRoomPair.canonical(7, 3) == (3, 7)
        assert DirectRoomPair.canonical(3, 7) == (3, 7)

    def test_second_room_for_same_pair_rejected(self, db):
        alice = UserFactory()
        bob = UserFactory()
        DirectRoomFactory(members=[alice, bob])
        other_room = ChatRoom.objects.create(room_type=RoomType.DM)
        lower_id, higher_id = DirectRoomPair.canonical(alice.id, bob.id)

        with pytest.raises(IntegrityError), transaction.atomic():
            DirectRoomPair.objects.create(
                room=other_room, user_lower_id=lower_id, user_higher_id=higher_id
            )

    def test_non_canonical_order_rejected(self, db):
        alice = UserFactory()
        bob = UserFactory()
        room = ChatRoom.objects.create(room_type=RoomType.DM)
        lower_id, higher_id = DirectRoomPair.canonical(alice.id, bob.id)

        with pytest.raises(IntegrityError), transaction.atomic():
            DirectRoomPair.objects.create(
                room=room, user_lower_id=higher_id, user_higher_id=lower_id
            )

    def test_deleting_room_removes_pair(self, db):
        room = DirectRoomFactory()

        room.delete()

        assert DirectRoomPair.objects.count() == 0


class TestChatRoomMember:
    """Verifies a user holds at most one membership per room."""

    def test_duplicate_membership_rejected(self, db):
        member = MemberFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            ChatRoomMember.objects.create(room=member.room, user=member.user)

    def test_last_read_at_starts_empty(self, db):
        member = MemberFactory()

        assert member.last_read_at is None
        assert member.joined_at is not None

    def test_deleting_room_cascades_to_members_and_messages(self, db):
        user = UserFactory()
        room = GroupRoomFactory(members=[user])
        MessageFactory(room=room, author=user)

        room.delete()

        assert ChatRoomMember.objects.count() == 0
        assert Message.objects.count() == 0


class TestMessageConstraints:
    """
    Verifies:
    - Encrypted rows carry iv and tag
    - Plaintext rows carry neither

    Why it matters:
        A row that claims to be encrypted without its nonce could never be
        decrypted; a plaintext row with a nonce would be read as ciphertext.
    """

    def test_plaintext_message_without_iv_tag(self, db):
        message = MessageFactory()

        assert message.is_encrypted is False
        assert message.iv is None
        assert message.tag is None

    def test_encrypted_message_without_iv_rejected(self, db):
        room = GroupRoomFactory()
        author = UserFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            Message.objects.create(
                room=room, author=author, content="00ff", is_encrypted=True, iv=None, tag="ab"
            )

    def test_plaintext_message_with_iv_rejected(self, db):
        room = GroupRoomFactory()
        author = UserFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            Message.objects.create(
                room=room, author=author, content="hi", is_encrypted=False, iv="ab", tag="cd"
            )
