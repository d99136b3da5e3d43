"""
Tests for conversations and messages.
"""

import pytest

from tutorbook.domain.enums import MessageType
from tutorbook.domain.messaging import (
    PREVIEW_LENGTH,
    compose_message,
    conversation_id_for,
    mark_read,
    record_message,
    start_conversation,
)


class TestConversations:
    """One conversation per student/tutor pair."""

    def test_id_is_symmetric(self):
        assert conversation_id_for("student-demo", "user-tutor1") == "student-demo_user-tutor1"
        assert conversation_id_for("user-tutor1", "student-demo") == "student-demo_user-tutor1"

    def test_start_conversation(self):
        conversation = start_conversation("student-demo", "user-tutor1")

        assert conversation.student_id == "student-demo"
        assert conversation.tutor_id == "user-tutor1"
        assert conversation.unread_count == 0
        assert conversation.last_message is None


class TestMessages:
    """Composing and recording messages."""

    def test_compose_strips_content(self):
        message = compose_message("student-demo", "user-tutor1", "  Hi there  ")

        assert message.content == "Hi there"
        assert message.conversation_id == "student-demo_user-tutor1"
        assert message.message_type is MessageType.TEXT
        assert not message.is_read

    def test_blank_message_is_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            compose_message("student-demo", "user-tutor1", "   ")

    def test_recipient_unread_count_grows(self):
        conversation = start_conversation("student-demo", "user-tutor1")
        message = compose_message("student-demo", "user-tutor1", "Are you free Monday?")

        updated = record_message(conversation, message)

        assert updated.unread_count == 1
        assert updated.last_sender_id == "student-demo"
        assert updated.unread_for("user-tutor1") == 1
        assert updated.last_message == "Are you free Monday?"
        assert updated.last_message_timestamp == message.timestamp
        assert conversation.unread_count == 0

    def test_sender_has_nothing_unread(self):
        conversation = start_conversation("student-demo", "user-tutor1")
        message = compose_message("student-demo", "user-tutor1", "Are you free Monday?")

        updated = record_message(conversation, message)

        assert updated.unread_for("student-demo") == 0
        assert updated.unread_for("user-tutor9") == 0

    def test_consecutive_messages_accumulate(self):
        conversation = start_conversation("student-demo", "user-tutor1")
        for text in ("Are you free Monday?", "Or Tuesday?"):
            conversation = record_message(conversation, compose_message("student-demo", "user-tutor1", text))

        assert conversation.unread_for("user-tutor1") == 2

    def test_reply_restarts_count_for_the_other_side(self):
        conversation = start_conversation("student-demo", "user-tutor1")
        for text in ("Are you free Monday?", "Or Tuesday?"):
            conversation = record_message(conversation, compose_message("student-demo", "user-tutor1", text))

        conversation = record_message(conversation, compose_message("user-tutor1", "student-demo", "Monday works"))

        assert conversation.unread_for("student-demo") == 1
        assert conversation.unread_for("user-tutor1") == 0

    def test_long_messages_are_previewed(self):
        conversation = start_conversation("student-demo", "user-tutor1")
        message = compose_message("student-demo", "user-tutor1", "word " * 40)

        preview = record_message(conversation, message).last_message

        assert len(preview) <= PREVIEW_LENGTH
        assert preview.endswith("…")

    def test_message_from_another_conversation(self):
        conversation = start_conversation("student-demo", "user-tutor1")
        message = compose_message("student-demo", "user-tutor2", "Hello")

        with pytest.raises(ValueError):
            record_message(conversation, message)

    def test_mark_read(self):
        conversation = start_conversation("student-demo", "user-tutor1").model_copy(update={"unread_count": 3})
        assert mark_read(conversation).unread_count == 0
