"""
Student/tutor conversations.

There is one conversation per (student, tutor) pair; its id is derived from
the two participant ids so either side computes the same key.
"""

from .enums import MessageType
from .models import Conversation, Message

PREVIEW_LENGTH = 80


def conversation_id_for(first_id: str, second_id: str) -> str:
    return "_".join(sorted((first_id, second_id)))


def start_conversation(student_id: str, tutor_id: str) -> Conversation:
    return Conversation(
        id=conversation_id_for(student_id, tutor_id),
        student_id=student_id,
        tutor_id=tutor_id,
    )


def compose_message(
    sender_id: str,
    recipient_id: str,
    content: str,
    message_type: MessageType = MessageType.TEXT,
) -> Message:
    """
    Build a message addressed within the pair's conversation.

    Raises:
        ValueError: If the content is blank
    """
    text = content.strip()
    if not text:
        raise ValueError("Message content cannot be empty")
    return Message(
        conversation_id=conversation_id_for(sender_id, recipient_id),
        sender_id=sender_id,
        recipient_id=recipient_id,
        content=text,
        message_type=message_type,
    )


def _preview(content: str) -> str:
    if len(content) <= PREVIEW_LENGTH:
        return content
    return content[: PREVIEW_LENGTH - 1].rstrip() + "…"


def record_message(conversation: Conversation, message: Message) -> Conversation:
    """
    Return the conversation updated with a new last message.

    Consecutive messages from one sender accumulate as unread for the other
    participant. A reply counts as having read the thread, so the count
    restarts at one for the new recipient.
    """
    if message.conversation_id != conversation.id:
        raise ValueError(
            f"Message belongs to {message.conversation_id}, not {conversation.id}"
        )

    if conversation.last_sender_id == message.sender_id:
        unread = conversation.unread_count + 1
    else:
        unread = 1

    return conversation.model_copy(
        update={
            "last_message": _preview(message.content),
            "last_message_timestamp": message.timestamp,
            "last_sender_id": message.sender_id,
            "unread_count": unread,
        }
    )


def mark_read(conversation: Conversation) -> Conversation:
    return conversation.model_copy(update={"unread_count": 0})
