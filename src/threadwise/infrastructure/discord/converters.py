"""Conversion from discord.py objects to domain messages."""

import discord

from threadwise.domain.entities.chat_message import (
    Attachment,
    ChatMessage,
    SentMessage,
    TriggerMessage,
)


def to_chat_message(message: discord.Message) -> ChatMessage:
    """Convert a discord.py message to a ChatMessage."""
    return ChatMessage(
        id=str(message.id),
        channel_id=str(message.channel.id),
        author_id=str(message.author.id),
        content=message.content or "",
        attachments=[
            Attachment(
                url=attachment.url,
                content_type=attachment.content_type,
                filename=attachment.filename,
            )
            for attachment in message.attachments
        ],
        referenced_id=_referenced_id(message),
        created_at=message.created_at,
    )


def to_trigger_message(message: discord.Message) -> TriggerMessage:
    """Convert an inbound discord.py message to a TriggerMessage.

    The parent is taken from ``message.reference.resolved``, which the
    gateway fills in for replies without an extra API call.
    """
    base = to_chat_message(message)
    resolved = message.reference.resolved if message.reference else None
    return TriggerMessage(
        **base.model_dump(),
        guild_id=str(message.guild.id) if message.guild else None,
        mentions=[str(user.id) for user in message.mentions],
        referenced_message=(
            to_chat_message(resolved) if isinstance(resolved, discord.Message) else None
        ),
    )


def to_sent_message(message: discord.Message) -> SentMessage:
    """Convert the result of a send or edit."""
    return SentMessage(
        id=str(message.id),
        channel_id=str(message.channel.id),
        content=message.content or "",
    )


def _referenced_id(message: discord.Message) -> str | None:
    if message.reference is None or message.reference.message_id is None:
        return None
    return str(message.reference.message_id)
