"""Discord gateway infrastructure."""

from threadwise.infrastructure.discord.gateway import DiscordGateway, DiscordReplySink

__all__ = ["DiscordGateway", "DiscordReplySink"]
