"""Chat platform boundary: rendered messages, inbound events and reply surfaces."""

from .embeds import Affordance, ButtonStyle, EmbedField, RenderedMessage
from .events import ChannelMessage, ChatMember, EventKind, InteractionEvent, Replier, Responder

__all__ = [
    "Affordance",
    "ButtonStyle",
    "ChannelMessage",
    "ChatMember",
    "EmbedField",
    "EventKind",
    "InteractionEvent",
    "RenderedMessage",
    "Replier",
    "Responder",
]
