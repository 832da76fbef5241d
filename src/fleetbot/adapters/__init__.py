"""Game protocol and cluster adapters."""

from .game_command import CommandSender
from .minecraft import MinecraftClient, parse_player_list
from .rcon_transport import ConnectionState, ReconnectingTransport, is_connection_terminated, parse_address

__all__ = [
    "CommandSender",
    "ConnectionState",
    "MinecraftClient",
    "ReconnectingTransport",
    "is_connection_terminated",
    "parse_address",
    "parse_player_list",
]
