"""Chat channel that doubles as a remote server console."""

from __future__ import annotations

import asyncio
import logging

from fleetbot.adapters.game_command import CommandSender
from fleetbot.chat.events import ChannelMessage, Replier


class ConsoleOperand:
    """Forwards messages posted in one channel to RCON and echoes the response.

    Only members holding ``console_role`` may use the console.
    """

    name = "rcon"

    def __init__(
        self,
        *,
        channel_id: str,
        console_role: str,
        sender: CommandSender,
        logger: logging.Logger | None = None,
    ) -> None:
        self._channel_id = channel_id
        self._console_role = console_role
        self._sender = sender
        self._logger = logger or logging.getLogger("fleetbot.console")

    async def handle_message(self, message: ChannelMessage, replier: Replier) -> None:
        if message.from_self or message.channel_id != self._channel_id:
            return

        command = message.content.strip()
        if not command:
            return

        if not message.author.has_role(self._console_role):
            self._logger.info("console_role_missing", extra={"member": message.author.id})
            await replier.reply(
                f"failed to send RCON command: {message.author.mention} missing <@&{self._console_role}> role"
            )
            return

        self._logger.info("sending_console_command", extra={"command": command, "member": message.author.id})
        try:
            response = await asyncio.to_thread(self._sender.call, command)
        except Exception as exc:  # noqa: BLE001 - reported back to the channel.
            self._logger.error("console_command_failed", extra={"command": command, "error": repr(exc)})
            await replier.reply(f"failed to send RCON command: {exc}")
            return

        if response:
            await replier.reply(f"`{response}`")
