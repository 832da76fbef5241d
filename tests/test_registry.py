from __future__ import annotations

import asyncio
import logging

import pytest
from conftest import click_event, command_event, member

from fleetbot.chat.embeds import Affordance, RenderedMessage
from fleetbot.chat.events import ChannelMessage
from fleetbot.registry import CommandSpec, FleetRegistry, GuildRegistry, _Registry


class RecordingCommand:
    def __init__(self, name: str, *, fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.commands: list[str] = []
        self.clicks: list[str] = []

    def build(self) -> CommandSpec:
        return CommandSpec(name=self.name, description=f"{self.name} command")

    def matches(self, custom_id: str) -> bool:
        return custom_id.endswith(f"_{self.name}")

    async def handle_command(self, event, responder) -> None:
        if self.fail:
            raise RuntimeError("handler blew up")
        self.commands.append(event.command_name)

    async def handle_interaction(self, event, responder) -> None:
        self.clicks.append(event.custom_id)


class RecordingOperand:
    name = "echo"

    def __init__(self) -> None:
        self.seen: list[str] = []

    async def handle_message(self, message, replier) -> None:
        self.seen.append(message.content)


class RecordingInstaller:
    def __init__(self, reject: set[str] | None = None) -> None:
        self.reject = reject or set()
        self.installed: list[tuple[str, str]] = []

    async def install(self, tenant_id: str, spec: CommandSpec) -> None:
        if spec.name in self.reject:
            raise RuntimeError(f"rejected {spec.name}")
        self.installed.append((tenant_id, spec.name))


def _message(*custom_ids: str) -> RenderedMessage:
    return RenderedMessage(title="t", affordances=[Affordance(custom_id, custom_id) for custom_id in custom_ids])


def test_guild_registry_installs_at_start_and_routes_by_name(responder) -> None:
    restart, whitelist = RecordingCommand("restart"), RecordingCommand("whitelist")
    registry = GuildRegistry("guild-1").with_command(restart, whitelist)
    installer = RecordingInstaller()

    async def scenario() -> bool:
        await registry.start(installer)
        return await registry.dispatch(command_event("restart"), responder)

    assert asyncio.run(scenario()) is True
    assert installer.installed == [("guild-1", "restart"), ("guild-1", "whitelist")]
    assert restart.commands == ["restart"]
    assert whitelist.commands == []


def test_clicks_route_to_owning_command_only(responder) -> None:
    restart, winddown = RecordingCommand("restart"), RecordingCommand("winddown")
    registry = GuildRegistry("guild-1").with_command(restart, winddown)

    async def scenario() -> tuple[bool, bool]:
        await registry.start(RecordingInstaller())
        owned = await registry.dispatch(click_event("retry_winddown", _message("retry_winddown")), responder)
        foreign = await registry.dispatch(click_event("refresh_players", _message("refresh_players")), responder)
        return owned, foreign

    assert asyncio.run(scenario()) == (True, False)
    assert responder.deferred == 1
    assert winddown.clicks == ["retry_winddown"]
    assert restart.clicks == []


def test_events_for_other_guilds_are_ignored(responder) -> None:
    restart = RecordingCommand("restart")
    registry = GuildRegistry("guild-1").with_command(restart)

    async def scenario() -> bool:
        await registry.start(RecordingInstaller())
        return await registry.dispatch(command_event("restart", tenant_id="guild-2"), responder)

    assert asyncio.run(scenario()) is False
    assert restart.commands == []


def test_handler_exception_is_logged_not_raised(responder, caplog) -> None:
    registry = GuildRegistry("guild-1").with_command(RecordingCommand("restart", fail=True))

    async def scenario() -> bool:
        await registry.start(RecordingInstaller())
        return await registry.dispatch(command_event("restart"), responder)

    with caplog.at_level(logging.ERROR, logger="fleetbot.registry"):
        assert asyncio.run(scenario()) is True

    assert any(record.getMessage() == "handling_command_failed" for record in caplog.records)


def test_rejected_install_does_not_block_other_commands(caplog) -> None:
    registry = GuildRegistry("guild-1").with_command(RecordingCommand("restart"), RecordingCommand("players"))
    installer = RecordingInstaller(reject={"restart"})

    with caplog.at_level(logging.ERROR, logger="fleetbot.registry"):
        asyncio.run(registry.start(installer))

    assert installer.installed == [("guild-1", "players")]
    assert any(record.getMessage() == "installing_command_failed" for record in caplog.records)


def test_fleet_registry_installs_each_guild_once() -> None:
    registry = FleetRegistry().with_command(RecordingCommand("restart"))
    installer = RecordingInstaller()

    async def scenario() -> list[bool]:
        return list(
            await asyncio.gather(
                registry.discover("g1", "One", installer),
                registry.discover("g1", "One", installer),
                registry.discover("g2", "Two", installer),
            )
        )

    results = asyncio.run(scenario())

    assert sorted(results) == [False, True, True]
    assert sorted(installer.installed) == [("g1", "restart"), ("g2", "restart")]
    assert registry.registered_tenants == frozenset({"g1", "g2"})


def test_fleet_tenants_get_their_own_command_copies(responder) -> None:
    restart = RecordingCommand("restart")
    registry = FleetRegistry().with_command(restart)

    async def scenario() -> bool:
        await registry.discover("g1", "One", RecordingInstaller())
        await registry.discover("g2", "Two", RecordingInstaller())
        return await registry.dispatch(command_event("restart", tenant_id="g3"), responder)

    assert asyncio.run(scenario()) is False
    first, second = registry.tenant("g1").commands[0], registry.tenant("g2").commands[0]
    assert first is not second
    assert first is not restart


@pytest.mark.parametrize("from_self", [False, True])
def test_operands_receive_channel_messages(from_self: bool) -> None:
    operand = RecordingOperand()
    registry = GuildRegistry("guild-1").with_operand(operand)

    class Replier:
        async def reply(self, content: str) -> None:
            raise AssertionError("not expected")

    message = ChannelMessage(tenant_id="guild-1", channel_id="c1", author=member(), content="list", from_self=from_self)

    async def scenario() -> None:
        await registry.start(RecordingInstaller())
        await registry.dispatch_message(message, Replier())

    asyncio.run(scenario())

    assert operand.seen == ([] if from_self else ["list"])


def test_registry_base_requires_tenant_lookup() -> None:
    with pytest.raises(TypeError):
        _Registry()
