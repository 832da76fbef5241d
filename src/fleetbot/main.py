"""CLI startup entrypoint for fleetbot."""

from __future__ import annotations

import logging
from datetime import timedelta

import typer
from rich import print

from fleetbot.adapters import MinecraftClient, ReconnectingTransport
from fleetbot.capabilities import NoopNotifier, Restarter
from fleetbot.cli import CliCommandHandler
from fleetbot.config import settings
from fleetbot.console import ConsoleOperand
from fleetbot.errors import FleetBotError, TransportError
from fleetbot.registry import FleetRegistry, GuildRegistry
from fleetbot.telemetry.logging import configure_logging
from fleetbot.workflows import (
    PlayersCommand,
    restart_workflow,
    wakeup_workflow,
    whitelist_workflow,
    winddown_workflow,
)

app = typer.Typer(help="fleetbot: chat-operated game server control")

_logger = logging.getLogger("fleetbot.main")


def _build_transport(*, connect: bool = True) -> ReconnectingTransport:
    transport = ReconnectingTransport(
        settings.minecraft_rcon_address,
        settings.minecraft_rcon_password.get_secret_value(),
        timeout_seconds=settings.minecraft_rcon_timeout_seconds,
        reconnect_backoff_seconds=settings.minecraft_rcon_reconnect_backoff_seconds,
        max_reconnects=settings.minecraft_rcon_max_reconnects,
    )
    if connect:
        try:
            transport.setup()
        except TransportError:
            # The first command retries the handshake.
            _logger.exception("setting_up_minecraft_client_failed")
    return transport


def _build_valheim_client():
    from fleetbot.adapters.valheim import ValheimClient

    return ValheimClient(settings.valheim_query_address, timeout_seconds=settings.valheim_query_timeout_seconds)


def _enable_minecraft(registry: GuildRegistry | FleetRegistry) -> None:
    transport = _build_transport()
    minecraft = MinecraftClient(transport)
    role = settings.minecraft_approver_role
    debounce = timedelta(seconds=settings.debounce_seconds)

    scaler = None
    restarter: Restarter = minecraft
    if settings.minecraft_statefulset_name and settings.minecraft_statefulset_namespace:
        from fleetbot.adapters.kubernetes import StatefulSetRestarter, StatefulSetScaler, apps_api

        apps = apps_api(in_cluster=settings.kubernetes_in_cluster)
        scaler = StatefulSetScaler(
            namespace=settings.minecraft_statefulset_namespace,
            name=settings.minecraft_statefulset_name,
            apps=apps,
            wakeup_replicas=settings.minecraft_wakeup_replicas,
            field_manager=settings.kubernetes_field_manager,
        )
        if settings.minecraft_restart_mode == "rollout":
            restarter = StatefulSetRestarter(
                namespace=settings.minecraft_statefulset_namespace,
                name=settings.minecraft_statefulset_name,
                apps=apps,
                field_manager=settings.kubernetes_field_manager,
            )
    elif settings.minecraft_restart_mode == "rollout":
        raise typer.BadParameter(
            "Set FLEETBOT_MINECRAFT_STATEFULSET_NAME and FLEETBOT_MINECRAFT_STATEFULSET_NAMESPACE for rollout restarts"
        )

    registry.with_command(
        whitelist_workflow(whitelister=minecraft, approver_role=role),
        restart_workflow(
            counter=minecraft,
            restarter=restarter,
            notifier=minecraft,
            override_role=role,
            debounce=debounce,
        ),
        PlayersCommand(minecraft, debounce=timedelta(seconds=settings.poll_interval_seconds)),
    )

    if scaler is not None:
        registry.with_command(
            winddown_workflow(
                counter=minecraft,
                scaler=scaler,
                notifier=minecraft,
                override_role=role,
                debounce=debounce,
            ),
            wakeup_workflow(scaler=scaler),
        )

    if settings.minecraft_console_channel_id:
        registry.with_operand(
            ConsoleOperand(
                channel_id=settings.minecraft_console_channel_id,
                console_role=role,
                sender=transport,
            )
        )


def _enable_valheim(registry: GuildRegistry | FleetRegistry) -> None:
    from fleetbot.adapters.kubernetes import PodRestarter, core_api

    if not (settings.valheim_namespace and settings.valheim_pod_label_key and settings.valheim_pod_label):
        raise typer.BadParameter(
            "Set FLEETBOT_VALHEIM_NAMESPACE, FLEETBOT_VALHEIM_POD_LABEL_KEY and FLEETBOT_VALHEIM_POD_LABEL"
        )

    valheim = _build_valheim_client()
    restarter = PodRestarter(
        namespace=settings.valheim_namespace,
        label_key=settings.valheim_pod_label_key,
        label_value=settings.valheim_pod_label,
        core=core_api(in_cluster=settings.kubernetes_in_cluster),
    )
    registry.with_command(
        restart_workflow(
            counter=valheim,
            restarter=restarter,
            notifier=NoopNotifier(),
            override_role=settings.valheim_approver_role,
            debounce=timedelta(seconds=settings.debounce_seconds),
        ),
        PlayersCommand(valheim, debounce=timedelta(seconds=settings.poll_interval_seconds)),
    )


def _build_registry() -> GuildRegistry | FleetRegistry:
    if settings.minecraft_enabled and settings.valheim_enabled:
        raise typer.BadParameter("Both backends register /restart and /players; run one bot process per game")

    registry: GuildRegistry | FleetRegistry
    if settings.discord_guild_id:
        registry = GuildRegistry(settings.discord_guild_id)
    else:
        registry = FleetRegistry()

    if settings.minecraft_enabled:
        _enable_minecraft(registry)
    if settings.valheim_enabled:
        _enable_valheim(registry)
    return registry


def _build_cli_handler() -> CliCommandHandler:
    if settings.valheim_enabled and not settings.minecraft_enabled:
        return CliCommandHandler(sender=None, lister=_build_valheim_client())
    transport = _build_transport(connect=False)
    return CliCommandHandler(sender=transport, lister=MinecraftClient(transport))


@app.command("show-config")
def show_config() -> None:
    """Show runtime backend configuration."""
    print(settings.model_dump(mode="json"))


@app.command()
def run() -> None:
    """Connect to Discord and serve commands until interrupted."""
    from fleetbot.bot import FleetClient

    configure_logging(settings.log_level)
    token = settings.discord_token.get_secret_value()
    if not token:
        raise typer.BadParameter("Set FLEETBOT_DISCORD_TOKEN")

    registry = _build_registry()
    _logger.info(
        "starting_bot",
        extra={
            "mode": "guild" if isinstance(registry, GuildRegistry) else "fleet",
            "commands": [command.name for command in registry.commands],
            "operands": [operand.name for operand in registry.operands],
        },
    )
    client = FleetClient(registry, application_id=settings.discord_application_id)
    client.run(token, log_handler=None)


@app.command()
def players() -> None:
    """Print the players currently online."""
    configure_logging(settings.log_level)
    try:
        print(_build_cli_handler().players())
    except FleetBotError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)


@app.command("send-command")
def send_command(command: str) -> None:
    """Send a raw console command to the server and print the response."""
    configure_logging(settings.log_level)
    try:
        print({"command_result": _build_cli_handler().submit_command(command)})
    except (FleetBotError, RuntimeError) as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
