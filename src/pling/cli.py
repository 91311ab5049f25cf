"""
CLI — send notifications from the shell.

Commands:
    pling send [TEXT]   — Send TEXT through every configured channel
    pling list          — Show the channels that would be used

Channels come from three places, in this order: a ``--config`` document, the
channel environment variables (unless ``--no-env``), and the
``--notification-*`` flags (each also readable from its upper-case env var).
"""

from __future__ import annotations

import asyncio
import functools
import logging
import sys
from typing import Any, Callable

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from pling import __version__
from pling.channels.command import Command
from pling.channels.desktop import Desktop
from pling.channels.email import Email
from pling.channels.matrix import Matrix
from pling.channels.slack import Slack
from pling.channels.telegram import TargetChat, Telegram
from pling.channels.webhook import Webhook
from pling.config import dump_notifiers, load_notifiers
from pling.dispatch import Dispatcher
from pling.env import parse_url
from pling.errors import ConfigError
from pling.notifier import Notifier, discover_all

console = Console()
err_console = Console(stderr=True)


class UrlType(click.ParamType):
    name = "url"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        url = parse_url(value)
        if url is None:
            self.fail(f"{value!r} is not a valid URL", param, ctx)
        return url


class TargetChatType(click.ParamType):
    name = "id/username"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> Any:
        if isinstance(value, TargetChat):
            return value
        return TargetChat.parse(value)


URL = UrlType()
TARGET_CHAT = TargetChatType()

# option -> option it cannot be used without
REQUIRES = {
    "notification_matrix_homeserver": "notification_matrix_room_id",
    "notification_matrix_room_id": "notification_matrix_access_token",
    "notification_matrix_access_token": "notification_matrix_homeserver",
    "notification_telegram_bot_token": "notification_telegram_target_chat",
    "notification_telegram_target_chat": "notification_telegram_bot_token",
    "notification_telegram_disable_web_page_preview": "notification_telegram_bot_token",
    "notification_telegram_silent": "notification_telegram_bot_token",
}

_NOTIFICATION_OPTIONS = [
    click.option(
        "--notification-matrix-homeserver",
        envvar="NOTIFICATION_MATRIX_HOMESERVER",
        type=URL,
        metavar="URL",
        help="Matrix homeserver URL.",
    ),
    click.option(
        "--notification-matrix-room-id",
        envvar="NOTIFICATION_MATRIX_ROOM_ID",
        metavar="ROOM_ID",
        help="Matrix room to post into.",
    ),
    click.option(
        "--notification-matrix-access-token",
        envvar="NOTIFICATION_MATRIX_ACCESS_TOKEN",
        metavar="ACCESS_TOKEN",
        help="Matrix access token.",
    ),
    click.option(
        "--notification-slack-webhook",
        envvar="NOTIFICATION_SLACK_WEBHOOK",
        type=URL,
        metavar="URL",
        help="Slack incoming webhook URL.",
    ),
    click.option(
        "--notification-telegram-bot-token",
        envvar="NOTIFICATION_TELEGRAM_BOT_TOKEN",
        metavar="BOT_TOKEN",
        help="Bot token from @BotFather.",
    ),
    click.option(
        "--notification-telegram-target-chat",
        envvar="NOTIFICATION_TELEGRAM_TARGET_CHAT",
        type=TARGET_CHAT,
        metavar="ID/USERNAME",
        help="Chat/user id or chat/channel username. The bot must be a member.",
    ),
    click.option(
        "--notification-telegram-disable-web-page-preview",
        envvar="NOTIFICATION_TELEGRAM_DISABLE_WEB_PAGE_PREVIEW",
        is_flag=True,
        help="Disable link previews in the Telegram message.",
    ),
    click.option(
        "--notification-telegram-silent",
        envvar="NOTIFICATION_TELEGRAM_SILENT",
        is_flag=True,
        help="Send the Telegram message without sound.",
    ),
    click.option(
        "--notification-webhook",
        envvar="NOTIFICATION_WEBHOOK",
        type=URL,
        metavar="URL",
        help="POST the notification text to this URL.",
    ),
    click.option(
        "--config",
        "config_file",
        type=click.Path(exists=True, dir_okay=False),
        help="YAML/JSON notifier document.",
    ),
    click.option(
        "--env/--no-env",
        "use_env",
        default=True,
        show_default=True,
        help="Discover channels from environment variables.",
    ),
]


def notification_options(f: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the channel options and resolve them into a ``notifiers`` argument."""

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        config_file = kwargs.pop("config_file")
        use_env = kwargs.pop("use_env")
        flags = {name: kwargs.pop(name) for name in list(kwargs) if name.startswith("notification_")}
        check_requires(flags)

        notifiers: list[Notifier] = []
        if config_file:
            try:
                notifiers.extend(load_notifiers(config_file))
            except ConfigError as exc:
                raise click.BadParameter(str(exc), param_hint="--config") from exc
        if use_env:
            notifiers.extend(discover_all())
        notifiers.extend(notifiers_from_flags(**flags))
        return f(*args, notifiers=notifiers, **kwargs)

    for option in reversed(_NOTIFICATION_OPTIONS):
        wrapper = option(wrapper)
    return wrapper


def _is_set(value: Any) -> bool:
    return value is not None and value is not False


def _flag(name: str) -> str:
    return "--" + name.replace("_", "-")


def check_requires(flags: dict[str, Any]) -> None:
    for name, required in REQUIRES.items():
        if _is_set(flags.get(name)) and not _is_set(flags.get(required)):
            raise click.UsageError(f"{_flag(name)} requires {_flag(required)}")


def notifiers_from_flags(
    notification_matrix_homeserver: Any = None,
    notification_matrix_room_id: str | None = None,
    notification_matrix_access_token: str | None = None,
    notification_slack_webhook: Any = None,
    notification_telegram_bot_token: str | None = None,
    notification_telegram_target_chat: TargetChat | None = None,
    notification_telegram_disable_web_page_preview: bool = False,
    notification_telegram_silent: bool = False,
    notification_webhook: Any = None,
) -> list[Notifier]:
    """Turn the ``--notification-*`` values into notifiers (Matrix, Slack, Telegram, Webhook)."""
    result: list[Notifier] = []
    if (
        notification_matrix_homeserver is not None
        and notification_matrix_room_id is not None
        and notification_matrix_access_token is not None
    ):
        result.append(
            Matrix(
                homeserver=notification_matrix_homeserver,
                room_id=notification_matrix_room_id,
                access_token=notification_matrix_access_token,
            )
        )
    if notification_slack_webhook is not None:
        result.append(Slack(webhook=notification_slack_webhook))
    if notification_telegram_bot_token is not None and notification_telegram_target_chat is not None:
        result.append(
            Telegram(
                bot_token=notification_telegram_bot_token,
                target_chat=notification_telegram_target_chat,
                disable_web_page_preview=notification_telegram_disable_web_page_preview,
                disable_notification=notification_telegram_silent,
            )
        )
    if notification_webhook is not None:
        result.append(Webhook(url=notification_webhook))
    return result


def describe(notifier: Notifier) -> str:
    """One-line, secret-free description of where a notifier sends to."""
    if isinstance(notifier, Command):
        return " ".join([notifier.program, *notifier.arguments])
    if isinstance(notifier, Desktop):
        return notifier.summary or ""
    if isinstance(notifier, Email):
        port = f":{notifier.port}" if notifier.port else ""
        return f"{notifier.to} via {notifier.server}{port}"
    if isinstance(notifier, Matrix):
        return f"{notifier.room_id} on {notifier.homeserver.host}"
    if isinstance(notifier, Slack):
        return notifier.webhook.host or ""
    if isinstance(notifier, Telegram):
        return str(notifier.target_chat)
    return notifier.url.host or ""


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Log every channel at debug level.")
def main(verbose: bool) -> None:
    """pling — send notifications to Slack, Telegram, Matrix, email and more."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


@main.command()
@click.argument("text", required=False, default="Hello world", envvar="TEXT")
@click.option("--async", "use_async", is_flag=True, help="Send concurrently with the async transport.")
@notification_options
def send(text: str, use_async: bool, notifiers: list[Notifier]) -> None:
    """Send TEXT through every configured channel."""
    if not notifiers:
        console.print("[yellow]No notification channels configured.[/yellow]")
        sys.exit(1)

    dispatcher = Dispatcher(notifiers)
    if use_async:
        results = asyncio.run(dispatcher.dispatch_async(text))
    else:
        results = dispatcher.dispatch(text)

    for result in results:
        if result.ok:
            console.print(f"[green]>[/green] Sent via [bold]{result.notifier.name}[/bold]")
        else:
            console.print(f"[red]x[/red] [bold]{result.notifier.name}[/bold]: {escape(str(result.error))}")

    if not all(r.ok for r in results):
        sys.exit(1)


@main.command(name="list")
@click.option("--yaml", "as_yaml", is_flag=True, help="Print as a notifier document (includes secrets).")
@notification_options
def list_notifiers(as_yaml: bool, notifiers: list[Notifier]) -> None:
    """Show the channels that `pling send` would use."""
    if as_yaml:
        click.echo(dump_notifiers(notifiers), nl=False)
        return

    if not notifiers:
        console.print("[dim]No notification channels configured.[/dim]")
        return

    table = Table(title="Notification channels")
    table.add_column("Channel", style="bold")
    table.add_column("Target")
    for notifier in notifiers:
        table.add_row(notifier.name, describe(notifier))
    console.print(table)


if __name__ == "__main__":
    main()
