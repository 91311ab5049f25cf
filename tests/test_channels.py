"""Channel implementation tests with mocked transports."""

import smtplib
import sys
from unittest.mock import MagicMock, patch

import httpx
import pytest
from pydantic import ValidationError

from pling.channels import slack, matrix
from pling.channels.command import Command
from pling.channels.desktop import Desktop, notification_argv
from pling.channels.email import Email
from pling.channels.matrix import Matrix
from pling.channels.slack import Slack
from pling.channels.webhook import Webhook
from pling.errors import ChannelError, CommandError, CommandErrorKind, UnsupportedTransport


def _email(**kwargs) -> Email:
    defaults = {
        "server": "smtp.example.com",
        "username": "bot",
        "password": "hunter2",
        "from": "bot@example.com",
        "to": "me@example.com",
        "subject": "pling",
    }
    defaults.update(kwargs)
    return Email(**defaults)


# ---------------------------------------------------------------------------
# Command channel
# ---------------------------------------------------------------------------


class TestCommandChannel:
    def test_success(self):
        cmd = Command(program=sys.executable, arguments=["-c", "import sys; sys.exit(0)"])
        cmd.send("something")

    def test_non_success_exit(self):
        cmd = Command(program=sys.executable, arguments=["-c", "import sys; sys.exit(3)"])
        with pytest.raises(CommandError) as excinfo:
            cmd.send("something")
        assert excinfo.value.kind == CommandErrorKind.NON_SUCCESS_EXIT
        assert excinfo.value.returncode == 3
        assert excinfo.value.channel == "Command"

    def test_spawn_failure(self):
        cmd = Command(program="/nonexistent/pling-test-program")
        with pytest.raises(CommandError) as excinfo:
            cmd.send("something")
        assert excinfo.value.kind == CommandErrorKind.SPAWN_FAILED

    def test_null_byte_is_spawn_failure(self):
        cmd = Command(program=sys.executable, arguments=["-c", "pass"])
        with pytest.raises(CommandError) as excinfo:
            cmd.send("a\x00b")
        assert excinfo.value.kind == CommandErrorKind.SPAWN_FAILED

    def test_text_is_last_argument(self):
        cmd = Command(program="notify", arguments=["--urgent", "-t", "5"])
        assert cmd.build_argv("hi there") == ["notify", "--urgent", "-t", "5", "hi there"]

    def test_text_reaches_the_program(self):
        script = "import sys; sys.exit(0 if sys.argv[-1] == 'ping \"me\"' else 1)"
        Command(program=sys.executable, arguments=["-c", script]).send('ping "me"')

    @pytest.mark.asyncio
    async def test_send_async_runs_synchronously(self):
        cmd = Command(program=sys.executable, arguments=["-c", "import sys; sys.exit(1)"])
        with pytest.raises(CommandError):
            await cmd.send_async("something")


# ---------------------------------------------------------------------------
# Desktop channel
# ---------------------------------------------------------------------------


class TestDesktopChannel:
    def test_linux_argv_with_summary(self):
        argv = notification_argv("Linux", "Build", "done")
        assert argv[0] == "notify-send"
        assert argv[-2:] == ["Build", "done"]

    def test_linux_argv_without_summary(self):
        argv = notification_argv("Linux", None, "done")
        assert argv[-1] == "done"
        assert "Build" not in argv

    def test_macos_argv_escapes_quotes(self):
        argv = notification_argv("Darwin", 'say "hi"', 'a "b"')
        assert argv[:2] == ["osascript", "-e"]
        assert argv[2] == 'display notification "a \\"b\\"" with title "say \\"hi\\""'

    def test_windows_argv_escapes_xml(self):
        argv = notification_argv("Windows", None, "<b>&</b>")
        assert argv[0] == "powershell"
        assert "&lt;b&gt;&amp;&lt;/b&gt;" in argv[-1]

    def test_linux_argv_ends_options(self):
        argv = notification_argv("Linux", None, "--version")
        assert argv[-2:] == ["--", "--version"]
        argv = notification_argv("Linux", "-5 degrees", "-v")
        assert argv[-3:] == ["--", "-5 degrees", "-v"]

    def test_windows_argv_does_not_expand_variables(self):
        script = notification_argv("Windows", "$x", "$(Remove-Item C:\\x)")[-1]
        assert "@'\n" in script
        assert "\n'@\n" in script
        assert '@"' not in script
        assert '<text id="1">$x</text>' in script
        assert '<text id="2">$(Remove-Item C:\\x)</text>' in script

    def test_windows_argv_escapes_apostrophes(self):
        script = notification_argv("Windows", None, "x\n'@\nWrite-Host pwned")[-1]
        assert "&apos;@" in script
        assert script.count("'@") == 1

    def test_windows_argv_keeps_empty_summary(self):
        script = notification_argv("Windows", "", "body")[-1]
        assert '<text id="1"></text>' in script

    def test_unsupported_platform(self):
        with pytest.raises(ChannelError):
            notification_argv("Plan9", None, "hi")

    def test_send_runs_tool(self):
        ok = MagicMock(returncode=0, stderr=b"")
        with (
            patch("pling.channels.desktop.platform.system", return_value="Linux"),
            patch("pling.channels.desktop.shutil.which", return_value="/usr/bin/notify-send"),
            patch("pling.channels.desktop.subprocess.run", return_value=ok) as run,
        ):
            Desktop(summary="Build").send("done")

        argv = run.call_args[0][0]
        assert argv[0] == "notify-send"
        assert argv[-1] == "done"

    def test_send_fails_when_tool_missing(self):
        with (
            patch("pling.channels.desktop.platform.system", return_value="Linux"),
            patch("pling.channels.desktop.shutil.which", return_value=None),
        ):
            with pytest.raises(ChannelError):
                Desktop().send("done")

    def test_send_wraps_null_byte(self):
        with (
            patch("pling.channels.desktop.platform.system", return_value="Linux"),
            patch("pling.channels.desktop.shutil.which", return_value="/usr/bin/notify-send"),
        ):
            with pytest.raises(ChannelError) as excinfo:
                Desktop().send("a\x00b")
        assert excinfo.value.channel == "Desktop"

    def test_send_fails_on_bad_exit(self):
        failed = MagicMock(returncode=1, stderr=b"no dbus")
        with (
            patch("pling.channels.desktop.platform.system", return_value="Linux"),
            patch("pling.channels.desktop.shutil.which", return_value="/usr/bin/notify-send"),
            patch("pling.channels.desktop.subprocess.run", return_value=failed),
        ):
            with pytest.raises(ChannelError) as excinfo:
                Desktop().send("done")
        assert excinfo.value.channel == "Desktop"


# ---------------------------------------------------------------------------
# Email channel
# ---------------------------------------------------------------------------


class TestEmailChannel:
    def test_build_message(self):
        msg = _email().build_message("hello")
        assert msg["From"] == "bot@example.com"
        assert msg["To"] == "me@example.com"
        assert msg["Subject"] == "pling"
        assert msg.get_payload(decode=True).decode() == "hello"

    def test_invalid_address(self):
        with pytest.raises(ChannelError):
            _email(to="nobody").build_message("hello")

    def test_from_alias_and_field_name(self):
        assert _email().from_ == "bot@example.com"
        by_name = Email(
            server="s", username="u", password="p", from_="a@b.c", to="d@e.f", subject="x"
        )
        assert by_name.from_ == "a@b.c"

    def test_send_uses_default_port(self):
        with patch("pling.channels.email.smtplib.SMTP_SSL") as smtp:
            _email().send("hello")

        smtp.assert_called_once()
        assert smtp.call_args[0][:2] == ("smtp.example.com", 465)
        server = smtp.return_value.__enter__.return_value
        server.login.assert_called_once_with("bot", "hunter2")
        server.send_message.assert_called_once()

    def test_send_uses_explicit_port(self):
        with patch("pling.channels.email.smtplib.SMTP_SSL") as smtp:
            _email(port=2465).send("hello")
        assert smtp.call_args[0][1] == 2465

    @pytest.mark.parametrize("port", [0, -1, 65536])
    def test_port_out_of_range(self, port):
        with pytest.raises(ValidationError):
            _email(port=port)

    def test_smtp_failure_is_wrapped(self):
        with patch("pling.channels.email.smtplib.SMTP_SSL") as smtp:
            server = smtp.return_value.__enter__.return_value
            server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"nope")
            with pytest.raises(ChannelError) as excinfo:
                _email().send("hello")
        assert excinfo.value.channel == "Email"

    def test_password_not_in_repr(self):
        assert "hunter2" not in repr(_email())

    @pytest.mark.asyncio
    async def test_send_async_uses_executor(self):
        ch = _email()
        with patch.object(ch.__class__, "_smtp_send") as smtp_send:
            await ch.send_async("hello")
            smtp_send.assert_called_once()


# ---------------------------------------------------------------------------
# Matrix channel
# ---------------------------------------------------------------------------


class TestMatrixChannel:
    def _matrix(self, homeserver: str = "https://matrix.example.org") -> Matrix:
        return Matrix(homeserver=homeserver, room_id="!room:example.org", access_token="secret")

    def test_payload(self):
        assert matrix.payload_to_json("hello world") == '{"msgtype":"m.text","body":"hello world"}'

    def test_payload_with_quotes(self):
        assert (
            matrix.payload_to_json('hello "world"')
            == '{"msgtype":"m.text","body":"hello \\"world\\""}'
        )

    def test_payload_leaves_backslashes_and_newlines(self):
        assert matrix.payload_to_json("a\\b\nc") == '{"msgtype":"m.text","body":"a\\b\nc"}'

    def test_url(self):
        assert self._matrix().build_url() == (
            "https://matrix.example.org/_matrix/client/r0/rooms/!room:example.org"
            "/send/m.room.message?access_token=secret"
        )

    def test_url_replaces_homeserver_path(self):
        url = self._matrix("https://example.org/some/path").build_url()
        assert url.startswith("https://example.org/_matrix/client/r0/rooms/")

    def test_invalid_homeserver(self):
        with pytest.raises(ValidationError):
            self._matrix("not a url")

    def test_send(self, transport):
        self._matrix().send('say "hi"', transport)
        args, kwargs = transport.post.call_args
        assert args[0].endswith("?access_token=secret")
        assert kwargs["content"] == '{"msgtype":"m.text","body":"say \\"hi\\""}'
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_error_redacts_token(self, transport):
        transport.post.side_effect = httpx.ConnectError("cannot reach ...?access_token=secret")
        with pytest.raises(ChannelError) as excinfo:
            self._matrix().send("hi", transport)
        assert "secret" not in str(excinfo.value)


# ---------------------------------------------------------------------------
# Slack channel
# ---------------------------------------------------------------------------


class TestSlackChannel:
    HOOK = "https://hooks.slack.com/services/T/B/X"

    def test_payload(self):
        assert slack.payload_to_json("hello world") == '{"text":"hello world"}'

    def test_payload_with_quotes(self):
        assert slack.payload_to_json('hello "world"') == '{"text":"hello \\"world\\""}'

    def test_legacy_hook_key(self):
        assert str(Slack.model_validate({"hook": self.HOOK}).webhook) == self.HOOK

    def test_send(self, transport):
        Slack(webhook=self.HOOK).send("hi", transport)
        args, kwargs = transport.post.call_args
        assert args[0] == self.HOOK
        assert kwargs["content"] == '{"text":"hi"}'

    @pytest.mark.asyncio
    async def test_send_async(self, async_transport):
        await Slack(webhook=self.HOOK).send_async("hi", async_transport)
        async_transport.post.assert_awaited_once()
        assert async_transport.post.call_args[0][0] == self.HOOK

    def test_http_error_is_wrapped(self, transport):
        transport.post.side_effect = httpx.ConnectError("refused")
        with pytest.raises(ChannelError) as excinfo:
            Slack(webhook=self.HOOK).send("hi", transport)
        assert excinfo.value.channel == "Slack"
        assert isinstance(excinfo.value.__cause__, httpx.ConnectError)

    def test_wrong_transport(self, async_transport):
        with pytest.raises(UnsupportedTransport):
            Slack(webhook=self.HOOK).send("hi", async_transport)


# ---------------------------------------------------------------------------
# Webhook channel
# ---------------------------------------------------------------------------


class TestWebhookChannel:
    def test_send_raw_text(self, transport):
        Webhook(url="https://example.com/hook").send('raw "text"\n', transport)
        args, kwargs = transport.post.call_args
        assert args[0] == "https://example.com/hook"
        assert kwargs["content"] == 'raw "text"\n'
        assert kwargs["headers"]["Content-Type"].startswith("text/plain")

    @pytest.mark.asyncio
    async def test_send_async_raw_text(self, async_transport):
        await Webhook(url="https://example.com/hook").send_async("hi", async_transport)
        assert async_transport.post.call_args[1]["content"] == "hi"

    @pytest.mark.asyncio
    async def test_async_http_error_is_wrapped(self, async_transport):
        async_transport.post.side_effect = httpx.ReadTimeout("slow")
        with pytest.raises(ChannelError):
            await Webhook(url="https://example.com/hook").send_async("hi", async_transport)
