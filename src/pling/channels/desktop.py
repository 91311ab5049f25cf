"""
Desktop channel — show a local desktop notification.

Detects the current platform and shells out to its notification tool:
- Linux: notify-send
- macOS: osascript
- Windows: PowerShell toast notification
"""

from __future__ import annotations

import logging
import platform
import shutil
import subprocess
from collections.abc import Mapping
from typing import ClassVar

from pling.channel import Channel
from pling.env import environ, flag
from pling.errors import ChannelError
from pling.transport import HttpTransport

logger = logging.getLogger(__name__)

APP_NAME = "pling"


def _applescript_quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _xml_escape(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def notification_argv(system: str, summary: str | None, body: str) -> list[str]:
    """Build the command line that displays ``(summary, body)`` on ``system``.

    ``system`` is a ``platform.system()`` value. Raises ``ChannelError`` for
    platforms without a known notification tool.
    """
    system = system.lower()
    if system == "linux":
        args = ["notify-send", "--app-name", APP_NAME]
        if summary is not None:
            return [*args, "--", summary, body]
        # notify-send treats a lone argument as the summary line
        return [*args, "--", body]

    if system == "darwin":
        script = f"display notification {_applescript_quote(body)}"
        if summary is not None:
            script += f" with title {_applescript_quote(summary)}"
        return ["osascript", "-e", script]

    if system == "windows":
        # single-quoted here-string: PowerShell expands nothing, and escaped
        # values carry no apostrophe that could close it
        title_xml = f'<text id="1">{_xml_escape(summary)}</text>' if summary is not None else ""
        ps_script = f'''
        [Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, ContentType = WindowsRuntime] | Out-Null
        [Windows.Data.Xml.Dom.XmlDocument, Windows.Data.Xml.Dom.XmlDocument, ContentType = WindowsRuntime] | Out-Null
        $template = @'
        <toast>
            <visual>
                <binding template="ToastGeneric">
                    {title_xml}
                    <text id="2">{_xml_escape(body)}</text>
                </binding>
            </visual>
        </toast>
'@
        $xml = New-Object Windows.Data.Xml.Dom.XmlDocument
        $xml.LoadXml($template)
        $toast = [Windows.UI.Notifications.ToastNotification]::new($xml)
        [Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier("{APP_NAME}").Show($toast)
        '''
        return ["powershell", "-NoProfile", "-Command", ps_script]

    raise ChannelError("Desktop", f"desktop notifications are not supported on {system!r}")


class Desktop(Channel):
    """Desktop notification with an optional summary line."""

    name: ClassVar[str] = "Desktop"

    summary: str | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Desktop | None:
        """Enabled by ``PLING_DESKTOP_ENABLED`` or by setting ``PLING_DESKTOP_SUMMARY``."""
        env = environ(env)
        summary = env.get("PLING_DESKTOP_SUMMARY")
        if flag(env, "PLING_DESKTOP_ENABLED") or summary is not None:
            return cls(summary=summary)
        return None

    def send(self, text: str, transport: HttpTransport | None = None) -> None:
        argv = notification_argv(platform.system(), self.summary, text)
        if shutil.which(argv[0]) is None:
            raise ChannelError("Desktop", f"{argv[0]} is not installed")

        try:
            result = subprocess.run(argv, capture_output=True, check=False)
        except (OSError, ValueError) as exc:
            raise ChannelError("Desktop", f"could not run {argv[0]}: {exc}") from exc

        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace").strip()
            logger.warning("%s exited with status %d: %s", argv[0], result.returncode, stderr)
            raise ChannelError(
                "Desktop",
                f"{argv[0]} exited with status {result.returncode}",
            )
