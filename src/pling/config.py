"""
Load and dump notifier lists as YAML/JSON documents.

A document is a list of single-key mappings, keyed by channel name::

    - Telegram:
        bot_token: 123:ABC
        target_chat: 1234
    - Webhook:
        url: https://example.com/hook
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from pling.channel import Channel
from pling.errors import ConfigError
from pling.notifier import CHANNELS, Notifier, channel_by_name


def notifiers_from_data(
    data: Any, channels: Iterable[type[Channel]] = CHANNELS
) -> list[Notifier]:
    """Validate already-parsed document data into notifiers."""
    if data is None:
        return []
    if not isinstance(data, list):
        raise ConfigError("notifier document must be a list")

    channels = tuple(channels)
    result: list[Notifier] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict) or len(entry) != 1:
            raise ConfigError(f"entry {index}: expected a mapping with exactly one channel name")
        tag, fields = next(iter(entry.items()))
        try:
            channel = channel_by_name(tag, channels)
        except KeyError:
            raise ConfigError(f"entry {index}: unknown channel {tag!r}") from None
        try:
            result.append(channel.model_validate(fields or {}))  # type: ignore[arg-type]
        except ValidationError as exc:
            raise ConfigError(f"entry {index} ({tag}): {exc}") from exc
    return result


def parse_notifiers(text: str, channels: Iterable[type[Channel]] = CHANNELS) -> list[Notifier]:
    """Parse a YAML (or JSON) document."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid notifier document: {exc}") from exc
    return notifiers_from_data(data, channels)


def load_notifiers(path: Path | str, channels: Iterable[type[Channel]] = CHANNELS) -> list[Notifier]:
    """Load notifiers from a YAML or JSON file."""
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    return parse_notifiers(text, channels)


def notifiers_to_data(notifiers: Iterable[Notifier]) -> list[dict[str, Any]]:
    return [
        {n.name: n.model_dump(mode="json", by_alias=True, exclude_defaults=True)}
        for n in notifiers
    ]


def dump_notifiers(notifiers: Iterable[Notifier]) -> str:
    """Serialize notifiers to a YAML document that ``parse_notifiers`` reads back."""
    return yaml.safe_dump(notifiers_to_data(notifiers), sort_keys=False)
