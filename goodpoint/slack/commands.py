"""
goodpoint.slack.commands — Slash-command decoding
==================================================

Turns Slack's form-encoded slash-command payload into a
:class:`SlashCommand`, and pulls the receiver mention and reason out of
``/give_goodpoint`` text::

    "<@U123456789|firstname.lastname> great demo"
        → ("U123456789", "great demo")
"""

from __future__ import annotations

import enum
import re
from collections.abc import Mapping
from dataclasses import dataclass

from goodpoint.constants import (
    COMMAND_DELETE,
    COMMAND_GIVE,
    COMMAND_HELP,
    COMMAND_SHOW_HISTORY,
    COMMAND_SHOW_RANKING,
)
from goodpoint.ledger.errors import ValidationError

__all__ = [
    "CommandKind",
    "SlashCommand",
    "UnknownCommandError",
    "extract_receiver_and_reason",
    "parse_slash_command",
]

# Slack escapes user mentions as <@ID|name>; the |name part is optional.
_MENTION_RE = re.compile(r"<@([A-Z0-9]+)(?:\|[^>]*)?>")


class CommandKind(enum.StrEnum):
    """Closed set of commands the dispatcher understands."""
    HELP = COMMAND_HELP
    GIVE = COMMAND_GIVE
    SHOW_HISTORY = COMMAND_SHOW_HISTORY
    SHOW_RANKING = COMMAND_SHOW_RANKING
    DELETE = COMMAND_DELETE


class UnknownCommandError(Exception):
    """The slash command is not one of :class:`CommandKind`."""

    def __init__(self, command: str) -> None:
        super().__init__(f"unknown command {command!r}")
        self.command = command


@dataclass(frozen=True, slots=True)
class SlashCommand:
    """Normalized inbound command: kind + sender + raw text."""

    kind: CommandKind
    user_id: str
    text: str = ""
    channel_id: str = ""
    team_id: str = ""


def parse_slash_command(form: Mapping[str, str]) -> SlashCommand:
    """Build a :class:`SlashCommand` from Slack's form fields.

    Raises
    ------
    ValidationError
        ``command`` or ``user_id`` is missing.
    UnknownCommandError
        ``command`` is not a supported slash command.
    """
    command = (form.get("command") or "").strip()
    user_id = (form.get("user_id") or "").strip()
    if not command:
        raise ValidationError("missing 'command' field")
    if not user_id:
        raise ValidationError("missing 'user_id' field")
    try:
        kind = CommandKind(command)
    except ValueError:
        raise UnknownCommandError(command) from None
    return SlashCommand(
        kind=kind,
        user_id=user_id,
        text=(form.get("text") or "").strip(),
        channel_id=form.get("channel_id") or "",
        team_id=form.get("team_id") or "",
    )


def extract_receiver_and_reason(text: str) -> tuple[str, str]:
    """Split ``/give_goodpoint`` text into (receiver id, reason).

    The first mention is the receiver; the reason is the remaining text with
    that mention removed.

    Raises
    ------
    ValidationError
        No mention, or nothing left for the reason.
    """
    match = _MENTION_RE.search(text)
    if match is None:
        raise ValidationError("mention the user to thank, e.g. @someone")
    reason = (text[:match.start()] + text[match.end():]).strip()
    if not reason:
        raise ValidationError("give a reason after the mention")
    return match.group(1), reason
