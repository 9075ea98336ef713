"""
tests/test_slack_commands.py — Slash-command Decoding Tests
============================================================
"""

from __future__ import annotations

import pytest

from goodpoint.ledger.errors import ValidationError
from goodpoint.slack.commands import (
    CommandKind,
    UnknownCommandError,
    extract_receiver_and_reason,
    parse_slash_command,
)


class TestExtractReceiverAndReason:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("<@U123456789|firstname.lastname> great demo", ("U123456789", "great demo")),
            ("<@U0ABC> thanks for the help", ("U0ABC", "thanks for the help")),
            ("  <@W42|bot.user>   spaced out  ", ("W42", "spaced out")),
            ("thanks <@U77|kim> for the review", ("U77", "thanks  for the review")),
            ("<@U1|a> multi\nline reason", ("U1", "multi\nline reason")),
        ],
    )
    def test_valid_text(self, text, expected):
        assert extract_receiver_and_reason(text) == expected

    def test_only_first_mention_is_the_receiver(self):
        receiver, reason = extract_receiver_and_reason("<@U1|a> thanks to <@U2|b> too")
        assert receiver == "U1"
        assert reason == "thanks to <@U2|b> too"

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "no mention here",
            "@someone plain at-sign",
            "<@lowercase|x> reason",
        ],
    )
    def test_missing_mention(self, text):
        with pytest.raises(ValidationError, match="mention"):
            extract_receiver_and_reason(text)

    @pytest.mark.parametrize("text", ["<@U1|a>", "<@U1|a>    "])
    def test_missing_reason(self, text):
        with pytest.raises(ValidationError, match="reason"):
            extract_receiver_and_reason(text)


class TestParseSlashCommand:
    def test_parses_known_command(self):
        cmd = parse_slash_command({
            "command": "/give_goodpoint",
            "user_id": "U1",
            "text": " <@U2|b> nice ",
            "channel_id": "C1",
            "team_id": "T1",
            "token": "ignored-here",
        })
        assert cmd.kind is CommandKind.GIVE
        assert cmd.user_id == "U1"
        assert cmd.text == "<@U2|b> nice"
        assert cmd.channel_id == "C1"

    @pytest.mark.parametrize("kind", list(CommandKind))
    def test_every_kind_round_trips_from_its_command_name(self, kind):
        assert parse_slash_command({"command": kind.value, "user_id": "U1"}).kind is kind

    def test_unknown_command(self):
        with pytest.raises(UnknownCommandError) as exc_info:
            parse_slash_command({"command": "/hello", "user_id": "U1"})
        assert exc_info.value.command == "/hello"

    @pytest.mark.parametrize(
        "form",
        [
            {"user_id": "U1"},
            {"command": "", "user_id": "U1"},
            {"command": "/help_goodpoint"},
            {"command": "/help_goodpoint", "user_id": "  "},
        ],
    )
    def test_missing_required_fields(self, form):
        with pytest.raises(ValidationError):
            parse_slash_command(form)
