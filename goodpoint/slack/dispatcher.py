"""
goodpoint.slack.dispatcher — Slash command → Ledger Service
============================================================

One method per :class:`CommandKind`.  The dispatcher is synchronous (it
calls the ledger directly); the HTTP route runs it on a worker thread via
``run_db``.

Errors are not turned into text here: ``ValidationError``,
``StoreError`` and ``InconsistentStateError`` propagate so the route can
pick the status code.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from goodpoint.config import SlackConfig
from goodpoint.constants import POINTS_PER_GRANT
from goodpoint.ledger.errors import ValidationError
from goodpoint.ledger.records import start_of_month
from goodpoint.services.ledger_service import LedgerService
from goodpoint.slack.commands import CommandKind, SlashCommand, extract_receiver_and_reason
from goodpoint.slack.messages import (
    build_grant_message,
    build_help_message,
    build_history_message,
    build_ranking_message,
    build_reverse_message,
)

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Route a decoded :class:`SlashCommand` to the ledger and format the reply."""

    def __init__(
        self,
        config: SlackConfig,
        ledger: LedgerService,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.config = config
        self.ledger = ledger
        self._clock = clock
        self._handlers: dict[CommandKind, Callable[[SlashCommand], str]] = {
            CommandKind.HELP: self._help,
            CommandKind.GIVE: self._give,
            CommandKind.SHOW_HISTORY: self._show_history,
            CommandKind.SHOW_RANKING: self._show_ranking,
            CommandKind.DELETE: self._delete,
        }

    def is_authentic(self, token: str | None) -> bool:
        """Constant-time comparison against the configured verification token."""
        expected = self.config.verification_token
        if not expected or not token:
            return False
        return hmac.compare_digest(token.encode(), expected.encode())

    def dispatch(self, command: SlashCommand) -> str:
        """Run *command* and return the reply text."""
        logger.debug(
            "Dispatching %s from %s in %s/%s",
            command.kind, command.user_id, command.team_id, command.channel_id,
        )
        return self._handlers[command.kind](command)

    def reply_payload(self, text: str) -> dict[str, str]:
        """Slack response body; ``response_type`` controls channel visibility."""
        return {"response_type": self.config.response_type, "text": text}

    # -------------------------------------------------------------------
    # Handlers
    # -------------------------------------------------------------------
    def _help(self, command: SlashCommand) -> str:
        return build_help_message()

    def _give(self, command: SlashCommand) -> str:
        receiver_id, reason = extract_receiver_and_reason(command.text)
        result = self.ledger.grant(
            command.user_id, receiver_id, reason, amount=POINTS_PER_GRANT
        )
        return build_grant_message(result)

    def _show_history(self, command: SlashCommand) -> str:
        tz = self.config.tzinfo
        since = start_of_month(self._clock(), tz)
        return build_history_message(
            self.ledger.history(since), tz, self.config.workspace_name
        )

    def _show_ranking(self, command: SlashCommand) -> str:
        entries = self.ledger.rank(self.config.ranking_limit)
        return build_ranking_message(entries, self.config.workspace_name)

    def _delete(self, command: SlashCommand) -> str:
        transaction_id = command.text.strip()
        if not transaction_id:
            raise ValidationError("give the grant ID to undo")
        result = self.ledger.reverse(transaction_id)
        return build_reverse_message(command.user_id, result, transaction_id)
