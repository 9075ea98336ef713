"""
goodpoint.slack.messages — Slack reply builders
================================================

All reply text lives here so the dispatcher only supplies data.  Output is
Slack ``mrkdwn``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import tzinfo

from goodpoint.constants import (
    COMMAND_DELETE,
    COMMAND_GIVE,
    COMMAND_HELP,
    COMMAND_SHOW_HISTORY,
    COMMAND_SHOW_RANKING,
    RANK_BADGES,
)
from goodpoint.ledger.records import GrantResult, RankEntry, ReverseResult, TransactionRecord


def _footer(workspace_name: str) -> str:
    return f"_{workspace_name}_"


def build_help_message() -> str:
    return "\n".join([
        f"`{COMMAND_HELP}`  List the available commands.",
        f"`{COMMAND_GIVE} @someone {{reason}}`  Give @someone 1 good point, with a reason.",
        f"`{COMMAND_SHOW_HISTORY}`  Show this month's good point history.",
        f"`{COMMAND_SHOW_RANKING}`  Show the all-time good point ranking.",
        f"`{COMMAND_DELETE} {{grant id}}`  Undo a grant (the id is shown in the history).",
    ]) + "\n"


def build_grant_message(result: GrantResult) -> str:
    tx = result.transaction
    return (
        f"<@{tx.sender_id}> gave <@{tx.receiver_id}> a good point! \U0001f389\n\n"
        f"*Reason*\n {tx.reason}\n"
        f"*Total points*\n {result.total} pt\n"
        f"_(grant ID: `{tx.id}`)_"
    )


def build_reverse_message(sender_id: str, result: ReverseResult, transaction_id: str) -> str:
    if not result.found:
        return f"No grant found with ID `{transaction_id}`. Nothing to undo."
    tx = result.transaction
    return (
        f"<@{sender_id}> undid the grant to <@{tx.receiver_id}>.\n\n"
        f"*Reason of the undone grant*\n {tx.reason}"
    )


def build_history_message(
    records: Sequence[TransactionRecord], tz: tzinfo, workspace_name: str
) -> str:
    lines = ["*Monthly good point history*"]
    if not records:
        lines.append("No good points given yet this month.")
    for tx in records:
        day = tx.created_at.astimezone(tz).strftime("%Y/%m/%d")
        lines.append(
            f"{day}  <@{tx.sender_id}> → <@{tx.receiver_id}> "
            f"『{tx.reason}』 (grant ID = {tx.id})"
        )
    lines.append(_footer(workspace_name))
    return "\n".join(lines) + "\n"


def build_ranking_message(entries: Sequence[RankEntry], workspace_name: str) -> str:
    lines = ["*Good point ranking!* \U0001f3c6", ""]
    if not entries:
        lines.append("Nobody has received a good point yet.")
    for i, entry in enumerate(entries):
        badge = RANK_BADGES[i] if i < len(RANK_BADGES) else f"#{i + 1}"
        lines.append(f"{badge}  <@{entry.user_id}>  {entry.points} pt")
    lines += [
        "",
        "Thank you all! Give them a round of applause \U0001f44f\U0001f44f",
        _footer(workspace_name),
    ]
    return "\n".join(lines)
