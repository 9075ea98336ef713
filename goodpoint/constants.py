"""
goodpoint.constants — Shared Constants
=======================================

Slash-command names and defaults.  Import from here instead of repeating
literals in the dispatcher, routes, and tests.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Slash commands (as registered in the Slack app manifest)
# ---------------------------------------------------------------------------
COMMAND_HELP = "/help_goodpoint"
COMMAND_GIVE = "/give_goodpoint"
COMMAND_SHOW_HISTORY = "/show_goodpoint_monthly_history"
COMMAND_SHOW_RANKING = "/show_goodpoint_ranking"
COMMAND_DELETE = "/delete_goodpoint"

# ---------------------------------------------------------------------------
# Ledger defaults
# ---------------------------------------------------------------------------
POINTS_PER_GRANT = 1
DEFAULT_RANKING_LIMIT = 10
MAX_RANKING_LIMIT = 100

RESPONSE_TYPES = frozenset({"in_channel", "ephemeral"})

RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉
