"""
goodpoint.api.routes.slack — Slack slash-command endpoint
==========================================================

Slack POSTs every registered slash command here as
``application/x-www-form-urlencoded``.  The reply body is the JSON message
Slack posts back into the channel.

Status codes:
    401 — verification token mismatch
    400 — malformed payload, unknown command, or invalid input
    503 — the ledger could not commit; the user may try again
    500 — ledger inconsistency (logged, not repaired)
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from goodpoint.api.deps import get_dispatcher
from goodpoint.database.engine import run_db
from goodpoint.ledger.errors import InconsistentStateError, StoreError, ValidationError
from goodpoint.slack.commands import UnknownCommandError, parse_slash_command
from goodpoint.slack.dispatcher import CommandDispatcher

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/slack", tags=["slack"])


@router.post("/commands")
async def handle_command(
    request: Request,
    dispatcher: Annotated[CommandDispatcher, Depends(get_dispatcher)],
) -> dict[str, str]:
    form = await request.form()
    fields = {key: value for key, value in form.items() if isinstance(value, str)}

    if not dispatcher.is_authentic(fields.get("token")):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid verification token")

    try:
        command = parse_slash_command(fields)
    except (ValidationError, UnknownCommandError) as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc))

    try:
        text = await run_db(dispatcher.dispatch, command)
    except ValidationError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, f"Invalid input: {exc}")
    except StoreError:
        logger.warning("%s from %s could not commit", command.kind, command.user_id)
        raise HTTPException(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "The ledger is busy right now, please try again.",
        )
    except InconsistentStateError:
        raise HTTPException(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "The ledger is inconsistent for this grant; ask an admin to check it.",
        )

    return dispatcher.reply_payload(text)
