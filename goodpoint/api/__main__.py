"""
goodpoint.api.__main__ — Entry point for ``python -m goodpoint.api``
====================================================================

Wiring:
1. Configure logging.
2. Load .env (secrets) and fail fast on missing settings.
3. Serve the FastAPI app with uvicorn.
"""

from __future__ import annotations

import logging
import os
import sys

import uvicorn
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("goodpoint")


def main() -> None:
    """Check the environment and run the API server."""
    load_dotenv()

    missing = [name for name in ("DATABASE_URL", "VERIFICATION_TOKEN") if not os.getenv(name)]
    if missing:
        logger.critical(
            "%s not set.  Copy .env.example → .env and fill it in.",
            ", ".join(missing),
        )
        sys.exit(1)

    port = int(os.getenv("PORT", "8000"))
    logger.info("Starting GoodPoint API on port %d…", port)
    uvicorn.run("goodpoint.api.main:app", host="0.0.0.0", port=port, log_config=None)


if __name__ == "__main__":
    main()
