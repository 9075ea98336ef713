"""
GoodPoint — Peer Recognition Points for Slack
==============================================
Teammates thank each other with ``/give_goodpoint @someone reason``.
Every grant is an immutable ledger row; each user's running total is kept
in step with the ledger inside one database transaction, and can be shown
as a ranking or as this month's history.

Package layout::

    goodpoint/
    ├── config.py            # YAML → typed Python config (+ env secrets)
    ├── constants.py         # Slash-command names, defaults
    ├── database/
    │   ├── engine.py        # SQLAlchemy engine + async helper
    │   ├── models.py        # point_transactions, users
    │   └── stores.py        # Transaction Log, Aggregate Store, atomic units
    ├── ledger/
    │   ├── errors.py        # ValidationError, StoreError, InconsistentStateError
    │   └── records.py       # Detached result dataclasses
    ├── services/
    │   ├── ledger_service.py         # Grant / Reverse / Rank / History
    │   └── reconciliation_service.py # Aggregate drift report
    ├── slack/
    │   ├── commands.py      # Slash-command decoding, mention extraction
    │   ├── messages.py      # Reply text builders
    │   └── dispatcher.py    # Command → ledger → reply
    └── api/
        ├── main.py          # FastAPI app
        └── routes/          # Slack endpoint + public read endpoints
"""

__version__ = "0.1.0"
