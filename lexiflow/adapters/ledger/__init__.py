# lexiflow/adapters/ledger/__init__.py
