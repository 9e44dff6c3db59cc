# lexiflow/core/__init__.py
"""
Core Domain Layer.

Pure resolution and ledger logic. Infrastructure is reached only through
the Protocols in `lexiflow.core.ports`.
"""
