# lexiflow/adapters/persistence/__init__.py
