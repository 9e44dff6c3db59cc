# lexiflow/adapters/cache/__init__.py
