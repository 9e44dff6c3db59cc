# lexiflow/adapters/__init__.py
