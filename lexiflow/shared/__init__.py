# lexiflow/shared/__init__.py
