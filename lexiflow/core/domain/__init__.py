# lexiflow/core/domain/__init__.py
