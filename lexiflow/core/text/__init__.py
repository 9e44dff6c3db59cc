# lexiflow/core/text/__init__.py
