# lexiflow/adapters/llm/__init__.py
