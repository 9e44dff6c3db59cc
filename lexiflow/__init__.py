# lexiflow/__init__.py
"""
lexiflow - tiered translation and etymology resolution with a self-extending
learned-word ledger.
"""

__version__ = "1.0.0"
