"""Inventra: multi-branch inventory ledger and point-of-sale checkout backend."""

__version__ = "1.0.0"
