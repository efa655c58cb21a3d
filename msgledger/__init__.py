"""Access layer for Messengers and Messages stored on a versioned key-value ledger."""

__version__ = "1.0.0"
