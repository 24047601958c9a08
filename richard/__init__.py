"""Richard: a chat bot that watches services and answers commands."""

__version__ = "0.1.0"
