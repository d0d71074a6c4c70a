"""Terminal chat front end."""

from clarity.cli.chat import ChatRepl, main

__all__ = ["ChatRepl", "main"]
