"""A small TCP chat: server, console client and the shared character-shift cipher."""

__version__ = "0.1.0"
__all__ = ["settings", "server", "client"]