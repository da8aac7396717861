"""Event bus building blocks: core types, channel senders, a recording test bus and spies."""

__version__ = "0.1.0"
__all__ = ["core", "sender", "spies", "testing"]