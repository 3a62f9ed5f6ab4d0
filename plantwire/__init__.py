"""Subscriptions, GN drift tracking, write and mutation helpers, and system metric points for a plant historian."""

__version__ = "0.1.0"