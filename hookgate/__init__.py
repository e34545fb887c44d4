"""Outbound webhook delivery and API key admission control."""

__version__ = "1.0.0"
