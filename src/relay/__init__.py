"""Stripe → Squarespace order relay."""

__version__ = "0.1.0"
