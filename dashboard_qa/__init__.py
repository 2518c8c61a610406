"""Configuration-driven end-to-end UI suite for the budget dashboard."""

__version__ = "0.1.0"
