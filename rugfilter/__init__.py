"""Pre-buy anti-rug filters, risk scoring, audit logging and Telegram control."""

__version__ = "0.1.0"