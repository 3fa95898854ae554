"""Personal finance tracker: general and provision balances, income goals, Google Sheets storage."""

__version__ = "1.0.0"
