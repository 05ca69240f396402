"""Mail server helpers: cron scheduling, modified UTF-7, DKIM keys, header parsing and utilities."""

__version__ = "0.1.0"