"""Cron maintenance windows, retry back-off, controller settings, host metrics and update monitoring for Bottlerocket nodes."""

__version__ = "0.1.0"