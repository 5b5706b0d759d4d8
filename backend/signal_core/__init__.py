"""Core analytical logic for next-candle direction signals.

This package contains pure business logic with no I/O dependencies
(no database, HTTP or scheduler access). Market data arrives as ordered
Observation sequences; signals and updated weights are handed back to
the caller for persistence.
"""
