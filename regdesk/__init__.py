"""Event registration backend.

Registrants are collected into a pending pool and per-LGA review queues,
approved by reviewers, and issued one-time attendance codes. A separate
token-session service authenticates operators against a users table.
"""

__version__ = "1.0.0"
