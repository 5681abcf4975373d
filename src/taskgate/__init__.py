"""Taskgate — per-user task manager.

Users register and log in with email + password, receive a signed JWT,
and manage their own tasks. Every task query is scoped to its owner.
"""

__version__ = "0.1.0"
