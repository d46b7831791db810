"""Exception hierarchy shared by every layer."""

from __future__ import annotations


class DevboxError(Exception):
    """Base class for errors a provisioning run reports to the user."""
