"""Route modules exposed by the API package."""

from . import ping, statuses, tickets

__all__ = ["ping", "statuses", "tickets"]
