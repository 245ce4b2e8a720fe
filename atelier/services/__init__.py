"""Infrastructure helpers shared by the API."""

from .postgres import PostgresConnectionTester

__all__ = ["PostgresConnectionTester"]
