"""
PostgreSQL Repository Implementations.

Production implementations on psycopg + psycopg_pool.
"""

from .user import PostgresUserRepository

__all__ = ["PostgresUserRepository"]
