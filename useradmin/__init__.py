"""User administration service: access policy, input shaping and HTTP API."""

__version__ = "0.1.0"
