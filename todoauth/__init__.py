"""JSON backend for a to-do application with JWT cookie authentication and MongoDB storage."""

__version__ = "0.1.0"