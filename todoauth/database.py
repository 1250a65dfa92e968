"""MongoDB connection and the collections the service uses."""

from __future__ import annotations

from typing import Any

from pymongo import MongoClient

CONNECT_TIMEOUT_MS = 10_000
SHARED_DATABASE = "todoapp"


class Database:
    """Holds a client and the user, to-do and preference collections."""

    def __init__(self, client: Any, db_name: str) -> None:
        self.client = client
        db = client[db_name]
        self.users = db["users"]
        self.todos = db["todos"]
        self.preferences = db["preferences"]

    def get_collection(self, name: str) -> Any:
        """Return a collection of the shared application database by name."""
        return self.client[SHARED_DATABASE][name]


def connect(uri: str, db_name: str) -> Database:
    """Create a client for ``uri``; raises pymongo errors on a bad URI."""
    client = MongoClient(
        uri,
        connectTimeoutMS=CONNECT_TIMEOUT_MS,
        serverSelectionTimeoutMS=CONNECT_TIMEOUT_MS,
        connect=False,
    )
    return Database(client, db_name)