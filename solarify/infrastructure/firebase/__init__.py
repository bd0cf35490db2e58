"""Firestore and Realtime Database integration (REST and in-memory)."""

from solarify.infrastructure.firebase.client import (
    close_firebase,
    get_firestore_client,
    get_realtime_db,
    init_firebase,
)

__all__ = [
    "close_firebase",
    "get_firestore_client",
    "get_realtime_db",
    "init_firebase",
]
