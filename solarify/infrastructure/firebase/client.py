"""Process-wide Firestore and Realtime Database clients.

DATABASE_BACKEND=firestore: REST clients authenticated with the service
account from FIREBASE_SERVICE_ACCOUNT_KEY (inline JSON, e.g. on Vercel) or
FIREBASE_SERVICE_ACCOUNT_PATH, created by init_firebase() at startup.

DATABASE_BACKEND=memory: in-process stores, created lazily on first access
so tests can use them without running the app lifespan.
"""

import json
import logging
from pathlib import Path

from solarify.core.config import Settings, get_settings
from solarify.infrastructure.firebase._rest_client import (
    FirestoreRESTClient,
    service_account_credentials,
)
from solarify.infrastructure.firebase.memory_client import InMemoryFirestoreClient
from solarify.infrastructure.firebase.rtdb_client import (
    RTDB_SCOPES,
    InMemoryRealtimeDatabase,
    RealtimeDatabaseClient,
)

logger = logging.getLogger(__name__)

DocumentStore = FirestoreRESTClient | InMemoryFirestoreClient
RealtimeStore = RealtimeDatabaseClient | InMemoryRealtimeDatabase

_store: DocumentStore | None = None
_realtime: RealtimeStore | None = None


def _service_account_info(settings: Settings) -> dict | None:
    inline = settings.firebase_service_account_key
    if inline and inline.get_secret_value():
        try:
            return json.loads(inline.get_secret_value())
        except json.JSONDecodeError as e:
            raise ValueError("FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON") from e
    if not settings.firebase_service_account_path:
        return None
    key_file = Path(settings.firebase_service_account_path).expanduser().resolve()
    if not key_file.is_file():
        logger.warning("Service account file not found: %s", key_file)
        return None
    return json.loads(key_file.read_text(encoding="utf-8"))


def _ensure_memory_stores() -> None:
    global _store, _realtime
    if _store is None:
        _store = InMemoryFirestoreClient()
    if _realtime is None:
        _realtime = InMemoryRealtimeDatabase()


def _memory_backend() -> bool:
    return get_settings().database_backend == "memory"


def init_firebase() -> bool:
    """Create the clients for the configured backend; safe to call twice.

    Bad or missing credentials are logged and reported as False so the API
    still starts and /health reports the database as unhealthy.
    """
    global _store, _realtime
    settings = get_settings()
    if settings.database_backend == "memory":
        _ensure_memory_stores()
        logger.info("Using in-memory document store")
        return True
    if _store is not None:
        return True

    try:
        info = _service_account_info(settings)
    except (ValueError, OSError):
        logger.exception("Could not load Firebase service account")
        return False
    if not info:
        return False
    project_id = info.get("project_id")
    if not project_id:
        logger.error("Firebase service account JSON has no project_id")
        return False

    try:
        _store = FirestoreRESTClient(project_id, service_account_credentials(info))
        _realtime = RealtimeDatabaseClient(
            settings.firebase_database_url or f"https://{project_id}-default-rtdb.firebaseio.com",
            service_account_credentials(info, scopes=RTDB_SCOPES),
        )
    except ValueError:
        # google-auth rejects malformed keys with ValueError
        logger.exception("Invalid Firebase service account")
        _store = _realtime = None
        return False
    logger.info("Firestore initialized for project %s", project_id)
    return True


def get_firestore_client() -> DocumentStore | None:
    """Document store for repositories; None until Firestore is initialized."""
    if _store is None and _memory_backend():
        _ensure_memory_stores()
    return _store


def get_realtime_db() -> RealtimeStore | None:
    """Realtime Database (contact messages); None until initialized."""
    if _realtime is None and _memory_backend():
        _ensure_memory_stores()
    return _realtime


async def close_firebase() -> None:
    global _store, _realtime
    for client in (_store, _realtime):
        if client is not None:
            await client.aclose()
    _store = _realtime = None
    logger.info("Firebase clients closed")
