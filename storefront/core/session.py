"""Session management for storefront visitors"""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .environment import Environment, FileStorage, MemoryStorage
from ..services.backend_client import BackendClient
from ..services.identity import IdentityProvider
from ..services.verification import VerificationFlow
from ..store.cart import CartStore

logger = logging.getLogger(__name__)

SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{8,64}$")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StorefrontSession:
    """One visitor: their cart, sign-in state and login flow"""
    session_id: str
    created_at: datetime
    updated_at: datetime
    environment: Environment
    cart: CartStore
    identity: IdentityProvider
    flow: VerificationFlow

    def touch(self) -> None:
        self.updated_at = _now()


class SessionManager:
    """
    Manages storefront sessions.

    Each session gets its own identity provider and login flow. Carts live
    in durable storage under `storage_dir/<session_id>.json` when a storage
    directory is configured, otherwise in memory.
    """

    def __init__(
        self,
        backend: BackendClient,
        storage_dir: Optional[str] = None,
        private_key_pem: Optional[str] = None,
        token_lifetime_seconds: int = 300,
        flow_options: Optional[dict] = None,
    ):
        self.backend = backend
        self.storage_dir = Path(storage_dir) if storage_dir else None
        self.private_key_pem = private_key_pem
        self.token_lifetime_seconds = token_lifetime_seconds
        self.flow_options = flow_options or {}
        self.sessions: dict[str, StorefrontSession] = {}

    def _new_flow(self, identity: IdentityProvider, environment: Environment) -> VerificationFlow:
        return VerificationFlow(
            self.backend,
            identity,
            environment.session_storage,
            **self.flow_options,
        )

    def create_session(self, session_id: Optional[str] = None) -> StorefrontSession:
        """Create a new session, hydrating its cart from durable storage"""
        if not session_id or not SESSION_ID_PATTERN.match(session_id):
            session_id = uuid.uuid4().hex

        if self.storage_dir is not None:
            local_storage = FileStorage(self.storage_dir / f"{session_id}.json")
        else:
            local_storage = MemoryStorage()
        environment = Environment(local_storage=local_storage, session_storage=MemoryStorage())

        cart = CartStore(environment.local_storage)
        cart.load()

        identity = IdentityProvider(
            private_key_pem=self.private_key_pem,
            token_lifetime_seconds=self.token_lifetime_seconds,
        )

        now = _now()
        session = StorefrontSession(
            session_id=session_id,
            created_at=now,
            updated_at=now,
            environment=environment,
            cart=cart,
            identity=identity,
            flow=self._new_flow(identity, environment),
        )
        self.sessions[session_id] = session
        logger.info(f"Created session {session_id} with {cart.item_count()} items in cart")
        return session

    def get_session(self, session_id: str) -> Optional[StorefrontSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    def get_or_create_session(self, session_id: Optional[str] = None) -> StorefrontSession:
        """Get existing session or create new one"""
        if session_id and session_id in self.sessions:
            session = self.sessions[session_id]
            session.touch()
            return session
        return self.create_session(session_id)

    def restart_flow(self, session: StorefrontSession) -> VerificationFlow:
        """Replace a finished login flow with a fresh one"""
        session.flow.close()
        session.flow = self._new_flow(session.identity, session.environment)
        return session.flow

    def delete_session(self, session_id: str) -> bool:
        """Delete a session"""
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        session.flow.close()
        return True

    def cleanup_old_sessions(self, max_age_hours: int = 24) -> int:
        """Remove sessions older than max_age_hours"""
        now = _now()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
        ]
        for sid in old_sessions:
            self.delete_session(sid)
        if old_sessions:
            logger.info(f"Cleaned up {len(old_sessions)} idle sessions")
        return len(old_sessions)

    def close_all(self) -> None:
        for session in self.sessions.values():
            session.flow.close()
        self.sessions.clear()
