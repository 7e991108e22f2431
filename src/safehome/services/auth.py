"""
Authentication gateway & console sessions

The identity provider is an external collaborator. LocalAuthGateway stands
in for it: a pre-provisioned custom token maps to a stable identity,
otherwise an anonymous identity is issued. Login records {role, home_id}
against the identity in the `users` collection.
"""

import hashlib
import logging
import secrets
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from ..domain import NoticeTone, Role, UserProfile
from ..errors import AuthenticationFailed, NotAuthenticated, StoreWriteError
from ..store import SERVER_TIMESTAMP, USERS, DocumentStore
from .notices import NoticeBoard


logger = logging.getLogger(__name__)

DEFAULT_HOME_ID = "home-alpha"


@dataclass(frozen=True)
class AuthUser:
    uid: str
    is_anonymous: bool


@dataclass
class Session:
    """An authenticated console session scoped to one active home."""
    token: str
    uid: str
    role: Role
    home_id: str
    is_anonymous: bool
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "uid": self.uid,
            "role": self.role.value,
            "home_id": self.home_id,
            "is_anonymous": self.is_anonymous,
            "created_at": self.created_at.isoformat(),
        }


# =============================================================================
# Gateway
# =============================================================================

class AuthGateway(ABC):
    """Identity provider contract."""

    @abstractmethod
    async def sign_in_with_custom_token(self, token: str) -> AuthUser:
        pass

    @abstractmethod
    async def sign_in_anonymously(self) -> AuthUser:
        pass

    @abstractmethod
    async def sign_out(self, uid: str) -> None:
        pass


class LocalAuthGateway(AuthGateway):
    """In-process identity provider."""

    def __init__(self, provisioned_tokens: Iterable[str] = ()):
        self._tokens = {t for t in provisioned_tokens if t}
        self.signed_in: Dict[str, AuthUser] = {}

    def provision(self, token: str) -> str:
        """Accept `token` for custom sign-in; returns the uid it maps to."""
        self._tokens.add(token)
        return self._uid_for(token)

    @staticmethod
    def _uid_for(token: str) -> str:
        return "tok_" + hashlib.sha256(token.encode("utf-8")).hexdigest()[:24]

    async def sign_in_with_custom_token(self, token: str) -> AuthUser:
        if not token or token not in self._tokens:
            raise AuthenticationFailed("Custom token rejected", title="Authentication failed")
        user = AuthUser(uid=self._uid_for(token), is_anonymous=False)
        self.signed_in[user.uid] = user
        return user

    async def sign_in_anonymously(self) -> AuthUser:
        user = AuthUser(uid=f"anon_{uuid.uuid4().hex[:20]}", is_anonymous=True)
        self.signed_in[user.uid] = user
        return user

    async def sign_out(self, uid: str) -> None:
        self.signed_in.pop(uid, None)


# =============================================================================
# Sessions
# =============================================================================

class SessionManager:
    """Exchanges credentials for console sessions."""

    def __init__(
        self,
        store: DocumentStore,
        auth: AuthGateway,
        notices: NoticeBoard,
        custom_token: str = "",
        default_home_id: str = DEFAULT_HOME_ID,
    ):
        self.store = store
        self.auth = auth
        self.notices = notices
        self.custom_token = custom_token
        self.default_home_id = default_home_id
        self._sessions: Dict[str, Session] = {}

    async def login(self, role: Role, home_input: Optional[str] = None) -> Session:
        """Sign in (custom token if configured, else anonymous) and scope
        the session to `home_input` (blank → default home).

        Raises:
            AuthenticationFailed: the identity provider rejected the sign-in
            StoreWriteError: the user profile could not be written
        """
        role = Role(role)
        home_id = (home_input or "").strip() or self.default_home_id

        if self.custom_token:
            user = await self.auth.sign_in_with_custom_token(self.custom_token)
        else:
            user = await self.auth.sign_in_anonymously()

        try:
            await self.store.set(USERS, user.uid, {
                "role": role.value,
                "home_id": home_id,
                "updated_at": SERVER_TIMESTAMP,
            }, merge=True)
        except Exception as e:
            await self.auth.sign_out(user.uid)
            raise StoreWriteError(str(e), title="Authentication failed", cause=e) from e

        session = Session(
            token=secrets.token_urlsafe(24),
            uid=user.uid,
            role=role,
            home_id=home_id,
            is_anonymous=user.is_anonymous,
        )
        self._sessions[session.token] = session
        logger.info("[AUTH] %s signed in as %s for %s", user.uid, role.value, home_id)
        self.notices.post(home_id, "Signed in", f"Ready as {role.value} for {home_id}", NoticeTone.SUCCESS)
        return session

    def get(self, token: Optional[str]) -> Session:
        session = self._sessions.get(token or "")
        if session is None:
            raise NotAuthenticated("Sign in required")
        return session

    async def logout(self, token: str) -> None:
        session = self._sessions.pop(token, None)
        if session is None:
            return
        await self.auth.sign_out(session.uid)
        logger.info("[AUTH] %s signed out", session.uid)
        self.notices.info(session.home_id, "Signed out", "Session closed")

    async def load_profile(self, uid: str) -> Optional[UserProfile]:
        snapshot = await self.store.get(USERS, uid)
        if not snapshot.exists:
            return None
        return UserProfile.from_snapshot(snapshot)

    @property
    def active_sessions(self) -> list[Session]:
        return list(self._sessions.values())
