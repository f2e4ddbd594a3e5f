"""
Authentication, sessions and user account management.
"""

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

import structlog

from ..core.entities import User
from ..core.enums import Capability, UserRole
from ..core.exceptions import ValidationError
from ..core.permissions import has_capability, is_admin
from ..persistence.repositories import UserRepository
from .base import EntityService

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Session:
    """An authenticated user's handle, passed to every privileged call."""
    username: str
    role: UserRole
    token: str = field(default_factory=lambda: secrets.token_urlsafe(32))
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def can(self, capability: Union[Capability, str]) -> bool:
        return has_capability(self.role, capability)

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role)

    def to_dict(self) -> Dict[str, str]:
        return {
            "username": self.username,
            "role": self.role.value,
            "started_at": self.started_at.isoformat(),
        }


class AuthenticationService(EntityService[User]):
    """Service managing user accounts and login sessions."""

    def __init__(self, repository: UserRepository):
        super().__init__(repository)
        self._sessions: Dict[str, Session] = {}

    def login(self, username: str, password: str) -> Optional[Session]:
        """Open a session for valid credentials of an active user."""
        if username is None or password is None:
            return None
        with self._lock:
            user = self._entities.get(username)
            if user is None or not user.is_active or not user.verify_password(password):
                logger.info("Login failed", username=username)
                return None

            user.update_last_login()
            self._save()
            session = Session(username=user.username, role=user.role)
            self._sessions[session.token] = session
            logger.info("Login succeeded", username=username, role=user.role.value)
            return session

    def logout(self, session: Optional[Session]) -> bool:
        if session is None:
            return False
        with self._lock:
            return self._sessions.pop(session.token, None) is not None

    def get_session(self, token: Optional[str]) -> Optional[Session]:
        """Resolve a session token issued by ``login``."""
        if not token:
            return None
        with self._lock:
            return self._sessions.get(token)

    def _end_sessions_for(self, username: str) -> None:
        for token in [t for t, s in self._sessions.items() if s.username == username]:
            del self._sessions[token]

    def register_user(self, user: User) -> bool:
        """Add an account. False if the username is taken."""
        return self._add(user)

    def change_password(self, session: Optional[Session], old_password: str, new_password: str) -> bool:
        if session is None:
            return False
        return self._mutate(session.username, lambda u: u.change_password(old_password, new_password))

    def reset_password(self, session: Optional[Session], username: str, new_password: str) -> bool:
        """Set another account's password; needs MANAGE_USERS."""
        if session is None or not session.can(Capability.MANAGE_USERS):
            return False

        def reset(user: User) -> bool:
            try:
                user.set_password(new_password)
            except ValidationError:
                return False
            return True

        return self._mutate(username, reset)

    def deactivate_user(self, session: Optional[Session], username: str) -> bool:
        """Disable an account and end its sessions. Users cannot deactivate themselves."""
        if session is None or not session.can(Capability.MANAGE_USERS):
            return False
        if username == session.username:
            return False

        def deactivate(user: User) -> bool:
            user.set_active(False)
            return True

        with self._lock:
            changed = self._mutate(username, deactivate)
            if changed:
                self._end_sessions_for(username)
                logger.info("User deactivated", username=username, by=session.username)
            return changed

    def activate_user(self, session: Optional[Session], username: str) -> bool:
        if session is None or not session.can(Capability.MANAGE_USERS):
            return False

        def activate(user: User) -> bool:
            user.set_active(True)
            return True

        return self._mutate(username, activate)

    def get_user(self, session: Optional[Session], username: str) -> Optional[User]:
        """Admins can view any user; everyone else only themselves."""
        if session is None:
            return None
        if not session.is_admin and session.username != username:
            return None
        with self._lock:
            return self._entities.get(username)

    def get_all_users(self, session: Optional[Session]) -> Optional[List[User]]:
        if session is None or not session.can(Capability.MANAGE_USERS):
            return None
        with self._lock:
            return list(self._entities.values())

    def has_user(self, username: str) -> bool:
        with self._lock:
            return username in self._entities

    def users_by_role(self) -> Dict[str, int]:
        with self._lock:
            counts: Dict[str, int] = {}
            for user in self._entities.values():
                counts[user.role.display_name] = counts.get(user.role.display_name, 0) + 1
            return counts

    @property
    def user_count(self) -> int:
        return len(self._entities)

    @property
    def active_user_count(self) -> int:
        with self._lock:
            return sum(1 for user in self._entities.values() if user.is_active)
