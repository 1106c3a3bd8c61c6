"""
Demo login session.

Holds at most one logged-in user. There is no credential check: any
well-formed email logs in with any non-empty password, and registering
always succeeds. Admin mode is a local toggle that any logged-in user can
flip; it is not an authorization boundary.
"""

import re
import threading
import time
from typing import Callable, Optional

from pydantic import ValidationError as ModelValidationError

from railbook.logging import get_logger
from railbook.models import User
from railbook.storage import KeyValueStore, dump_blob, load_blob

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DEMO_MOBILE = "9876543210"


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def name_from_email(email: str) -> str:
    """
    Derive a display name from the local part of an email.

    'priya.sharma_92@example.com' -> 'Priya Sharma 92'
    """
    local_part = email.split("@")[0]
    spaced = re.sub(r"[._]", " ", local_part)
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), spaced)


class SessionService:
    """
    Two states: logged out (``user is None``) and logged in.

    Args:
        store: Blob store for the persisted session
        key: Blob key
        delay_seconds: Simulated latency for login and register
        sleep: Sleep function (tests pass a no-op)
        clock_ms: Epoch milliseconds source used for user IDs
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = "railway_user",
        delay_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        clock_ms: Optional[Callable[[], int]] = None,
    ):
        self.store = store
        self.key = key
        self.delay_seconds = delay_seconds
        self.sleep = sleep
        self.clock_ms = clock_ms or (lambda: time.time_ns() // 1_000_000)
        self._lock = threading.RLock()
        self._user: Optional[User] = self._load()

    # =========================================================================
    # State
    # =========================================================================

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def is_admin(self) -> bool:
        return self._user is not None and self._user.is_admin

    def _load(self) -> Optional[User]:
        try:
            raw = self.store.get(self.key)
            if raw is None:
                return None
            return User.model_validate(load_blob(raw))
        except (ValueError, ModelValidationError) as e:
            logger.warning(f"Discarding unreadable session blob '{self.key}': {e}")
            self.store.remove(self.key)
            return None

    def _set_user(self, user: Optional[User]) -> None:
        with self._lock:
            self._user = user
            if user is None:
                self.store.remove(self.key)
            else:
                self.store.set(self.key, dump_blob(user.to_dict()))

    def _new_user_id(self) -> str:
        return f"user_{self.clock_ms()}"

    # =========================================================================
    # Operations
    # =========================================================================

    def login(self, email: str, password: str) -> bool:
        """
        Log in with any well-formed email and any non-empty password.

        Returns:
            True if the session is now logged in, False on bad input
        """
        self.sleep(self.delay_seconds)

        if not email or not password:
            return False
        if not is_valid_email(email):
            logger.info("Login rejected: malformed email")
            return False

        user = User(
            id=self._new_user_id(),
            full_name=name_from_email(email),
            email=email,
            mobile=DEMO_MOBILE,
            is_admin=False,
        )
        self._set_user(user)
        logger.info(f"User logged in: {user.id}")
        return True

    def register(self, full_name: str, email: str, mobile: str, password: str) -> bool:
        """Create a new user and log it in. Always succeeds."""
        self.sleep(self.delay_seconds)

        user = User(
            id=self._new_user_id(),
            full_name=full_name,
            email=email,
            mobile=mobile,
            is_admin=False,
        )
        self._set_user(user)
        logger.info(f"User registered: {user.id}")
        return True

    def logout(self) -> None:
        self._set_user(None)
        logger.info("User logged out")

    def toggle_admin_mode(self) -> bool:
        """
        Flip admin mode for the current user.

        Returns:
            The new admin flag (False when logged out, which is a no-op)
        """
        with self._lock:
            if self._user is None:
                return False
            self._set_user(self._user.model_copy(update={"is_admin": not self._user.is_admin}))
            logger.info(f"Admin mode {'enabled' if self._user.is_admin else 'disabled'}")
            return self._user.is_admin
