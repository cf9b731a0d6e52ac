"""
Session identity for the report client.

A ``Session`` is an immutable snapshot of the identifiers that scope every
proxy call. Pages receive it as an argument; nothing reads storage behind
their back.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from crt_reports.client.storage import ClientStorage
from crt_reports.exceptions.base import MissingSessionError, ProxyRequestError, UnauthorizedError
from crt_reports.schemas.models import UserProfile

logger = logging.getLogger(__name__)

AUTH_TOKEN_KEY = "auth-token"
USERTYPE_KEY = "usertype"
CITY_KEY = "centercity"
COURSE_KEY = "batchcode"
LOGIN_KEY = "login"
SETTINGS_KEY = "settings"

SESSION_KEYS = (AUTH_TOKEN_KEY, USERTYPE_KEY, CITY_KEY, COURSE_KEY, LOGIN_KEY)

HEADER_NAMES = {
    "usertype": "x-usertype",
    "city": "x-city",
    "course": "x-course",
}


class SessionState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class Session:
    usertype: str = ""
    city: str = ""
    course: str = ""
    username: str = ""
    profile: Dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_profile(cls, profile: Dict[str, Any]) -> "Session":
        return cls(
            usertype=str(profile.get("Usertype") or ""),
            city=str(profile.get("centercity") or ""),
            course=str(profile.get("batchcode") or ""),
            username=str(profile.get("Username") or ""),
            profile=dict(profile),
        )

    @classmethod
    def from_storage(cls, values: Dict[str, Any]) -> "Session":
        profile = values.get(LOGIN_KEY) or {}
        if isinstance(profile, list):
            profile = profile[0] if profile else {}
        if not isinstance(profile, dict):
            profile = {}
        return cls(
            usertype=str(values.get(USERTYPE_KEY) or ""),
            city=str(values.get(CITY_KEY) or ""),
            course=str(values.get(COURSE_KEY) or ""),
            username=str(profile.get("Username") or ""),
            profile=dict(profile),
        )

    def require(self, *fields: str) -> "Session":
        """Raise MissingSessionError unless every named identifier is set."""
        missing = [name for name in (fields or tuple(HEADER_NAMES)) if not getattr(self, name)]
        if missing:
            raise MissingSessionError(missing)
        return self

    def headers(self, *fields: str) -> Dict[str, str]:
        """Proxy headers for the named identifiers (all three by default)."""
        names = fields or tuple(HEADER_NAMES)
        self.require(*names)
        return {HEADER_NAMES[name]: getattr(self, name) for name in names}


class SessionManager:
    """Login/logout state machine over client storage.

    unauthenticated -> authenticating -> authenticated on a matching login,
    authenticating -> unauthenticated on rejection,
    authenticated -> unauthenticated on logout.
    """

    def __init__(self, storage: ClientStorage, client=None):
        self.storage = storage
        self.client = client
        self._authenticating = False

    @property
    def state(self) -> SessionState:
        if self._authenticating:
            return SessionState.AUTHENTICATING
        if self.storage.get(AUTH_TOKEN_KEY):
            return SessionState.AUTHENTICATED
        return SessionState.UNAUTHENTICATED

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    def login(self, username: str, password: str) -> Session:
        """Validate credentials through the proxy and persist the session."""
        if self.client is None:
            raise RuntimeError("SessionManager needs a DashboardClient to log in")

        self._authenticating = True
        try:
            try:
                result = self.client.login(username, password)
            except ProxyRequestError as e:
                if e.status_code == 401:
                    raise UnauthorizedError("Invalid username or password.")
                raise

            user = result.get("user") if result.get("success") else None
            try:
                profile = UserProfile.model_validate(user)
            except PydanticValidationError:
                raise UnauthorizedError("Invalid username or password.")
            if not profile.Usertype:
                raise UnauthorizedError("Invalid username or password.")

            session = self.establish(profile.model_dump(exclude_none=True))
            logger.info(f"Logged in as {session.username} ({session.usertype}, {session.city})")
            return session
        finally:
            self._authenticating = False

    def establish(self, profile: Dict[str, Any]) -> Session:
        """Persist a login profile and return the resulting session."""
        profile = {key: value for key, value in profile.items() if key != "Password"}
        session = Session.from_profile(profile)
        self.storage.set_many({
            AUTH_TOKEN_KEY: True,
            USERTYPE_KEY: session.usertype,
            CITY_KEY: session.city,
            COURSE_KEY: session.course,
            LOGIN_KEY: profile,
        })
        return session

    def logout(self) -> None:
        self.storage.remove(*SESSION_KEYS)
        logger.info("Logged out")

    def current(self) -> Optional[Session]:
        """Session snapshot for one page load, or None when logged out."""
        values = self.storage.snapshot()
        if not values.get(AUTH_TOKEN_KEY):
            return None
        return Session.from_storage(values)
