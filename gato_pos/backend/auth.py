"""
Login for the single till.

Credentials are compared as plain strings against an injected table;
there is no lockout and no hashing.
"""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path

from .config import POS_USERS, SESSION_FILE
from .errors import AuthError, ValidationError

logger = logging.getLogger(__name__)

PIN_LENGTH = 6
_PIN_RE = re.compile(r"^[0-9]{6}$")

MSG_MISSING = "Lütfen kullanıcı adı ve PIN kodunu giriniz"
MSG_BAD_PIN = "PIN kodu 6 haneli olmalıdır"
MSG_WRONG = "Hatalı kullanıcı adı veya PIN kodu"


class CredentialSource:
    def __init__(self, users: dict[str, str]):
        self._users = dict(users)

    @classmethod
    def from_string(cls, raw: str) -> "CredentialSource":
        """Parse 'admin:123456,manager:654321'."""
        users = {}
        for pair in raw.split(","):
            if ":" not in pair:
                continue
            name, pin = pair.split(":", 1)
            if name.strip():
                users[name.strip()] = pin.strip()
        return cls(users)

    @classmethod
    def from_env(cls) -> "CredentialSource":
        return cls.from_string(POS_USERS)

    def pin_for(self, username: str) -> str | None:
        return self._users.get(username)


class SessionGate:
    def __init__(self, credentials: CredentialSource):
        self.credentials = credentials

    def login(self, username: str, pin: str) -> str:
        if not username or not pin:
            raise ValidationError(MSG_MISSING)
        if not _PIN_RE.match(pin):
            raise ValidationError(MSG_BAD_PIN)
        expected = self.credentials.pin_for(username)
        if expected is None or expected != pin:
            logger.info("Rejected login for %r", username)
            raise AuthError(MSG_WRONG)
        logger.info("User %r logged in", username)
        return username


@dataclass
class LoginForm:
    """State of the login screen."""

    username: str = ""
    pin: str = ""
    error: str = ""

    def set_pin(self, raw: str) -> None:
        self.pin = re.sub(r"\D", "", raw)[:PIN_LENGTH]

    def submit(self, gate: SessionGate) -> str | None:
        self.error = ""
        try:
            return gate.login(self.username, self.pin)
        except ValidationError as e:
            self.error = str(e)
        except AuthError as e:
            self.error = str(e)
            self.pin = ""
        return None


@dataclass
class Session:
    authenticated: bool = False
    username: str = ""


class SessionStore:
    """Persists the session flags so a reload keeps the user logged in."""

    def __init__(self, path: Path = SESSION_FILE):
        self.path = Path(path)

    def load(self) -> Session:
        if not self.path.exists():
            return Session()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError):
            logger.warning("Unreadable session file %s, starting logged out", self.path)
            return Session()
        if not isinstance(data, dict) or not data.get("auth_token"):
            return Session()
        return Session(authenticated=True, username=str(data.get("current_user", "")))

    def save(self, session: Session) -> None:
        if not session.authenticated:
            self.clear()
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(
                {"auth_token": "true", "current_user": session.username},
                f,
                indent=4,
                ensure_ascii=False,
            )

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
