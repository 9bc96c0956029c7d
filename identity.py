"""
Identity: credential hashing, registration/login, and the client session.

Passwords are stored as salted PBKDF2-SHA256 digests and compared in
constant time; nothing downstream relies on how the check is done.
"""
import hashlib
import hmac
import json
import logging
import secrets
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError

from cart import MemoryStorage
from config import PASSWORD_ITERATIONS
from database import USERS, Store
from errors import Conflict, Unauthorized
from schemas import ADMIN_ROLE, USER_ROLE, PublicUser, RegisterRequest, User

logger = logging.getLogger(__name__)

HASH_SCHEME = "pbkdf2_sha256"
SESSION_KEY = "currentUser"


# --------------- Password hashing -----------------------------------------

def hash_password(plain: str, salt: Optional[str] = None,
                  iterations: int = PASSWORD_ITERATIONS) -> str:
    """Return ``scheme$iterations$salt$digest`` for ``plain``."""
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", plain.encode(), salt.encode(), iterations)
    return f"{HASH_SCHEME}${iterations}${salt}${digest.hex()}"


def verify_password(plain: str, hashed: str) -> bool:
    try:
        scheme, iterations, salt, _ = hashed.split("$")
    except ValueError:
        return False
    if scheme != HASH_SCHEME:
        return False
    return hmac.compare_digest(hash_password(plain, salt, int(iterations)), hashed)


# --------------- Accounts -------------------------------------------------

def public_user(user: User) -> PublicUser:
    return PublicUser(id=user.id, username=user.username, role=user.role, email=user.email)


def create_user(store: Store, username: str, password: str,
                email: Optional[str] = None, role: str = USER_ROLE) -> PublicUser:
    with store.lock(USERS):
        users = store.read(USERS)
        if any(u.get("username") == username for u in users):
            raise Conflict("User already exists")
        user = User(
            id=store.next_id(USERS),
            username=username,
            password_hash=hash_password(password),
            role=role,
            email=email,
            created_at=datetime.now(timezone.utc),
        )
        users.append(user.to_record())
        store.write(USERS, users)
    logger.info("User %s registered as %s", username, role)
    return public_user(user)


def register_user(store: Store, data: RegisterRequest) -> PublicUser:
    """Self-service registration always yields a regular user."""
    return create_user(store, data.username, data.password, data.email)


def _upgrade_legacy(store: Store, users: list, index: int, password: str) -> Optional[User]:
    """Replace a plaintext ``password`` field with a salted hash."""
    record = dict(users[index])
    record.pop("password", None)
    record["passwordHash"] = hash_password(password)
    record.setdefault("createdAt", datetime.now(timezone.utc).isoformat())
    try:
        user = User.model_validate(record)
    except ValidationError:
        logger.warning("Unreadable user record %s", record.get("id"))
        return None
    users[index] = user.to_record()
    store.write(USERS, users)
    logger.info("Upgraded stored password of %s to a salted hash", user.username)
    return user


def authenticate(store: Store, username: str, password: str) -> PublicUser:
    with store.lock(USERS):
        users = store.read(USERS)
        for index, record in enumerate(users):
            if record.get("username") != username:
                continue
            if "passwordHash" not in record:
                # records written before hashing keep the secret in "password"
                legacy = str(record.get("password", ""))
                if legacy and hmac.compare_digest(legacy.encode(), password.encode()):
                    user = _upgrade_legacy(store, users, index, password)
                    if user is not None:
                        return public_user(user)
                break
            try:
                user = User.model_validate(record)
            except ValidationError:
                logger.warning("Unreadable user record %s", record.get("id"))
                break
            if verify_password(password, user.password_hash):
                return public_user(user)
            break
    logger.warning("Failed login for %s", username)
    raise Unauthorized("Invalid credentials")


# --------------- Client session -------------------------------------------

class Session:
    """Who is logged in on this client; the Session/Identity Provider."""

    def __init__(self, storage: MemoryStorage, key: str = SESSION_KEY):
        self.storage = storage
        self.key = key

    def current_user(self) -> Optional[PublicUser]:
        raw = self.storage.get_item(self.key)
        if not raw:
            return None
        try:
            return PublicUser.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError):
            logger.warning("Session storage is unreadable, treating as logged out")
            return None

    def login(self, user: PublicUser):
        self.storage.set_item(self.key, json.dumps(user.to_record()))

    def logout(self):
        self.storage.remove_item(self.key)

    def is_logged_in(self) -> bool:
        return self.current_user() is not None

    def is_admin(self) -> bool:
        user = self.current_user()
        return user is not None and user.role == ADMIN_ROLE
