"""
Authentication Service
=======================

Handles:
- Registration and login against the users record store
- Password hashing with bcrypt
- Seeding the demo accounts into an empty store

Users are stored as::

    {"id": "...", "email": "...", "name": "...", "password": "<bcrypt hash>",
     "createdAt": "...", "updatedAt": "..."}

The password hash never leaves this module; every function that returns a
user returns the public view (no ``password`` key).
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

import bcrypt

from fishbone.database.store import RecordStore
from fishbone.errors import PersistenceError
from fishbone.utils.safe_logging import get_safe_logger

logger = get_safe_logger(__name__)

MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_LENGTH = 72   # bcrypt only reads the first 72 bytes
MAX_NAME_LENGTH = 100

INVALID_CREDENTIALS = "Invalid email or password"
DUPLICATE_EMAIL = "User with this email already exists"

DEMO_USERS = [
    {"email": "admin@kla.com", "password": "admin123", "name": "KLA Administrator"},
    {"email": "demo@kla.com", "password": "demo123", "name": "Demo User"},
]


# ============================================================
# PASSWORD VALIDATION
# ============================================================

def validate_password(password: str) -> Tuple[bool, str]:
    """
    Validate a new password.

    Requirements:
    - 6-72 characters long

    Returns:
        (is_valid, error_message)
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    if len(password.encode('utf-8')) > MAX_PASSWORD_LENGTH:
        return False, f"Password must be {MAX_PASSWORD_LENGTH} bytes or less"
    return True, ""


# ============================================================
# PASSWORD HASHING (using bcrypt directly)
# ============================================================

def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password using bcrypt"""
    password_bytes = password.encode('utf-8')
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    try:
        password_bytes = plain_password.encode('utf-8')
        hashed_bytes = hashed_password.encode('utf-8')
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except (ValueError, TypeError):
        return False


# ============================================================
# USER LOOKUP
# ============================================================

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def public_user(user: Dict) -> Dict:
    """Strip the password hash from a stored user record."""
    return {k: v for k, v in user.items() if k != "password"}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_user_by_email(users: RecordStore, email: str) -> Optional[Dict]:
    email = normalize_email(email)
    for user in users.all():
        if normalize_email(user.get("email", "")) == email:
            return user
    return None


def get_user_by_id(users: RecordStore, user_id: str) -> Optional[Dict]:
    """Public view of a user, or None."""
    if not user_id:
        return None
    user = users.get(user_id)
    return public_user(user) if user else None


# ============================================================
# REGISTRATION / LOGIN
# ============================================================

def register_user(users: RecordStore, email: str, password: str,
                  name: str) -> Tuple[bool, str, Optional[Dict]]:
    """
    Create a new account.

    Returns:
        (success, message, user)
        - user is the public view of the new account
    """
    name = (name or "").strip()
    if not name:
        return False, "Name cannot be empty", None
    if len(name) > MAX_NAME_LENGTH:
        return False, f"Name must be {MAX_NAME_LENGTH} characters or less", None

    is_valid, error = validate_password(password)
    if not is_valid:
        return False, error, None

    if find_user_by_email(users, email) is not None:
        logger.warning("Registration rejected, email already in use", email=email)
        return False, DUPLICATE_EMAIL, None

    now = _now()
    user = {
        "id": str(uuid.uuid4()),
        "email": normalize_email(email),
        "name": name,
        "password": hash_password(password),
        "createdAt": now,
        "updatedAt": now,
    }
    users.put(user)
    logger.info("New user registered", email=user["email"])
    return True, "Registration successful", public_user(user)


def authenticate_user(users: RecordStore, email: str,
                      password: str) -> Tuple[bool, str, Optional[Dict]]:
    """
    Check email and password.

    The failure message is the same whether the email is unknown or the
    password is wrong.

    Returns:
        (success, message, user)
    """
    user = find_user_by_email(users, email)
    if user is None or not verify_password(password, user.get("password", "")):
        logger.warning("Failed login attempt", email=email)
        return False, INVALID_CREDENTIALS, None

    logger.info("User logged in", email=user["email"])
    return True, "Login successful", public_user(user)


def seed_demo_users(users: RecordStore, rounds: int = 10) -> List[Dict]:
    """Create the demo accounts if the store has no users yet."""
    if users.all():
        return []

    created = []
    for demo in DEMO_USERS:
        now = _now()
        user = {
            "id": str(uuid.uuid4()),
            "email": demo["email"],
            "name": demo["name"],
            "password": hash_password(demo["password"], rounds=rounds),
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            users.put(user)
        except PersistenceError as e:
            logger.error(f"Could not seed demo user: {e}", email=demo["email"])
            raise
        created.append(public_user(user))

    logger.info(f"Seeded {len(created)} demo users")
    return created
