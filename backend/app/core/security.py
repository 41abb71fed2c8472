import hashlib
import hmac
import secrets
import string

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["scrypt"], deprecated="auto")

# Parameters of the "hexhash.hexsalt" records written by the previous system.
LEGACY_SCRYPT_N = 16384
LEGACY_SCRYPT_R = 8
LEGACY_SCRYPT_P = 1
LEGACY_KEY_LEN = 64


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def is_legacy_hash(hashed_password: str) -> bool:
    return not hashed_password.startswith("$") and "." in hashed_password


def _verify_legacy(plain_password: str, hashed_password: str) -> bool:
    hashed_hex, _, salt = hashed_password.partition(".")
    try:
        expected = bytes.fromhex(hashed_hex)
    except ValueError:
        return False
    derived = hashlib.scrypt(
        plain_password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=LEGACY_SCRYPT_N,
        r=LEGACY_SCRYPT_R,
        p=LEGACY_SCRYPT_P,
        maxmem=64 * 1024 * 1024,
        dklen=LEGACY_KEY_LEN,
    )
    return hmac.compare_digest(derived, expected)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    if is_legacy_hash(hashed_password):
        return _verify_legacy(plain_password, hashed_password)
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


def dummy_verify() -> None:
    pwd_context.dummy_verify()


def password_needs_rehash(hashed_password: str) -> bool:
    if is_legacy_hash(hashed_password):
        return True
    return pwd_context.needs_update(hashed_password)


def generate_session_token() -> str:
    return secrets.token_urlsafe(32)


def hash_session_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_invite_code(length: int) -> str:
    first = secrets.choice("123456789")
    rest = "".join(secrets.choice(string.digits) for _ in range(length - 1))
    return first + rest
