import hmac
import hashlib
import secrets

from mentorhub.core.settings import get_settings

CODE_MIN = 100000
CODE_MAX = 999999


def sign_hmac_token(text: str) -> str:
    secret = get_settings().AUTH_SECRET
    return hmac.new(secret.encode('utf-8'), text.encode('utf-8'), hashlib.sha256).hexdigest()


# ---------------------------
# Verification codes / session tokens
# ---------------------------
def random_code() -> str:
    """Uniform 6-digit numeric code from the OS CSPRNG."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def hash_verification_token(identifier: str, code: str) -> str:
    # bound to the e-mail so a code cannot be replayed for another identifier
    return sign_hmac_token(f"{identifier.strip().lower()}:{code}")


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


__all__ = [
    'sign_hmac_token', 'random_code', 'hash_verification_token', 'new_session_token',
]
