# tokens.py
import secrets
import time

def now() -> int:
    return int(time.time())

def new_session_id() -> str:
    # 32 bytes → ~43 char url-safe
    return secrets.token_urlsafe(32)

def new_csrf_token(nbytes: int = 32) -> str:
    return secrets.token_urlsafe(nbytes)

def tokens_match(expected: str, submitted: str) -> bool:
    # compare_digest only accepts ASCII str, headers may carry anything
    return secrets.compare_digest(expected.encode("utf-8"), submitted.encode("utf-8"))
