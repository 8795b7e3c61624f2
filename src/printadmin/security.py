# security.py
import bcrypt

def hash_password(plain: str, rounds: int = 12) -> str:
    # bcrypt only looks at the first 72 bytes
    password_bytes = plain.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=rounds)).decode('utf-8')
    return hashed

def verify_password(plain: str, hashed: str) -> bool:
    password_bytes = plain.encode('utf-8')[:72]
    hashed_bytes = hashed.encode('utf-8')
    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        # malformed hash stored in settings
        return False
