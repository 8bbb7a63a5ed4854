import bcrypt

def hash_password(plain_password: str) -> str:
    if not isinstance(plain_password, str) or len(plain_password) == 0:
        raise ValueError("Password must be a non-empty string")

    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")

def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False

def validate_password(password: str, min_length: int) -> list:
    errors = []
    if not isinstance(password, str) or len(password) < min_length:
        errors.append(f"Password must be at least {min_length} characters")
    elif password.isalpha() or password.isdigit():
        errors.append("Password must mix letters with digits or symbols")
    return errors
