from passlib.context import CryptContext

BCRYPT_ROUNDS = 10

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, stored: str) -> bool:
    # A missing or corrupt stored hash counts as a mismatch
    if not password or not stored:
        return False
    try:
        return pwd_context.verify(password, stored)
    except ValueError:
        return False
