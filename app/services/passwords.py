from passlib.context import CryptContext

pwd = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    return pwd.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    # an unrecognised or corrupt hash is a failed login, not a server error
    try:
        return pwd.verify(password, password_hash)
    except ValueError:
        return False
