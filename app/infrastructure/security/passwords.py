from passlib.context import CryptContext

from ...application.ports.security import PasswordHasher

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class BcryptPasswordHasher(PasswordHasher):
    def hash(self, password: str) -> str:
        return pwd_context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return pwd_context.verify(password, password_hash)
        except ValueError:
            # malformed or unknown hash format
            return False
