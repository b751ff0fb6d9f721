from typing import Any, Dict, Protocol


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str:
        ...

    def verify(self, password: str, password_hash: str) -> bool:
        ...


class TokenIssuer(Protocol):
    def issue(self, claims: Dict[str, Any]) -> str:
        ...
