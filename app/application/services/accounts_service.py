import logging
import secrets
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..errors import AuthenticationError, DuplicateEmailError, InvalidPartyError, NotAuthorizedError, NotFoundError
from ..policies import Caller, Role
from ..ports.audit_logger import AuditLogger
from ..ports.security import PasswordHasher, TokenIssuer
from ..ports.user_repo import UserDto, UserRepository

logger = logging.getLogger(__name__)


def generate_temp_password() -> str:
    """6-digit temporary password handed out at registration."""
    return str(100000 + secrets.randbelow(900000))


@dataclass
class AccountsService:
    user_repo: UserRepository
    hasher: PasswordHasher
    tokens: TokenIssuer
    audit: Optional[AuditLogger] = None

    def login(self, email: str, password: str) -> Tuple[str, UserDto]:
        user = self.user_repo.get_by_email(email.strip().lower())
        if not user or user.is_deleted:
            logger.warning(f"Login failed for {email}")
            raise AuthenticationError()
        password_hash = self.user_repo.get_password_hash(user.id)
        if not password_hash or not self.hasher.verify(password, password_hash):
            logger.warning(f"Login failed for {email}")
            self._audit("LOGIN_FAILED", user.id, user.role, success=False)
            raise AuthenticationError()
        token = self.tokens.issue({"sub": user.id, "role": user.role})
        self._audit("LOGIN_SUCCESS", user.id, user.role)
        return token, user

    def register(self, caller: Caller, role: Role, name: str, email: str, phone: Optional[str] = None,
                 department: Optional[str] = None, specialty: Optional[str] = None) -> Tuple[UserDto, str]:
        if not caller.is_admin:
            raise NotAuthorizedError("Admin access only")
        if role == Role.ADMIN:
            raise InvalidPartyError("Admins cannot be registered through this endpoint")
        email = email.strip().lower()
        if self.user_repo.get_by_email(email):
            raise DuplicateEmailError(f"{role.value.capitalize()} already exists")

        temp_password = generate_temp_password()
        user = self.user_repo.create(
            name=name,
            email=email,
            role=role.value,
            password_hash=self.hasher.hash(temp_password),
            phone=phone,
            department=department if role == Role.DOCTOR else None,
            specialty=specialty if role == Role.DOCTOR else None,
        )
        logger.info(f"{role.value.capitalize()} account {user.id} created by admin {caller.id}")
        self._audit("USER_REGISTERED", caller.id, caller.role.value, resource_id=user.id, details={"role": role.value})
        return user, temp_password

    def bootstrap_admin(self, email: str, password: str, name: str) -> Optional[UserDto]:
        if self.user_repo.exists_with_role(Role.ADMIN.value):
            return None
        email = email.strip().lower()
        if self.user_repo.get_by_email(email):
            logger.warning(f"Bootstrap admin skipped: {email} already belongs to another account")
            return None
        user = self.user_repo.create(
            name=name, email=email, role=Role.ADMIN.value, password_hash=self.hasher.hash(password), is_verified=True
        )
        logger.info(f"Bootstrap admin {user.id} created")
        return user

    def me(self, caller: Caller) -> UserDto:
        user = self.user_repo.get_by_id(caller.id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, caller: Caller, name: Optional[str] = None, phone: Optional[str] = None) -> UserDto:
        user = self.user_repo.update_profile(caller.id, name=name, phone=phone)
        if not user:
            raise NotFoundError("User not found")
        return user

    def change_password(self, caller: Caller, current_password: Optional[str], new_password: str) -> None:
        user = self.me(caller)
        if user.is_verified:
            password_hash = self.user_repo.get_password_hash(user.id)
            if not current_password or not password_hash or not self.hasher.verify(current_password, password_hash):
                raise AuthenticationError("Current password is incorrect")
        self.user_repo.set_password(user.id, self.hasher.hash(new_password), mark_verified=True)
        self._audit("PASSWORD_CHANGED", caller.id, caller.role.value)

    def list_users(self, caller: Caller, role: Optional[Role] = None) -> List[UserDto]:
        if not caller.is_admin:
            raise NotAuthorizedError("Access denied")
        return self.user_repo.list(role=role.value if role else None, include_deleted=True)

    def list_doctors(self, caller: Caller) -> List[UserDto]:
        return self.user_repo.list(role=Role.DOCTOR.value)

    def toggle_user(self, caller: Caller, user_id: str) -> UserDto:
        if not caller.is_admin:
            raise NotAuthorizedError("Access denied")
        if user_id == caller.id:
            raise NotAuthorizedError("Admins cannot deactivate themselves")
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        updated = self.user_repo.set_deleted(user_id, not user.is_deleted)
        state = "deactivated" if updated.is_deleted else "activated"
        logger.info(f"User {user_id} {state} by admin {caller.id}")
        self._audit("USER_TOGGLED", caller.id, caller.role.value, resource_id=user_id, details={"is_deleted": updated.is_deleted})
        return updated

    def _audit(self, action: str, actor_id: Optional[str], actor_role: Optional[str], resource_id: Optional[str] = None,
               success: bool = True, details: Optional[dict] = None) -> None:
        if self.audit:
            self.audit.log(action, actor_id=actor_id, actor_role=actor_role, resource_id=resource_id, success=success, details=details)
