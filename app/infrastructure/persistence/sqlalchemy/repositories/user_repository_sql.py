from typing import List, Optional
from sqlmodel import Session, select

from .....db.models import User
from .....core.clock import utcnow
from .....application.ports.user_repo import UserRepository, UserDto

class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, user: User) -> UserDto:
        return UserDto(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            phone=user.phone,
            department=user.department,
            specialty=user.specialty,
            is_verified=bool(user.is_verified),
            is_deleted=bool(user.is_deleted),
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    def _touch(self, user: User) -> None:
        user.updated_at = utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        user = self.session.get(User, user_id)
        return self._to_dto(user) if user else None

    def get_by_email(self, email: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.email == email)).first()
        return self._to_dto(user) if user else None

    def get_password_hash(self, user_id: str) -> Optional[str]:
        user = self.session.get(User, user_id)
        return user.password_hash if user else None

    def create(self, name: str, email: str, role: str, password_hash: str, phone: Optional[str] = None,
               department: Optional[str] = None, specialty: Optional[str] = None,
               is_verified: bool = False) -> UserDto:
        user = User(
            name=name,
            email=email,
            role=role,
            password_hash=password_hash,
            phone=phone,
            department=department,
            specialty=specialty,
            is_verified=is_verified,
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return self._to_dto(user)

    def update_profile(self, user_id: str, name: Optional[str], phone: Optional[str]) -> Optional[UserDto]:
        user = self.session.get(User, user_id)
        if not user:
            return None
        if name:
            user.name = name
        if phone:
            user.phone = phone
        self._touch(user)
        return self._to_dto(user)

    def set_password(self, user_id: str, password_hash: str, mark_verified: bool = False) -> None:
        user = self.session.get(User, user_id)
        if not user:
            return
        user.password_hash = password_hash
        if mark_verified:
            user.is_verified = True
        self._touch(user)

    def set_deleted(self, user_id: str, is_deleted: bool) -> Optional[UserDto]:
        user = self.session.get(User, user_id)
        if not user:
            return None
        user.is_deleted = is_deleted
        self._touch(user)
        return self._to_dto(user)

    def list(self, role: Optional[str] = None, include_deleted: bool = False) -> List[UserDto]:
        stmt = select(User)
        if role:
            stmt = stmt.where(User.role == role)
        if not include_deleted:
            stmt = stmt.where(User.is_deleted == False)  # noqa: E712
        rows = self.session.exec(stmt.order_by(User.created_at.desc())).all()
        return [self._to_dto(u) for u in rows]

    def exists_with_role(self, role: str) -> bool:
        return self.session.exec(select(User.id).where(User.role == role)).first() is not None
