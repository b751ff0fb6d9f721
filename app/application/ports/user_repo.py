from typing import List, Protocol, Optional
from datetime import datetime

class UserDto:
    def __init__(self, id: str, name: str, email: str, role: str, phone: Optional[str],
                 department: Optional[str], specialty: Optional[str], is_verified: bool,
                 is_deleted: bool, created_at: datetime, updated_at: datetime):
        self.id = id
        self.name = name
        self.email = email
        self.role = role
        self.phone = phone
        self.department = department
        self.specialty = specialty
        self.is_verified = is_verified
        self.is_deleted = is_deleted
        self.created_at = created_at
        self.updated_at = updated_at

class UserRepository(Protocol):
    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    def get_by_email(self, email: str) -> Optional[UserDto]:
        ...

    def get_password_hash(self, user_id: str) -> Optional[str]:
        ...

    def create(self, name: str, email: str, role: str, password_hash: str, phone: Optional[str] = None,
               department: Optional[str] = None, specialty: Optional[str] = None,
               is_verified: bool = False) -> UserDto:
        ...

    def update_profile(self, user_id: str, name: Optional[str], phone: Optional[str]) -> Optional[UserDto]:
        ...

    def set_password(self, user_id: str, password_hash: str, mark_verified: bool = False) -> None:
        ...

    def set_deleted(self, user_id: str, is_deleted: bool) -> Optional[UserDto]:
        ...

    def list(self, role: Optional[str] = None, include_deleted: bool = False) -> List[UserDto]:
        ...

    def exists_with_role(self, role: str) -> bool:
        ...
