from typing import Optional
from sqlmodel import Session

from .....db.models import User
from .....application.ports.appointments_repo import PartyDto


def load_party(session: Session, user_id: str, doctor: bool = False) -> Optional[PartyDto]:
    """Project a user row onto the party shape embedded in appointments, duties and reports."""
    u = session.get(User, user_id)
    if not u:
        return None
    if doctor:
        return PartyDto(id=u.id, name=u.name, email=u.email, specialty=u.specialty)
    return PartyDto(id=u.id, name=u.name, email=u.email, phone=u.phone)


def user_name(session: Session, user_id: str) -> Optional[str]:
    u = session.get(User, user_id)
    return u.name if u else None
