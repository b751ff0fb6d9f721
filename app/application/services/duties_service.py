import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Union

from ..errors import InvalidDateError, InvalidPartyError, InvalidStatusError, NotAuthorizedError, NotFoundError
from ..policies import Caller, Role, can_view_duty
from ..ports.audit_logger import AuditLogger
from ..ports.duties_repo import DutiesRepository, DutyDto, DutyQuery, DutyStats, DutyStatus, NewDuty
from ..ports.user_repo import UserRepository
from ..timestamps import day_window, parse_timestamp, week_window
from ...core.clock import utcnow

logger = logging.getLogger(__name__)

DUTY_RANGES = ("today", "week", "upcoming", "all")


def parse_duty_status(value: str) -> DutyStatus:
    try:
        return DutyStatus(value)
    except ValueError:
        raise InvalidStatusError(f"Invalid status. Must be one of: {[s.value for s in DutyStatus]}")


@dataclass
class DutyPatch:
    department: Optional[str] = None
    start_date: Optional[Union[str, datetime]] = None
    end_date: Optional[Union[str, datetime]] = None
    notes: Optional[str] = None
    status: Optional[str] = None


@dataclass
class DutyFilters:
    department: Optional[str] = None
    status: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    doctor_id: Optional[str] = None


@dataclass
class DutiesService:
    """Duty rosters: admins assign doctors to departments for a time window."""
    repo: DutiesRepository
    user_repo: UserRepository
    audit: Optional[AuditLogger] = None
    clock: Callable[[], datetime] = utcnow

    def assign_duty(self, caller: Caller, doctor_id: str, department: str, start_date: Union[str, datetime],
                    end_date: Union[str, datetime], notes: Optional[str] = None) -> DutyDto:
        self._require_admin(caller)
        doctor = self.user_repo.get_by_id(doctor_id)
        if not doctor or doctor.role != Role.DOCTOR.value or doctor.is_deleted:
            raise InvalidPartyError("Invalid doctor ID or user is not a doctor")

        start = parse_timestamp(start_date, "Invalid start date")
        end = parse_timestamp(end_date, "Invalid end date")
        if start >= end:
            raise InvalidDateError("End date must be after start date")

        duty = self.repo.create(
            NewDuty(doctor_id=doctor_id, department=department.strip(), start_date=start, end_date=end,
                    assigned_by=caller.id, notes=notes)
        )
        logger.info(f"Duty {duty.id} assigned to doctor {doctor_id} in {duty.department}")
        self._audit("DUTY_ASSIGNED", caller, duty.id, {"doctor_id": doctor_id, "department": duty.department})
        return duty

    def list_doctor_duties(self, caller: Caller, range_name: str = "upcoming") -> List[DutyDto]:
        if caller.role != Role.DOCTOR:
            raise NotAuthorizedError("Access denied. Doctors only.")
        if range_name not in DUTY_RANGES:
            raise InvalidDateError(f"Invalid range. Must be one of: {list(DUTY_RANGES)}")

        query = DutyQuery(doctor_id=caller.id, status=DutyStatus.ACTIVE.value)
        now = self.clock()
        if range_name == "today":
            query.overlaps = day_window(now)
        elif range_name == "week":
            query.overlaps = week_window(now)
        elif range_name == "upcoming":
            query.start_from = now
        return self.repo.list(query)

    def get_duty(self, caller: Caller, duty_id: str) -> DutyDto:
        duty = self._get(duty_id)
        if not can_view_duty(caller, duty):
            raise NotAuthorizedError()
        return duty

    def update_duty(self, caller: Caller, duty_id: str, patch: DutyPatch) -> DutyDto:
        self._require_admin(caller)
        duty = self._get(duty_id)

        if patch.department:
            duty.department = patch.department.strip()
        if patch.start_date:
            duty.start_date = parse_timestamp(patch.start_date, "Invalid start date")
        if patch.end_date:
            duty.end_date = parse_timestamp(patch.end_date, "Invalid end date")
        if duty.start_date >= duty.end_date:
            raise InvalidDateError("End date must be after start date")
        if patch.notes is not None:
            duty.notes = patch.notes
        if patch.status:
            duty.status = parse_duty_status(patch.status).value

        saved = self.repo.save(duty)
        logger.info(f"Duty {duty_id} updated by admin {caller.id}")
        self._audit("DUTY_UPDATED", caller, duty_id, {"status": saved.status})
        return saved

    def cancel_duty(self, caller: Caller, duty_id: str) -> None:
        self._require_admin(caller)
        duty = self._get(duty_id)
        duty.status = DutyStatus.CANCELLED.value
        self.repo.save(duty)
        logger.info(f"Duty {duty_id} cancelled by admin {caller.id}")
        self._audit("DUTY_CANCELLED", caller, duty_id)

    def list_all(self, caller: Caller, filters: Optional[DutyFilters] = None) -> List[DutyDto]:
        self._require_admin(caller)
        filters = filters or DutyFilters()
        status = parse_duty_status(filters.status).value if filters.status else None
        return self.repo.list(
            DutyQuery(doctor_id=filters.doctor_id, department=filters.department, status=status,
                      start_from=filters.date_from, start_to=filters.date_to)
        )

    def stats(self, caller: Caller) -> DutyStats:
        self._require_admin(caller)
        return self.repo.stats(top=5)

    def _get(self, duty_id: str) -> DutyDto:
        duty = self.repo.get_by_id(duty_id)
        if not duty:
            raise NotFoundError("Duty not found")
        return duty

    def _require_admin(self, caller: Caller) -> None:
        if not caller.is_admin:
            raise NotAuthorizedError("Access denied")

    def _audit(self, action: str, caller: Caller, resource_id: str, details: Optional[dict] = None) -> None:
        if self.audit:
            self.audit.log(action, actor_id=caller.id, actor_role=caller.role.value, resource_id=resource_id, details=details)
