import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Union

from ..errors import InvalidPartyError, InvalidReportError, NotAuthorizedError, NotFoundError
from ..policies import Caller, Role, can_update_report, can_view_report, can_write_report
from ..ports.appointments_repo import AppointmentsRepository
from ..ports.audit_logger import AuditLogger
from ..ports.reports_repo import NewReport, Prescription, ReportDto, ReportQuery, ReportStats, ReportsRepository
from ..ports.user_repo import UserRepository

logger = logging.getLogger(__name__)

PRESCRIPTION_FIELDS = ("medicine", "dosage", "frequency", "duration")


def parse_prescriptions(items: Optional[Iterable[Union[dict, Prescription]]]) -> List[Prescription]:
    """Validate a prescription list; every entry needs all four fields filled in."""
    items = list(items or [])
    if not items:
        raise InvalidReportError("At least one prescription is required")
    parsed = []
    for item in items:
        raw = item if isinstance(item, dict) else vars(item)
        values = {name: str(raw.get(name) or "").strip() for name in PRESCRIPTION_FIELDS}
        if not all(values.values()):
            raise InvalidReportError("Each prescription requires medicine, dosage, frequency, and duration")
        parsed.append(Prescription(**values))
    return parsed


@dataclass
class ReportPatch:
    diagnosis: Optional[str] = None
    prescriptions: Optional[List[Union[dict, Prescription]]] = None
    notes: Optional[str] = None


@dataclass
class ReportFilters:
    doctor_id: Optional[str] = None
    patient_id: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None


@dataclass
class ReportsService:
    """Medical reports written by the treating doctor after an appointment."""
    repo: ReportsRepository
    appt_repo: AppointmentsRepository
    user_repo: UserRepository
    audit: Optional[AuditLogger] = None

    def create_report(self, caller: Caller, appointment_id: str, diagnosis: str,
                      prescriptions: List[Union[dict, Prescription]], notes: Optional[str] = None) -> ReportDto:
        if caller.role != Role.DOCTOR:
            raise NotAuthorizedError("Only doctors can create medical reports")
        appt = self.appt_repo.get_by_id(appointment_id)
        if not appt or appt.is_deleted:
            raise InvalidReportError("Invalid appointment ID")
        if not can_write_report(caller, appt):
            raise NotAuthorizedError("Not authorized to create report for this appointment")

        patient = self.user_repo.get_by_id(appt.patient_id)
        if not patient or patient.role != Role.PATIENT.value:
            raise InvalidPartyError("Invalid patient")
        if not diagnosis or not diagnosis.strip():
            raise InvalidReportError("Diagnosis is required")

        report = self.repo.create(
            NewReport(appointment_id=appointment_id, patient_id=appt.patient_id, doctor_id=caller.id,
                      diagnosis=diagnosis.strip(), prescriptions=parse_prescriptions(prescriptions), notes=notes)
        )
        logger.info(f"Medical report {report.id} created for appointment {appointment_id}")
        self._audit("REPORT_CREATED", caller, report.id, {"appointment_id": appointment_id})
        return report

    def list_for_patient(self, caller: Caller) -> List[ReportDto]:
        if caller.role != Role.PATIENT:
            raise NotAuthorizedError("Access denied. Patients only.")
        return self.repo.list(ReportQuery(patient_id=caller.id))

    def list_for_doctor(self, caller: Caller) -> List[ReportDto]:
        if caller.role != Role.DOCTOR:
            raise NotAuthorizedError("Access denied. Doctors only.")
        return self.repo.list(ReportQuery(doctor_id=caller.id))

    def list_all(self, caller: Caller, filters: Optional[ReportFilters] = None) -> List[ReportDto]:
        self._require_admin(caller)
        filters = filters or ReportFilters()
        return self.repo.list(
            ReportQuery(doctor_id=filters.doctor_id, patient_id=filters.patient_id,
                        date_from=filters.date_from, date_to=filters.date_to)
        )

    def get_report(self, caller: Caller, report_id: str) -> ReportDto:
        report = self._get(report_id)
        if not can_view_report(caller, report):
            raise NotAuthorizedError()
        return report

    def update_report(self, caller: Caller, report_id: str, patch: ReportPatch) -> ReportDto:
        if caller.role != Role.DOCTOR:
            raise NotAuthorizedError("Only doctors can update reports")
        report = self._get(report_id)
        if not can_update_report(caller, report):
            raise NotAuthorizedError()

        if patch.diagnosis and patch.diagnosis.strip():
            report.diagnosis = patch.diagnosis.strip()
        if patch.prescriptions is not None:
            report.prescriptions = parse_prescriptions(patch.prescriptions)
        if patch.notes is not None:
            report.notes = patch.notes

        saved = self.repo.save(report)
        logger.info(f"Medical report {report_id} updated by doctor {caller.id}")
        self._audit("REPORT_UPDATED", caller, report_id)
        return saved

    def stats(self, caller: Caller) -> ReportStats:
        self._require_admin(caller)
        return self.repo.stats(top_medicines=10)

    def _get(self, report_id: str) -> ReportDto:
        report = self.repo.get_by_id(report_id)
        if not report:
            raise NotFoundError("Report not found")
        return report

    def _require_admin(self, caller: Caller) -> None:
        if not caller.is_admin:
            raise NotAuthorizedError("Access denied")

    def _audit(self, action: str, caller: Caller, resource_id: str, details: Optional[dict] = None) -> None:
        if self.audit:
            self.audit.log(action, actor_id=caller.id, actor_role=caller.role.value, resource_id=resource_id, details=details)
