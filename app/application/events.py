from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class AppointmentCompleted:
    appointment_id: str
    patient_id: str
    occurred_at: datetime
