# Models package (re-export feature modules for stable imports)
from .users.user import User
from .health.appointment import Appointment
from .health.duty import Duty
from .health.recommendation import Recommendation
from .health.medical_report import MedicalReport
from .billing.payment import Payment

__all__ = [
    "User",
    "Appointment",
    "Duty",
    "Recommendation",
    "MedicalReport",
    "Payment",
]
