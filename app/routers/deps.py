"""Request-scoped wiring: caller identity and service construction."""
import logging
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from ..application.policies import Caller, Role
from ..application.services.accounts_service import AccountsService
from ..application.services.appointments_service import AppointmentsService
from ..application.services.billing_service import BillingService
from ..application.services.duties_service import DutiesService
from ..application.services.payments_service import PaymentsService
from ..application.services.recommendations_service import RecommendationsService
from ..application.services.reports_service import ReportsService
from ..core.config import settings
from ..database import get_session
from ..infrastructure.audit.std_logger import StdAuditLogger
from ..infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.duties_repository_sql import SqlDutiesRepository
from ..infrastructure.persistence.sqlalchemy.repositories.payments_repository_sql import SqlPaymentsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.recommendations_repository_sql import SqlRecommendationsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.reports_repository_sql import SqlReportsRepository
from ..infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from ..infrastructure.security.passwords import BcryptPasswordHasher
from ..infrastructure.security.tokens import JwtTokenIssuer, decode_jwt_token

logger = logging.getLogger(__name__)

oauth2_scheme = HTTPBearer()

audit_logger = StdAuditLogger()


def get_current_caller(
    credentials: HTTPAuthorizationCredentials = Depends(oauth2_scheme),
    session: Session = Depends(get_session),
) -> Caller:
    payload = decode_jwt_token(credentials.credentials)
    if not payload:
        raise HTTPException(status_code=401, detail="Not authorized, token failed")
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid token: missing user ID")

    user = SqlUserRepository(session).get_by_id(str(user_id))
    if not user or user.is_deleted:
        logger.warning(f"Token presented for unknown or deactivated user {user_id}")
        raise HTTPException(status_code=401, detail="User not found, invalid token")
    try:
        return Caller(id=user.id, role=Role(user.role))
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token: unknown role")


def require_role(*roles: Role):
    def checker(caller: Caller = Depends(get_current_caller)) -> Caller:
        if caller.role not in roles:
            names = " or ".join(r.value.capitalize() for r in roles)
            raise HTTPException(status_code=403, detail=f"{names} access only")
        return caller
    return checker


def get_billing_service(session: Session = Depends(get_session)) -> BillingService:
    return BillingService(
        repo=SqlPaymentsRepository(session),
        amount=settings.BILLING_DEFAULT_AMOUNT,
        currency=settings.BILLING_CURRENCY,
        invoice_prefix=settings.INVOICE_PREFIX,
        payment_method=settings.DEFAULT_PAYMENT_METHOD,
        audit=audit_logger,
    )


def get_appointments_service(
    session: Session = Depends(get_session),
    billing: BillingService = Depends(get_billing_service),
) -> AppointmentsService:
    # billing stages its invoice on the same session the appointment repo commits
    return AppointmentsService(
        repo=SqlAppointmentsRepository(session),
        user_repo=SqlUserRepository(session),
        billing=billing,
        audit=audit_logger,
    )


def get_payments_service(session: Session = Depends(get_session)) -> PaymentsService:
    return PaymentsService(
        repo=SqlPaymentsRepository(session),
        payment_method=settings.DEFAULT_PAYMENT_METHOD,
        audit=audit_logger,
    )


def get_accounts_service(session: Session = Depends(get_session)) -> AccountsService:
    return AccountsService(
        user_repo=SqlUserRepository(session),
        hasher=BcryptPasswordHasher(),
        tokens=JwtTokenIssuer(),
        audit=audit_logger,
    )


def get_duties_service(session: Session = Depends(get_session)) -> DutiesService:
    return DutiesService(repo=SqlDutiesRepository(session), user_repo=SqlUserRepository(session), audit=audit_logger)


def get_recommendations_service(session: Session = Depends(get_session)) -> RecommendationsService:
    return RecommendationsService(
        repo=SqlRecommendationsRepository(session),
        user_repo=SqlUserRepository(session),
        audit=audit_logger,
    )


def get_reports_service(session: Session = Depends(get_session)) -> ReportsService:
    return ReportsService(
        repo=SqlReportsRepository(session),
        appt_repo=SqlAppointmentsRepository(session),
        user_repo=SqlUserRepository(session),
        audit=audit_logger,
    )
