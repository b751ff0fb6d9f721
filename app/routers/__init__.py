# Routers package
from . import auth_router
from . import appointments_router
from . import payments_router
from . import duties_router
from . import recommendations_router
from . import reports_router

__all__ = [
    "auth_router",
    "appointments_router",
    "payments_router",
    "duties_router",
    "recommendations_router",
    "reports_router",
]
