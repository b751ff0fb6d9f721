# Schemas package (re-export feature modules for stable imports)
from .auth.auth import *
from .appointments.appointment import *
from .payments.payment import *
from .duties.duty import *
from .recommendations.recommendation import *
from .reports.report import *
from .common.common import *
