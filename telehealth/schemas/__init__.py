# Schemas package (re-export feature modules for stable imports)
from .common.common import *
from .auth.auth import *
from .users.user import *
from .appointments.appointment import *
from .consultations.consultation import *
from .prescriptions.prescription import *
from .payments.payment import *
from .notifications.notification import *
from .hospitals.hospital import *
