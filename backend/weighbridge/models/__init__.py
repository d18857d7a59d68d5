from .customers import Customer
from .tickets import WeighTicket, TICKET_STATUSES, BACKUP_STATUSES
from .auth import LocalUser, SessionToken, USER_ROLES
from .settings import AppSetting

__all__ = [
    'Customer',
    'WeighTicket', 'TICKET_STATUSES', 'BACKUP_STATUSES',
    'LocalUser', 'SessionToken', 'USER_ROLES',
    'AppSetting',
]
