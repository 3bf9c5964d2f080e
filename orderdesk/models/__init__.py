# orderdesk/models/__init__.py
from .user import User, UserRole, UserRoleType
from .role import Role, RolePermission
from .permission import Permission
from .location import City, Pincode
from .lead import Lead, LeadActivity, LeadStatus, LeadSource, LeadPriority, Gender
from .order import Order, Payment, OrderStatus, PaymentStatus, PaymentType
from .audit import AuditLog, AuditAction
from .notification import Notification, NotificationType

__all__ = [
    "User",
    "UserRole",
    "UserRoleType",
    "Role",
    "RolePermission",
    "Permission",
    "City",
    "Pincode",
    "Lead",
    "LeadActivity",
    "LeadStatus",
    "LeadSource",
    "LeadPriority",
    "Gender",
    "Order",
    "Payment",
    "OrderStatus",
    "PaymentStatus",
    "PaymentType",
    "AuditLog",
    "AuditAction",
    "Notification",
    "NotificationType",
]
