"""Role and section based access decisions.

Every protected action is named ``<resource>.<action>`` and maps to one rule
``(section, predicate)``. A user passes when their department can see the
section and the predicate accepts ``(user, target)``. The SuperAdmin
department short-circuits everything before any rule is consulted.
"""
import logging
from typing import Any, Callable, Dict, Optional, Tuple

from fazztrack.core.exceptions import AuthorizationError
from fazztrack.models.user import User

logger = logging.getLogger(__name__)

SUPER_ADMIN = "SuperAdmin"

ORDERS = "Orders"
PAYMENTS = "Payments"
JOBS = "Jobs"
DESIGN_UPLOAD = "Design Upload"
QR_SCANNING = "QR Scanning"

DEPARTMENT_SECTIONS = {
    "Admin": {ORDERS, PAYMENTS, JOBS, DESIGN_UPLOAD, QR_SCANNING},
    "Sales": {ORDERS, PAYMENTS, JOBS, DESIGN_UPLOAD},
    "Designer": {ORDERS, JOBS, DESIGN_UPLOAD, QR_SCANNING},
    "Production": {ORDERS, JOBS, QR_SCANNING},
}

FINAL_DESIGN_STATUSES = ("finalized", "completed")


def has_section_access(user: User, section: Optional[str]) -> bool:
    if section is None:
        return bool(user.department)
    return section in DEPARTMENT_SECTIONS.get(user.department, set())


def _dept(user: User, *names: str) -> bool:
    return user.department in names


def _created_order(user: User, order) -> bool:
    return order is not None and order.created_by == user.id


def _holds_job_on(user: User, order) -> bool:
    return bool(user.production_role) and any(j.assigned_to == user.id for j in order.jobs)


def _view_order(user, order):
    if _dept(user, "Admin", "Sales"):
        return True
    if _dept(user, "Designer") and order.design is not None:
        return order.design.designer_id == user.id
    return _holds_job_on(user, order)


def _manage_order(user, order):
    return _dept(user, "Admin") or (_dept(user, "Sales") and _created_order(user, order))


def _manage_payment(user, payment):
    return _manage_order(user, payment.order)


def _view_design(user, design):
    if _dept(user, "Admin", "Sales"):
        return True
    if _dept(user, "Designer"):
        return design.designer_id == user.id
    return _holds_job_on(user, design.order)


def _update_design(user, design):
    if _dept(user, "Admin"):
        return True
    if _dept(user, "Sales"):
        return _created_order(user, design.order)
    if _dept(user, "Designer"):
        return design.designer_id == user.id and design.status not in FINAL_DESIGN_STATUSES
    return False


def _finalize_design(user, design):
    if _dept(user, "Admin"):
        return True
    return _dept(user, "Designer") and design.designer_id == user.id and design.status in ("new", "in_progress")


def _delete_design(user, design):
    return _dept(user, "Admin") or (_dept(user, "Sales") and _created_order(user, design.order))


def _view_job(user, job):
    if _dept(user, "Admin", "Sales"):
        return True
    return bool(user.production_role) and job.assigned_to == user.id


def _scan_job(user, job):
    if _dept(user, "Admin"):
        return True
    return bool(user.production_role) and job.assigned_to == user.id


def _manage_job(user, job):
    return _manage_order(user, job.order)


def _any(user, target):
    return True


def _admin_or_sales(user, target):
    return _dept(user, "Admin", "Sales")


def _admin(user, target):
    return _dept(user, "Admin")


RULES: Dict[str, Tuple[Optional[str], Callable[[User, Any], bool]]] = {
    "order.view": (ORDERS, _view_order),
    "order.create": (ORDERS, _admin_or_sales),
    "order.update": (ORDERS, _manage_order),
    "order.update_status": (ORDERS, _manage_order),
    "order.approve": (ORDERS, _manage_order),
    "order.delete": (ORDERS, _manage_order),
    "payment.view": (PAYMENTS, _admin_or_sales),
    "payment.create": (PAYMENTS, _admin_or_sales),
    "payment.update": (PAYMENTS, _manage_payment),
    "payment.approve": (PAYMENTS, _admin),
    "payment.reject": (PAYMENTS, _admin),
    "payment.delete": (PAYMENTS, _manage_payment),
    "design.view": (DESIGN_UPLOAD, _view_design),
    "design.create": (DESIGN_UPLOAD, _admin_or_sales),
    "design.update": (DESIGN_UPLOAD, _update_design),
    "design.finalize": (DESIGN_UPLOAD, _finalize_design),
    "design.delete": (DESIGN_UPLOAD, _delete_design),
    "job.view": (JOBS, _view_job),
    "job.create": (JOBS, _admin_or_sales),
    "job.update": (JOBS, _manage_job),
    "job.start": (QR_SCANNING, _scan_job),
    "job.complete": (QR_SCANNING, _scan_job),
    "job.scan": (QR_SCANNING, _scan_job),
    "job.delete": (JOBS, _manage_job),
    "file.upload": (None, _any),
    "file.view": (None, _any),
}


def allows(user: User, action: str, target: Any = None) -> bool:
    if user.department == SUPER_ADMIN:
        return True
    try:
        section, rule = RULES[action]
    except KeyError:
        raise ValueError(f"Unknown action: {action}")
    return has_section_access(user, section) and bool(rule(user, target))


def authorize(user: User, action: str, target: Any = None) -> None:
    if not allows(user, action, target):
        raise AuthorizationError(
            f"You are not authorized to perform {action}",
            context={"user_id": user.id, "action": action},
        )
