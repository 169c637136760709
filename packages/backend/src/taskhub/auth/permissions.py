"""Per-user permissions derived from the local profile.

Admins (listed in TASKHUB_ADMIN_EMAILS, or holding the `admin` role)
may edit and use AI features; every active user may view, comment and
submit review feedback.
"""

from typing import Iterable, Optional

from taskhub.db.models import User
from taskhub.schemas.auth import Permissions


def is_admin(user: Optional[User], admin_emails: Iterable[str] = ()) -> bool:
    if user is None:
        return False
    admins = {e.lower() for e in admin_emails}
    return user.email.lower() in admins or user.role == "admin"


def is_active_member(user: Optional[User]) -> bool:
    return user is not None and user.is_active is not False


def user_permissions(
    user: Optional[User], admin_emails: Iterable[str] = ()
) -> Permissions:
    admin = is_admin(user, admin_emails)
    member = is_active_member(user)
    return Permissions(
        is_admin=admin,
        can_use_ai=admin,
        can_edit_project=admin,
        can_edit_task=admin,
        can_create_project=admin,
        can_delete_project=admin,
        can_resolve_comments=admin,
        can_view_project=member,
        can_comment=member,
        can_submit_feedback=member,
    )
