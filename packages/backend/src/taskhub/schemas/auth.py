"""Pydantic schemas for identities, sessions and user profiles.

- Identity: the authenticated subject as reported by the identity provider
- AuthSession: tokens returned by a successful code exchange
- ProfileCreate: the row written to `users` on first login
- ProfileRead / Permissions / CurrentUserResponse: what /api/auth/me returns
"""

from typing import Optional

from pydantic import BaseModel, Field


# ─── Provider side ──────────────────────────────────────

class Identity(BaseModel):
    """An authenticated subject. Absent metadata is None, never a default."""
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class AuthSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_in: Optional[int] = None


# ─── Profiles ───────────────────────────────────────────

class ProfileCreate(BaseModel):
    id: str
    email: str
    full_name: str
    avatar_url: Optional[str] = None

    @classmethod
    def from_identity(cls, identity: Identity) -> "ProfileCreate":
        """Derive a first-login profile from an identity.

        The full name falls back to the local part of the email address.
        An identity without an email cannot be provisioned; callers are
        expected to have checked that, so this raises ValueError.
        """
        if not identity.email:
            raise ValueError(f"identity {identity.id} has no email")
        return cls(
            id=identity.id,
            email=identity.email,
            full_name=identity.full_name or identity.email.split("@")[0],
            avatar_url=identity.avatar_url,
        )


class ProfileRead(BaseModel):
    id: str
    email: str
    full_name: Optional[str]
    avatar_url: Optional[str]
    role: str
    is_active: bool

    model_config = {"from_attributes": True}


class Permissions(BaseModel):
    is_admin: bool = False
    can_use_ai: bool = False
    can_edit_project: bool = False
    can_edit_task: bool = False
    can_create_project: bool = False
    can_delete_project: bool = False
    can_resolve_comments: bool = False
    can_view_project: bool = False
    can_comment: bool = False
    can_submit_feedback: bool = False


class CurrentUserResponse(BaseModel):
    user: Optional[ProfileRead] = None
    permissions: Permissions = Field(default_factory=Permissions)
