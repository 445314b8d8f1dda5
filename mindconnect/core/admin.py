from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, HTTPException, status

from mindconnect.core.config import settings
from mindconnect.core.security import AuthContext, verify_token


@dataclass(frozen=True)
class AuthorizationPolicy:
    """Decides admin privilege from the configured email allow-list."""

    admin_emails: frozenset[str]

    def is_admin(self, auth: AuthContext) -> bool:
        if auth.is_anonymous or not auth.email:
            return False
        return auth.email.strip().lower() in self.admin_emails


def get_authorization_policy() -> AuthorizationPolicy:
    return AuthorizationPolicy(admin_emails=settings.admin_email_set())


PolicyDep = Annotated[AuthorizationPolicy, Depends(get_authorization_policy)]


async def require_admin(
    policy: PolicyDep, auth: AuthContext = Depends(verify_token)
) -> AuthContext:
    if not policy.is_admin(auth):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin only")
    return auth


AdminDep = Annotated[AuthContext, Depends(require_admin)]
