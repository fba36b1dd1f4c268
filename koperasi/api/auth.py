"""
System, locale and authorization dependencies
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException

from ..system import CooperativeSystem
from ..messages import normalize_locale, render_message
from ..permissions import Permission, Role, parse_role, has_permission


# Global system instance
cooperative_system = CooperativeSystem()


# Dependency to get the cooperative system
def get_cooperative_system() -> CooperativeSystem:
    return cooperative_system


def get_locale(
    accept_language: Optional[str] = Header(None),
    system: CooperativeSystem = Depends(get_cooperative_system)
) -> str:
    """Response locale from Accept-Language, else the configured default"""
    return normalize_locale(accept_language, system.config.default_locale)


def error_body(code: str, message_key: str, locale: str, params: Optional[dict] = None) -> dict:
    return {
        "success": False,
        "error": render_message(message_key, locale, params),
        "code": code
    }


def require_permission(permission: Permission):
    """
    Dependency factory gating a route on the caller's role.

    The role comes from the X-User-Role header and is only checked when
    enforce_permissions is configured.
    """
    def check_permission(
        x_user_role: Optional[str] = Header(None),
        system: CooperativeSystem = Depends(get_cooperative_system),
        locale: str = Depends(get_locale)
    ) -> Optional[Role]:
        if not system.config.enforce_permissions:
            return None

        if not x_user_role:
            raise HTTPException(
                status_code=401,
                detail=error_body("unauthenticated", "missing_role", locale)
            )

        params = {"role": x_user_role, "permission": permission.value}
        try:
            role = parse_role(x_user_role)
        except ValueError:
            raise HTTPException(
                status_code=403,
                detail=error_body("permission_denied", "permission_denied", locale, params)
            )

        if not has_permission(role, permission):
            raise HTTPException(
                status_code=403,
                detail=error_body("permission_denied", "permission_denied", locale, params)
            )
        return role

    return check_permission
