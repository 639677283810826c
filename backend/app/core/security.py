import logging

from fastapi import Depends, HTTPException, Request, status

from app.core.metrics import increment_counter
from app.core.operator_view import CapabilityContext, can_edit_field, can_view_field

logger = logging.getLogger(__name__)


def get_capability_context(request: Request) -> CapabilityContext:
    context = getattr(request.state, "capability_context", None)
    if not isinstance(context, CapabilityContext):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not resolve capability context",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return context


def require_capability(capability_id: str, *, edit: bool = False):
    action = "edit" if edit else "view"

    def _dependency(context: CapabilityContext = Depends(get_capability_context)) -> CapabilityContext:
        allowed = can_edit_field(context, capability_id) if edit else can_view_field(context, capability_id)
        increment_counter(
            "capability_guard_total",
            capability=capability_id,
            action=action,
            result="allow" if allowed else "deny",
        )
        if not allowed:
            logger.info(
                "capability_guard_denied capability=%s action=%s role=%s",
                capability_id,
                action,
                context.role_label or "-",
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Capability required: {capability_id}",
            )
        return context

    return _dependency
