from typing import Any, Dict, Optional

DEFAULT_VERSION = 'v1'


def error_response(error_code: str, message: str, *, status: int = 400, meta: Optional[Dict[str, Any]] = None):
    """Return a standardized error payload structure.

    Shape:
      {"error": {"code": str, "message": str, "meta": {...}, "version": "v1"}}
    """
    from rest_framework.response import Response  # local import to avoid global DRF binding during migrations

    payload = {
        'error': {
            'code': error_code,
            'message': message,
            'version': DEFAULT_VERSION,
        }
    }
    if meta:
        payload['error']['meta'] = meta  # type: ignore[assignment]
    return Response(payload, status=status)


# Domain error code -> HTTP status for the REST adapter
ORG_ERROR_STATUS = {
    'forbidden': 403,
    'not_found': 404,
    'validation_failed': 400,
    'invalid_email': 400,
    'duplicate_default_organization': 409,
    'last_organization': 409,
    'cannot_delete_current': 409,
    'has_active_members': 409,
    'already_member': 409,
    'active_invitation_exists': 409,
    'already_resolved': 409,
    'email_mismatch': 409,
    'slug_collision': 409,
    'expired': 410,
    'storage_unavailable': 503,
}


def exception_handler(exc, context):
    """DRF exception handler: organization errors use the standard envelope."""
    from rest_framework.views import exception_handler as drf_exception_handler
    from orgs.errors import OrganizationError

    if isinstance(exc, OrganizationError):
        return error_response(exc.code, exc.message, status=ORG_ERROR_STATUS.get(exc.code, 400), meta=exc.meta or None)
    return drf_exception_handler(exc, context)
