"""API key management endpoints."""

from fastapi import APIRouter, Depends, Request, status

from iotpilot.core.audit import AuditAction, AuditOutcome, audit_log
from iotpilot.core.auth import get_current_user
from iotpilot.core.crypto import mask_key
from iotpilot.db import APIKey, User
from iotpilot.dependencies import get_api_key_service
from iotpilot.schemas.api_key import APIKeyCreate, APIKeyCreatedResponse, APIKeyResponse
from iotpilot.services.api_key_service import APIKeyService

router = APIRouter(prefix="/auth/api-keys", tags=["api-keys"])


def _masked(api_key: APIKey) -> APIKeyResponse:
    return APIKeyResponse(
        id=api_key.id,
        name=api_key.name,
        key=mask_key(api_key.key_suffix),
        expires_at=api_key.expires_at,
        last_used_at=api_key.last_used_at,
        created_at=api_key.created_at,
    )


@router.get("", response_model=list[APIKeyResponse])
def list_api_keys(
    service: APIKeyService = Depends(get_api_key_service),
    current_user: User = Depends(get_current_user),
) -> list[APIKeyResponse]:
    """List the caller's active API keys, masked."""
    return [_masked(key) for key in service.list_user_api_keys(current_user)]


@router.post("", response_model=APIKeyCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_api_key(
    request: Request,
    payload: APIKeyCreate,
    service: APIKeyService = Depends(get_api_key_service),
    current_user: User = Depends(get_current_user),
) -> APIKeyCreatedResponse:
    """Create a new API key.

    The key is only returned once at creation. Store it securely!
    """
    api_key, plain_key = service.create_api_key(
        user=current_user,
        name=payload.name,
        expires_at=payload.expires_at,
    )

    audit_log(
        AuditAction.API_KEY_CREATE,
        AuditOutcome.SUCCESS,
        user=current_user,
        request=request,
        resource_type="api_key",
        resource_id=api_key.id,
        resource_name=api_key.name,
    )

    return APIKeyCreatedResponse(
        id=api_key.id,
        name=api_key.name,
        key=plain_key,
        expires_at=api_key.expires_at,
        created_at=api_key.created_at,
    )


@router.delete("/{key_id}")
def revoke_api_key(
    key_id: int,
    request: Request,
    service: APIKeyService = Depends(get_api_key_service),
    current_user: User = Depends(get_current_user),
) -> dict:
    """Revoke one of the caller's keys."""
    api_key = service.revoke_api_key(key_id, current_user)

    audit_log(
        AuditAction.API_KEY_REVOKE,
        AuditOutcome.SUCCESS,
        user=current_user,
        request=request,
        resource_type="api_key",
        resource_id=key_id,
        resource_name=api_key.name,
    )
    return {"message": "API key revoked successfully"}
