"""HTTP routes for manually triggered directory sync."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from groups.application.services import AuthmanSyncService
from groups.dependencies.sync import (
    get_authman_sync_service,
    get_sync_effects_publisher,
)
from groups.dependencies.tenant import get_tenant_id
from groups.domain.value_objects import GroupId, TenantId
from groups.infrastructure.outbox import SyncEffectsPublisher
from groups.ports.exceptions import (
    AlreadySyncedError,
    DirectoryError,
    GroupNotFoundError,
    GroupNotSyncEligibleError,
    SyncAlreadyRunningError,
    SyncSetupError,
)
from groups.presentation.authman.models import GroupSyncResponse, SyncResponse

router = APIRouter(
    prefix="/admin/authman",
    tags=["authman"],
)


@router.post(
    "/synchronize",
    response_model=SyncResponse,
    summary="Synchronize the tenant with the directory",
    responses={
        200: {"description": "Pass completed"},
        409: {"description": "Another pass is running"},
        500: {"description": "The pass could not be set up"},
    },
)
async def synchronize(
    tenant_id: Annotated[TenantId, Depends(get_tenant_id)],
    service: Annotated[AuthmanSyncService, Depends(get_authman_sync_service)],
    publisher: Annotated[SyncEffectsPublisher, Depends(get_sync_effects_publisher)],
) -> SyncResponse:
    """Run a tenant-wide pass.

    Manual passes bypass the tenant's time threshold.

    Raises:
        HTTPException: 409 if another pass holds the sync window
        HTTPException: 500 if the stem configurations cannot be loaded
    """
    try:
        report = await service.synchronize(tenant_id)
    except (SyncAlreadyRunningError, AlreadySyncedError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except SyncSetupError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e)
        )

    await publisher.publish(report.all_effects())
    return SyncResponse.from_report(report)


@router.post(
    "/groups/{group_id}/synchronize",
    response_model=GroupSyncResponse,
    summary="Synchronize one group with the directory",
    responses={
        200: {"description": "Pass completed"},
        400: {"description": "Invalid group ID"},
        404: {"description": "Group not found"},
        409: {"description": "Another pass holds the group's sync window"},
        422: {"description": "Group is not mirrored from the directory"},
        502: {"description": "Directory unavailable"},
    },
)
async def synchronize_group(
    group_id: str,
    tenant_id: Annotated[TenantId, Depends(get_tenant_id)],
    service: Annotated[AuthmanSyncService, Depends(get_authman_sync_service)],
    publisher: Annotated[SyncEffectsPublisher, Depends(get_sync_effects_publisher)],
) -> GroupSyncResponse:
    """Reconcile one mirrored group's roster.

    Raises:
        HTTPException: 400 if the group ID is not a ULID
        HTTPException: 404 if the group does not exist in the tenant
        HTTPException: 409 if another pass holds the group's window
        HTTPException: 422 if the group is not mirrored
        HTTPException: 502 if the directory cannot be queried
    """
    try:
        group_id_obj = GroupId.from_string(group_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid group ID format: {group_id}",
        )

    try:
        report = await service.synchronize_group(tenant_id, group_id_obj)
    except GroupNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except GroupNotSyncEligibleError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)
        )
    except SyncAlreadyRunningError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except DirectoryError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    await publisher.publish(report.effects)
    return GroupSyncResponse.from_report(report)
