"""Batch report setting endpoints (one recurring setting per property)."""

from fastapi import APIRouter, HTTPException, Response, status

from brokerage.dependencies import DBSession, Tenant
from brokerage.schemas.batch import (
    BatchReportSettingCreate,
    BatchReportSettingResponse,
    BatchReportSettingUpdate,
)
from brokerage.services.batch_settings import (
    BatchSettingNotFoundError,
    DuplicateBatchSettingError,
    create_setting,
    get_setting_by_property,
    get_settings_by_tenant,
    soft_delete_setting,
    update_setting,
)
from brokerage.services.property_service import get_property

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Batch setting not found for this property",
    )


@router.get("/reports/batch", response_model=list[BatchReportSettingResponse])
async def list_batch_settings(db: DBSession, tenant: Tenant) -> list[BatchReportSettingResponse]:
    """List all batch report settings of the caller's tenant, newest first."""
    settings = await get_settings_by_tenant(db, tenant.client_id)
    return [BatchReportSettingResponse.model_validate(s) for s in settings]


@router.post(
    "/properties/{property_id}/reports/batch",
    response_model=BatchReportSettingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_batch_setting(
    property_id: str,
    body: BatchReportSettingCreate,
    db: DBSession,
    tenant: Tenant,
) -> BatchReportSettingResponse:
    """
    Create the recurring report setting for a property.

    Fails with 409 if the property already has an active setting.
    """
    prop = await get_property(db, tenant.client_id, property_id)
    if not prop:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Property not found",
        )

    try:
        setting = await create_setting(
            db,
            client_id=tenant.client_id,
            employee_id=tenant.employee_id,
            property_id=property_id,
            request=body,
            property_name=prop.name,
        )
    except DuplicateBatchSettingError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    await db.commit()
    return BatchReportSettingResponse.model_validate(setting)


@router.get(
    "/properties/{property_id}/reports/batch",
    response_model=BatchReportSettingResponse,
)
async def get_batch_setting(
    property_id: str,
    db: DBSession,
    tenant: Tenant,
) -> BatchReportSettingResponse:
    """Get the current report setting of a property."""
    setting = await get_setting_by_property(db, tenant.client_id, property_id)
    if not setting:
        raise _not_found()
    return BatchReportSettingResponse.model_validate(setting)


@router.patch(
    "/properties/{property_id}/reports/batch",
    response_model=BatchReportSettingResponse,
)
async def update_batch_setting(
    property_id: str,
    body: BatchReportSettingUpdate,
    db: DBSession,
    tenant: Tenant,
) -> BatchReportSettingResponse:
    """
    Partially update the report setting of a property.

    Changing start_date, execution_time or weekday re-places the next execution.
    Reactivating fails with 409 if another setting of the property is active.
    """
    existing = await get_setting_by_property(db, tenant.client_id, property_id)
    if not existing:
        raise _not_found()

    try:
        setting = await update_setting(db, tenant.client_id, existing.created_at, body)
    except BatchSettingNotFoundError as e:
        raise _not_found() from e
    except DuplicateBatchSettingError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    await db.commit()
    return BatchReportSettingResponse.model_validate(setting)


@router.delete(
    "/properties/{property_id}/reports/batch",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_batch_setting(property_id: str, db: DBSession, tenant: Tenant) -> Response:
    """Soft-delete the report setting of a property."""
    existing = await get_setting_by_property(db, tenant.client_id, property_id)
    if not existing:
        raise _not_found()

    try:
        await soft_delete_setting(db, tenant.client_id, existing.created_at)
    except BatchSettingNotFoundError as e:
        raise _not_found() from e

    await db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
