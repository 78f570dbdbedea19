from typing import Annotated

from fastapi import Header, HTTPException, status

from groups.domain.value_objects import TenantId


def get_tenant_id(
    x_tenant_id: Annotated[str, Header(description="Tenant to operate on")],
) -> TenantId:
    """Resolve the tenant of an admin request from the X-Tenant-ID header.

    Raises:
        HTTPException: 400 if the header is blank
    """
    value = x_tenant_id.strip()
    if not value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-ID header must not be empty",
        )
    return TenantId(value=value)
