from fastapi import APIRouter, Depends, Request

from ...api.deps import get_provisioning_service
from ...services.provisioning_service import ProvisioningService

router = APIRouter(prefix="/setup", tags=["Setup"])

@router.post("/create-admin")
def create_admin(
    request: Request,
    provisioning: ProvisioningService = Depends(get_provisioning_service),
):
    """Create the default administrator if it does not exist yet."""
    settings = request.app.state.settings
    created = provisioning.ensure_default_admin(
        settings.DEFAULT_ADMIN_EMAIL,
        settings.DEFAULT_ADMIN_PASSWORD,
    )
    if created:
        return {"message": "Admin created successfully", "email": settings.DEFAULT_ADMIN_EMAIL}
    return {"message": "Admin already exists", "email": settings.DEFAULT_ADMIN_EMAIL}
