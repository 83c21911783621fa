from fastapi import APIRouter, Depends, Query, Response, status
from typing import List

from ...api.deps import get_admin_principal, get_provisioning_service
from ...core.principal import Principal
from ...models.staff import StaffRole
from ...services.provisioning_service import ProvisioningService
from ...schemas.staff import StaffCreate, StaffResponse, StaffUpdate

# Every staff route is admin only
router = APIRouter(prefix="/staff", tags=["Staff"], dependencies=[Depends(get_admin_principal)])

@router.get("", response_model=List[StaffResponse])
def list_staff(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    provisioning: ProvisioningService = Depends(get_provisioning_service),
):
    return [StaffResponse.model_validate(s) for s in provisioning.list_staff(skip, limit)]

@router.get("/role/{staff_role}", response_model=List[StaffResponse])
def staff_by_role(
    staff_role: StaffRole,
    provisioning: ProvisioningService = Depends(get_provisioning_service),
):
    return [StaffResponse.model_validate(s) for s in provisioning.staff_by_role(staff_role)]

@router.get("/{staff_id}", response_model=StaffResponse)
def get_staff(
    staff_id: int,
    provisioning: ProvisioningService = Depends(get_provisioning_service),
):
    return StaffResponse.model_validate(provisioning.get_staff(staff_id))

@router.post("", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
def create_staff(
    staff_data: StaffCreate,
    provisioning: ProvisioningService = Depends(get_provisioning_service),
):
    return StaffResponse.model_validate(provisioning.create_staff(staff_data))

@router.put("/{staff_id}", response_model=StaffResponse)
def update_staff(
    staff_id: int,
    staff_data: StaffUpdate,
    provisioning: ProvisioningService = Depends(get_provisioning_service),
):
    return StaffResponse.model_validate(provisioning.update_staff(staff_id, staff_data))

@router.delete("/{staff_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_staff(
    staff_id: int,
    principal: Principal = Depends(get_admin_principal),
    provisioning: ProvisioningService = Depends(get_provisioning_service),
):
    provisioning.delete_staff(staff_id, principal.account_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
