from fastapi import APIRouter, Depends, Query, Response, status
from typing import List

from ...api.deps import (
    get_admin_principal, get_doctor_principal, get_current_principal,
    get_provisioning_service
)
from ...services.provisioning_service import ProvisioningService
from ...schemas.staff import DoctorCreate, DoctorResponse, DoctorUpdate

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("", response_model=List[DoctorResponse], dependencies=[Depends(get_doctor_principal)])
def list_doctors(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    provisioning: ProvisioningService = Depends(get_provisioning_service),
):
    return [DoctorResponse.model_validate(d) for d in provisioning.list_doctors(skip, limit)]

@router.get(
    "/specialization/{specialization}",
    response_model=List[DoctorResponse],
    dependencies=[Depends(get_current_principal)],
)
def doctors_by_specialization(
    specialization: str,
    provisioning: ProvisioningService = Depends(get_provisioning_service),
):
    """Doctors with the given specialization, for patients choosing whom to book."""
    return [DoctorResponse.model_validate(d) for d in provisioning.doctors_by_specialization(specialization)]

@router.get("/{doctor_id}", response_model=DoctorResponse, dependencies=[Depends(get_doctor_principal)])
def get_doctor(
    doctor_id: int,
    provisioning: ProvisioningService = Depends(get_provisioning_service),
):
    return DoctorResponse.model_validate(provisioning.get_doctor(doctor_id))

@router.post(
    "",
    response_model=DoctorResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_admin_principal)],
)
def create_doctor(
    doctor_data: DoctorCreate,
    provisioning: ProvisioningService = Depends(get_provisioning_service),
):
    """Provision a doctor account (admin only)."""
    return DoctorResponse.model_validate(provisioning.create_doctor(doctor_data))

@router.put("/{doctor_id}", response_model=DoctorResponse, dependencies=[Depends(get_admin_principal)])
def update_doctor(
    doctor_id: int,
    doctor_data: DoctorUpdate,
    provisioning: ProvisioningService = Depends(get_provisioning_service),
):
    return DoctorResponse.model_validate(provisioning.update_doctor(doctor_id, doctor_data))

@router.delete(
    "/{doctor_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(get_admin_principal)],
)
def delete_doctor(
    doctor_id: int,
    provisioning: ProvisioningService = Depends(get_provisioning_service),
):
    provisioning.delete_doctor(doctor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
