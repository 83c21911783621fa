from fastapi import APIRouter, Depends, Query, Response, status
from typing import List

from ...api.deps import (
    get_admin_principal, get_current_principal, get_doctor_principal,
    get_patient_service
)
from ...core.principal import Principal
from ...services.patient_service import PatientService
from ...schemas.patient import PatientResponse, PatientUpdate

router = APIRouter(prefix="/patients", tags=["Patients"])

@router.get("", response_model=List[PatientResponse], dependencies=[Depends(get_doctor_principal)])
def list_patients(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    service: PatientService = Depends(get_patient_service),
):
    return [PatientResponse.model_validate(p) for p in service.list_patients(skip, limit)]

@router.get("/{patient_id}", response_model=PatientResponse)
def get_patient(
    patient_id: int,
    principal: Principal = Depends(get_current_principal),
    service: PatientService = Depends(get_patient_service),
):
    """A patient record; patients may only read their own."""
    return PatientResponse.model_validate(service.get_patient(patient_id, principal))

@router.put("/{patient_id}", response_model=PatientResponse, dependencies=[Depends(get_admin_principal)])
def update_patient(
    patient_id: int,
    patient_data: PatientUpdate,
    service: PatientService = Depends(get_patient_service),
):
    return PatientResponse.model_validate(service.update_patient(patient_id, patient_data))

@router.delete(
    "/{patient_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(get_admin_principal)],
)
def delete_patient(
    patient_id: int,
    service: PatientService = Depends(get_patient_service),
):
    service.delete_patient(patient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
