from datetime import datetime
from fastapi import APIRouter, Depends, Query, Response, status
from typing import List, Optional

from ...api.deps import (
    get_admin_principal, get_appointment_service, get_current_principal,
    get_doctor_principal, get_patient_principal
)
from ...core.principal import Principal
from ...models.appointment import AppointmentStatus
from ...services.appointment_service import AppointmentService
from ...schemas.appointment import (
    AppointmentCancel, AppointmentCreate, AppointmentResponse,
    AppointmentUpdate, to_naive_utc
)

router = APIRouter(prefix="/appointments", tags=["Appointments"])

def _many(appointments) -> List[AppointmentResponse]:
    return [AppointmentResponse.model_validate(a) for a in appointments]

@router.get("", response_model=List[AppointmentResponse], dependencies=[Depends(get_doctor_principal)])
def list_appointments(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    service: AppointmentService = Depends(get_appointment_service),
):
    return _many(service.list_appointments(skip, limit))

@router.get("/date-range", response_model=List[AppointmentResponse], dependencies=[Depends(get_doctor_principal)])
def appointments_in_range(
    start: datetime,
    end: datetime,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Appointments starting within [start, end]."""
    return _many(service.appointments_in_range(to_naive_utc(start), to_naive_utc(end)))

@router.get("/patient/{patient_id}", response_model=List[AppointmentResponse])
def appointments_for_patient(
    patient_id: int,
    principal: Principal = Depends(get_current_principal),
    service: AppointmentService = Depends(get_appointment_service),
):
    return _many(service.appointments_for_patient(patient_id, principal))

@router.get("/doctor/{doctor_id}", response_model=List[AppointmentResponse], dependencies=[Depends(get_doctor_principal)])
def appointments_for_doctor(
    doctor_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    return _many(service.appointments_for_doctor(doctor_id))

@router.get("/status/{appointment_status}", response_model=List[AppointmentResponse], dependencies=[Depends(get_doctor_principal)])
def appointments_by_status(
    appointment_status: AppointmentStatus,
    service: AppointmentService = Depends(get_appointment_service),
):
    return _many(service.appointments_by_status(appointment_status))

@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    principal: Principal = Depends(get_current_principal),
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.model_validate(service.get_appointment(appointment_id, principal))

@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    appointment_data: AppointmentCreate,
    principal: Principal = Depends(get_patient_principal),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment. Responds 409 when the doctor is already booked for any part of the slot."""
    appointment = service.create_appointment(appointment_data, principal)
    return AppointmentResponse.model_validate(appointment)

@router.put("/{appointment_id}", response_model=AppointmentResponse, dependencies=[Depends(get_doctor_principal)])
def update_appointment(
    appointment_id: int,
    appointment_data: AppointmentUpdate,
    service: AppointmentService = Depends(get_appointment_service),
):
    return AppointmentResponse.model_validate(service.update_appointment(appointment_id, appointment_data))

@router.patch("/{appointment_id}/cancel", response_model=AppointmentResponse)
def cancel_appointment(
    appointment_id: int,
    cancel_data: Optional[AppointmentCancel] = None,
    principal: Principal = Depends(get_current_principal),
    service: AppointmentService = Depends(get_appointment_service),
):
    reason = cancel_data.reason if cancel_data else None
    return AppointmentResponse.model_validate(service.cancel_appointment(appointment_id, principal, reason))

@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    dependencies=[Depends(get_admin_principal)],
)
def delete_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    service.delete_appointment(appointment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
