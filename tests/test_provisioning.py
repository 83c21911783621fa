from clinic.core.security import SecretVerifier
from clinic.models import User
from clinic.services.provisioning_service import ProvisioningService
from tests.conftest import (
    ADMIN_EMAIL, ADMIN_PASSWORD, admin_token, auth_headers, create_doctor,
    login, register_patient
)

STAFF_DATA = {
    "email": "frontdesk@clinic.com",
    "password": "Staff1234",
    "first_name": "Front",
    "last_name": "Desk",
    "staff_role": "RECEPTIONIST",
}

def create_staff(client, token, data=STAFF_DATA) -> dict:
    response = client.post("/api/v1/staff", json=data, headers=auth_headers(token))
    assert response.status_code == 201, response.text
    return response.json()

class TestDefaultAdmin:

    def test_lost_race_reports_existing_admin(self, db_session, monkeypatch):
        service = ProvisioningService(db_session, SecretVerifier(rounds=4))
        assert service.ensure_default_admin(ADMIN_EMAIL, ADMIN_PASSWORD) is True

        # Another request inserted the admin after this one checked
        monkeypatch.setattr(service.accounts, "exists_by_email", lambda email: False)
        assert service.ensure_default_admin(ADMIN_EMAIL, ADMIN_PASSWORD) is False

        assert db_session.query(User).filter(User.email == ADMIN_EMAIL).count() == 1

class TestDoctorManagement:

    def test_admin_updates_doctor(self, client):
        token = admin_token(client)
        doctor = create_doctor(client, token)

        response = client.put(
            f"/api/v1/doctors/{doctor['id']}",
            json={"specialization": "Nephrology", "last_name": "Housé"},
            headers=auth_headers(token),
        )
        assert response.status_code == 200
        assert response.json()["specialization"] == "Nephrology"
        assert response.json()["full_name"] == "Gregory Housé"
        assert response.json()["license_number"] == "LIC-0001"

    def test_update_to_taken_email(self, client):
        token = admin_token(client)
        doctor = create_doctor(client, token)

        response = client.put(
            f"/api/v1/doctors/{doctor['id']}",
            json={"email": ADMIN_EMAIL},
            headers=auth_headers(token),
        )
        assert response.status_code == 400

    def test_doctor_cannot_update_doctors(self, client):
        token = admin_token(client)
        doctor = create_doctor(client, token)
        doctor_token = login(client, "house@clinic.com", "Doctor123")

        response = client.put(
            f"/api/v1/doctors/{doctor['id']}",
            json={"specialization": "Anything"},
            headers=auth_headers(doctor_token),
        )
        assert response.status_code == 403
        assert client.delete(f"/api/v1/doctors/{doctor['id']}", headers=auth_headers(doctor_token)).status_code == 403

    def test_admin_deletes_doctor(self, client):
        token = admin_token(client)
        doctor = create_doctor(client, token)

        response = client.delete(f"/api/v1/doctors/{doctor['id']}", headers=auth_headers(token))
        assert response.status_code == 204

        assert client.get(f"/api/v1/doctors/{doctor['id']}", headers=auth_headers(token)).status_code == 404
        login_response = client.post(
            "/api/v1/auth/login",
            json={"email": "house@clinic.com", "password": "Doctor123"},
        )
        assert login_response.status_code == 401

    def test_doctor_with_appointments_is_kept(self, client):
        token = admin_token(client)
        doctor = create_doctor(client, token)
        patient_token = register_patient(client)["access_token"]
        booked = client.post(
            "/api/v1/appointments",
            json={"doctor_id": doctor["id"], "appointment_date": "2031-03-10T10:00:00", "reason": "Check-up"},
            headers=auth_headers(patient_token),
        )
        assert booked.status_code == 201

        response = client.delete(f"/api/v1/doctors/{doctor['id']}", headers=auth_headers(token))
        assert response.status_code == 400

    def test_delete_unknown_doctor(self, client):
        token = admin_token(client)
        assert client.delete("/api/v1/doctors/999", headers=auth_headers(token)).status_code == 404

class TestStaffManagement:

    def test_get_and_filter_by_role(self, client):
        token = admin_token(client)
        staff = create_staff(client, token)

        response = client.get(f"/api/v1/staff/{staff['id']}", headers=auth_headers(token))
        assert response.status_code == 200
        assert response.json()["email"] == "frontdesk@clinic.com"

        receptionists = client.get("/api/v1/staff/role/RECEPTIONIST", headers=auth_headers(token))
        assert [s["id"] for s in receptionists.json()] == [staff["id"]]

        admins = client.get("/api/v1/staff/role/ADMIN", headers=auth_headers(token))
        assert [s["email"] for s in admins.json()] == [ADMIN_EMAIL]

    def test_admin_updates_staff(self, client):
        token = admin_token(client)
        staff = create_staff(client, token)

        response = client.put(
            f"/api/v1/staff/{staff['id']}",
            json={"staff_role": "NURSE", "department": "Ward B"},
            headers=auth_headers(token),
        )
        assert response.status_code == 200
        assert response.json()["staff_role"] == "NURSE"
        assert response.json()["department"] == "Ward B"

    def test_admin_deletes_staff(self, client):
        token = admin_token(client)
        staff = create_staff(client, token)

        response = client.delete(f"/api/v1/staff/{staff['id']}", headers=auth_headers(token))
        assert response.status_code == 204
        assert client.get(f"/api/v1/staff/{staff['id']}", headers=auth_headers(token)).status_code == 404

    def test_admin_cannot_delete_self(self, client):
        token = admin_token(client)
        admins = client.get("/api/v1/staff/role/ADMIN", headers=auth_headers(token)).json()

        response = client.delete(f"/api/v1/staff/{admins[0]['id']}", headers=auth_headers(token))
        assert response.status_code == 400

    def test_patient_cannot_manage_staff(self, client):
        token = admin_token(client)
        staff = create_staff(client, token)
        patient_token = register_patient(client)["access_token"]

        assert client.get(f"/api/v1/staff/{staff['id']}", headers=auth_headers(patient_token)).status_code == 403
        assert client.delete(f"/api/v1/staff/{staff['id']}", headers=auth_headers(patient_token)).status_code == 403
