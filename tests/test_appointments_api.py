import datetime as dt

import pytest

from telehealth.exceptions import SlotAlreadyBooked
from telehealth.infrastructure.persistence.sqlalchemy.repositories.appointments_repository_sql import SqlAppointmentsRepository


def booking(doctor_id, time="10:00", day="2025-06-01"):
    return {
        "doctorId": doctor_id,
        "date": day,
        "time": time,
        "reason": "Chest pain",
        "preConsultationForm": {"symptoms": ["chest pain"], "allergies": ["penicillin"]},
    }


def test_booking_lifecycle_end_to_end(client, actors):
    ids, headers = actors

    resp = client.post("/api/appointments", json=booking(ids["doctor"]), headers=headers["patient"])
    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "success"
    appt = body["data"]["appointment"]
    assert appt["status"] == "pending"
    assert appt["patientId"] == ids["patient"]
    assert appt["preConsultationForm"]["allergies"] == ["penicillin"]

    dup = client.post("/api/appointments", json=booking(ids["doctor"]), headers=headers["other"])
    assert dup.status_code == 400
    assert dup.json() == {"status": "error", "message": "Time slot is already booked", "data": {}}

    confirm = client.put(f"/api/appointments/{appt['id']}/confirm", headers=headers["doctor"])
    assert confirm.status_code == 200
    assert confirm.json()["data"]["appointment"]["status"] == "confirmed"

    cancel = client.put(f"/api/appointments/{appt['id']}/cancel", json={"reason": "Travel"}, headers=headers["patient"])
    assert cancel.status_code == 200
    assert cancel.json()["data"]["appointment"]["cancellationReason"] == "Travel"

    again = client.post("/api/appointments", json=booking(ids["doctor"]), headers=headers["other"])
    assert again.status_code == 201


def test_constraint_rejects_insert_that_skips_precheck(client, actors, db):
    ids, _ = actors
    row = {
        "patient_id": ids["patient"],
        "doctor_id": ids["doctor"],
        "date": dt.date(2025, 6, 1),
        "time": "10:00",
        "reason": "x",
        "status": "pending",
    }
    with db.session() as session:
        repo = SqlAppointmentsRepository(session)
        repo.create(row)
        with pytest.raises(SlotAlreadyBooked):
            repo.create({**row, "patient_id": ids["other"]})
        # Completed rows do not hold the slot
        repo.create({**row, "time": "11:00", "status": "completed"})
        repo.create({**row, "time": "11:00", "status": "cancelled"})
        assert repo.create({**row, "time": "11:00"}).status == "pending"

        other = repo.create({**row, "time": "12:00"})
        with pytest.raises(SlotAlreadyBooked):
            repo.update(other.id, {"time": "10:00"})
        assert repo.get(other.id).time == "12:00"


def test_missing_symptoms_is_validation_error(client, actors):
    ids, headers = actors
    payload = booking(ids["doctor"])
    payload["preConsultationForm"]["symptoms"] = []
    resp = client.post("/api/appointments", json=payload, headers=headers["patient"])
    assert resp.status_code == 400
    assert resp.json()["message"] == "Validation failed"


def test_requires_authentication(client):
    resp = client.get("/api/appointments")
    assert resp.status_code == 401
    assert resp.json()["status"] == "error"


def test_list_is_scoped_and_paginated(client, actors):
    ids, headers = actors
    for time in ("09:00", "09:30", "10:00"):
        client.post("/api/appointments", json=booking(ids["doctor"], time), headers=headers["patient"])
    client.post("/api/appointments", json=booking(ids["doctor"], "11:00"), headers=headers["other"])

    mine = client.get("/api/appointments?limit=2&sort=time", headers=headers["patient"]).json()["data"]
    assert [a["time"] for a in mine["items"]] == ["09:00", "09:30"]
    assert mine["pagination"] == {"page": 1, "limit": 2, "total": 3, "totalPages": 2, "hasNextPage": True, "hasPrevPage": False}

    doctor_view = client.get("/api/appointments", headers=headers["doctor"]).json()["data"]
    assert doctor_view["pagination"]["total"] == 4

    bad_sort = client.get("/api/appointments?sort=password", headers=headers["patient"])
    assert bad_sort.status_code == 400


def test_available_slots_and_schedule(client, actors):
    ids, headers = actors
    client.post("/api/appointments", json=booking(ids["doctor"], "09:00"), headers=headers["patient"])

    slots = client.get(f"/api/appointments/available-slots/{ids['doctor']}?date=2025-06-01", headers=headers["patient"])
    assert slots.status_code == 200
    assert "09:00" not in slots.json()["data"]["slots"]
    assert slots.json()["data"]["slots"][0] == "09:30"

    schedule = client.get(
        "/api/appointments/doctor/schedule?startDate=2025-06-01&endDate=2025-06-30",
        headers=headers["doctor"],
    )
    assert schedule.status_code == 200
    assert len(schedule.json()["data"]["appointments"]) == 1

    forbidden = client.get("/api/appointments/doctor/schedule?startDate=2025-06-01&endDate=2025-06-30", headers=headers["patient"])
    assert forbidden.status_code == 403


def test_reschedule_approval_conflict_keeps_original_slot(client, actors):
    ids, headers = actors
    first = client.post("/api/appointments", json=booking(ids["doctor"], "10:00"), headers=headers["patient"]).json()["data"]["appointment"]

    req = client.put(
        f"/api/appointments/{first['id']}/reschedule",
        json={"newDate": "2025-06-01", "newTime": "11:00", "reason": "Clash with work"},
        headers=headers["patient"],
    )
    assert req.status_code == 200
    assert req.json()["data"]["appointment"]["rescheduleStatus"] == "pending"

    taken = client.post("/api/appointments", json=booking(ids["doctor"], "11:00"), headers=headers["other"])
    assert taken.status_code == 201

    approve = client.put(f"/api/appointments/{first['id']}/handle-reschedule", json={"action": "approve"}, headers=headers["doctor"])
    assert approve.status_code == 400
    assert approve.json()["message"] == "Time slot is already booked"

    current = client.get(f"/api/appointments/{first['id']}", headers=headers["patient"]).json()["data"]["appointment"]
    assert (current["date"], current["time"], current["rescheduleStatus"]) == ("2025-06-01", "10:00", "pending")


def test_reschedule_approved(client, actors):
    ids, headers = actors
    appt = client.post("/api/appointments", json=booking(ids["doctor"], "10:00"), headers=headers["patient"]).json()["data"]["appointment"]
    client.put(
        f"/api/appointments/{appt['id']}/reschedule",
        json={"newDate": "2025-06-02", "newTime": "14:00", "reason": "Later please"},
        headers=headers["patient"],
    )
    resp = client.put(f"/api/appointments/{appt['id']}/handle-reschedule", json={"action": "approve"}, headers=headers["doctor"])
    assert resp.status_code == 200
    moved = resp.json()["data"]["appointment"]
    assert (moved["date"], moved["time"], moved["rescheduleStatus"]) == ("2025-06-02", "14:00", "approved")

    # The patient hears about the decision
    inbox = client.get("/api/notifications?type=appointment_rescheduled", headers=headers["patient"]).json()["data"]
    assert inbox["unreadCount"] >= 1


def test_other_patient_cannot_view_or_cancel(client, actors):
    ids, headers = actors
    appt = client.post("/api/appointments", json=booking(ids["doctor"]), headers=headers["patient"]).json()["data"]["appointment"]
    assert client.get(f"/api/appointments/{appt['id']}", headers=headers["other"]).status_code == 403
    assert client.put(f"/api/appointments/{appt['id']}/cancel", json={}, headers=headers["other"]).status_code == 403


def test_delete_is_admin_only(client, actors):
    ids, headers = actors
    appt = client.post("/api/appointments", json=booking(ids["doctor"]), headers=headers["patient"]).json()["data"]["appointment"]
    assert client.delete(f"/api/appointments/{appt['id']}", headers=headers["patient"]).status_code == 403
    resp = client.delete(f"/api/appointments/{appt['id']}", headers=headers["admin"])
    assert resp.status_code == 200
    assert resp.json()["data"] == {}
    assert client.get(f"/api/appointments/{appt['id']}", headers=headers["admin"]).status_code == 404


def test_update_with_blank_symptoms_keeps_stored_form(client, actors):
    ids, headers = actors
    appt = client.post("/api/appointments", json=booking(ids["doctor"]), headers=headers["patient"]).json()["data"]["appointment"]

    resp = client.put(f"/api/appointments/{appt['id']}", json={"preConsultationForm": {"symptoms": ["   "]}}, headers=headers["patient"])
    assert resp.status_code == 400
    assert resp.json()["message"] == "Validation failed"

    current = client.get(f"/api/appointments/{appt['id']}", headers=headers["patient"]).json()["data"]["appointment"]
    assert current["preConsultationForm"]["symptoms"] == ["chest pain"]

    ok = client.put(f"/api/appointments/{appt['id']}", json={"preConsultationForm": {"symptoms": ["dizziness"]}}, headers=headers["patient"])
    assert ok.status_code == 200
    assert ok.json()["data"]["appointment"]["preConsultationForm"]["symptoms"] == ["dizziness"]
