import pytest


@pytest.fixture
def confirmed_appointment(client, actors):
    ids, headers = actors
    payload = {
        "doctorId": ids["doctor"],
        "date": "2025-06-01",
        "time": "10:00",
        "reason": "Follow-up",
        "preConsultationForm": {"symptoms": ["fatigue"]},
    }
    appt = client.post("/api/appointments", json=payload, headers=headers["patient"]).json()["data"]["appointment"]
    client.put(f"/api/appointments/{appt['id']}/confirm", headers=headers["doctor"])
    return appt["id"]


def test_consultation_flow_completes_appointment(client, actors, confirmed_appointment):
    ids, headers = actors

    started = client.post(f"/api/consultations/{confirmed_appointment}/start", headers=headers["doctor"])
    assert started.status_code == 201
    consultation = started.json()["data"]["consultation"]
    assert consultation["status"] == "active"

    again = client.post(f"/api/consultations/{confirmed_appointment}/start", headers=headers["doctor"])
    assert again.status_code == 400

    notes = client.put(f"/api/consultations/{consultation['id']}/notes", json={"notes": "Stable"}, headers=headers["doctor"])
    assert notes.json()["data"]["consultation"]["notes"] == "Stable"

    ended = client.put(
        f"/api/consultations/{consultation['id']}/end",
        json={"diagnosis": ["Anaemia"], "symptoms": ["fatigue"]},
        headers=headers["doctor"],
    )
    assert ended.status_code == 200
    assert ended.json()["data"]["consultation"]["status"] == "completed"
    assert ended.json()["data"]["consultation"]["duration"] == 0

    appt = client.get(f"/api/appointments/{confirmed_appointment}", headers=headers["patient"]).json()["data"]["appointment"]
    assert appt["status"] == "completed"
    assert appt["consultationId"] == consultation["id"]

    # Completed appointments cannot be cancelled
    cancel = client.put(f"/api/appointments/{confirmed_appointment}/cancel", json={}, headers=headers["patient"])
    assert cancel.status_code == 400


def test_consultation_needs_confirmed_appointment(client, actors):
    ids, headers = actors
    payload = {
        "doctorId": ids["doctor"],
        "date": "2025-06-01",
        "time": "15:00",
        "reason": "Check",
        "preConsultationForm": {"symptoms": ["cough"]},
    }
    appt = client.post("/api/appointments", json=payload, headers=headers["patient"]).json()["data"]["appointment"]
    resp = client.post(f"/api/consultations/{appt['id']}/start", headers=headers["doctor"])
    assert resp.status_code == 400
    assert client.post(f"/api/consultations/{appt['id']}/start", headers=headers["patient"]).status_code == 403


def test_prescription_links_appointment(client, actors, confirmed_appointment):
    ids, headers = actors
    body = {
        "patientId": ids["patient"],
        "appointmentId": confirmed_appointment,
        "medications": [{"name": "Iron", "dosage": "65mg", "frequency": "daily", "duration": "30 days"}],
        "diagnoses": [{"condition": "Anaemia"}],
    }
    resp = client.post("/api/prescriptions", json=body, headers=headers["doctor"])
    assert resp.status_code == 201
    prescription = resp.json()["data"]["prescription"]
    assert prescription["doctorId"] == ids["doctor"]

    appt = client.get(f"/api/appointments/{confirmed_appointment}", headers=headers["patient"]).json()["data"]["appointment"]
    assert appt["prescriptionId"] == prescription["id"]

    empty = client.post("/api/prescriptions", json={**body, "medications": []}, headers=headers["doctor"])
    assert empty.status_code == 400

    assert client.get(f"/api/prescriptions/{prescription['id']}", headers=headers["other"]).status_code == 403
    listing = client.get("/api/prescriptions", headers=headers["patient"]).json()["data"]
    assert listing["pagination"]["total"] == 1


def test_payment_intent_confirm_and_refund(client, actors, confirmed_appointment):
    ids, headers = actors

    created = client.post("/api/payments/create-intent", json={"appointmentId": confirmed_appointment}, headers=headers["patient"])
    assert created.status_code == 201
    payment = created.json()["data"]["payment"]
    assert payment["amount"] == 1500.0
    assert payment["currency"] == "NPR"
    assert created.json()["data"]["clientSecret"]

    refund_early = client.post(f"/api/payments/{payment['id']}/refund", json={}, headers=headers["admin"])
    assert refund_early.status_code == 400

    confirmed = client.post("/api/payments/confirm", json={"paymentIntentId": payment["paymentIntentId"]}, headers=headers["patient"])
    assert confirmed.status_code == 200
    assert confirmed.json()["data"]["payment"]["status"] == "completed"

    too_much = client.post(f"/api/payments/{payment['id']}/refund", json={"amount": 5000}, headers=headers["admin"])
    assert too_much.status_code == 400

    refunded = client.post(f"/api/payments/{payment['id']}/refund", json={"amount": 500, "reason": "Partial"}, headers=headers["admin"])
    assert refunded.status_code == 200
    assert refunded.json()["data"]["payment"]["refundAmount"] == 500

    history = client.get("/api/payments/history", headers=headers["doctor"]).json()["data"]
    assert history["pagination"]["total"] == 1
    assert client.get("/api/payments/history", headers=headers["other"]).json()["data"]["pagination"]["total"] == 0

    appt = client.get(f"/api/appointments/{confirmed_appointment}", headers=headers["patient"]).json()["data"]["appointment"]
    assert appt["paymentId"] == payment["id"]


def test_notifications_inbox(client, actors, confirmed_appointment):
    ids, headers = actors

    inbox = client.get("/api/notifications", headers=headers["patient"]).json()["data"]
    assert inbox["unreadCount"] == 1
    note = inbox["items"][0]
    assert note["type"] == "appointment_confirmed"

    assert client.put(f"/api/notifications/{note['id']}/read", headers=headers["other"]).status_code == 403
    read = client.put(f"/api/notifications/{note['id']}/read", headers=headers["patient"])
    assert read.json()["data"]["notification"]["isRead"] is True

    unread = client.get("/api/notifications?isRead=false", headers=headers["patient"]).json()["data"]
    assert unread["pagination"]["total"] == 0

    created = client.post(
        "/api/notifications",
        json={"userId": ids["patient"], "type": "system_announcement", "title": "Maintenance", "message": "Tonight"},
        headers=headers["admin"],
    )
    assert created.status_code == 201

    marked = client.put("/api/notifications/read-all", headers=headers["patient"])
    assert marked.json()["data"]["updated"] == 1

    assert client.delete(f"/api/notifications/{note['id']}", headers=headers["doctor"]).status_code == 403
    assert client.delete(f"/api/notifications/{note['id']}", headers=headers["patient"]).status_code == 200


def hospital_payload(**extra):
    payload = {
        "name": "Bir Hospital",
        "street": "Mahaboudha",
        "city": "Kathmandu",
        "state": "Bagmati",
        "phone": "+97714221119",
        "type": "government",
        "specializations": ["Cardiology", "Neurology"],
    }
    payload.update(extra)
    return payload


def test_hospital_directory(client, actors):
    ids, headers = actors

    created = client.post("/api/hospitals", json=hospital_payload(), headers=headers["admin"])
    assert created.status_code == 201
    hospital = created.json()["data"]["hospital"]
    assert hospital["slug"] == "bir-hospital"

    assert client.post("/api/hospitals", json=hospital_payload(), headers=headers["admin"]).status_code == 400
    assert client.post("/api/hospitals", json=hospital_payload(name="Other"), headers=headers["patient"]).status_code == 403
    client.post("/api/hospitals", json=hospital_payload(name="Patan Hospital", city="Lalitpur", specializations=["Orthopedics"]), headers=headers["admin"])

    public = client.get("/api/hospitals?specialization=Cardiology").json()["data"]
    assert [h["name"] for h in public["items"]] == ["Bir Hospital"]
    assert client.get("/api/hospitals?search=lalit").json()["data"]["pagination"]["total"] == 1
    assert client.get("/api/hospitals/slug/bir-hospital").json()["data"]["hospital"]["id"] == hospital["id"]

    verify = client.put(f"/api/hospitals/{hospital['id']}/verify", headers=headers["admin"])
    assert verify.json()["data"]["hospital"]["isVerified"] is True
    assert client.put(f"/api/hospitals/{hospital['id']}/verify", headers=headers["admin"]).status_code == 400

    client.post(f"/api/hospitals/{hospital['id']}/reviews", json={"rating": 5}, headers=headers["patient"])
    reviewed = client.post(f"/api/hospitals/{hospital['id']}/reviews", json={"rating": 4, "comment": "Busy"}, headers=headers["other"])
    assert reviewed.status_code == 201
    assert reviewed.json()["data"]["hospital"]["rating"] == 4.5
    assert reviewed.json()["data"]["hospital"]["totalReviews"] == 2

    assert client.post(f"/api/hospitals/{hospital['id']}/reviews", json={"rating": 6}, headers=headers["other"]).status_code == 400
    assert client.delete(f"/api/hospitals/{hospital['id']}", headers=headers["admin"]).status_code == 200
    assert client.get(f"/api/hospitals/{hospital['id']}").status_code == 404


def test_user_administration(client, actors):
    ids, headers = actors

    users = client.get("/api/users?role=patient", headers=headers["admin"]).json()["data"]
    assert users["pagination"]["total"] == 2
    assert client.get("/api/users", headers=headers["patient"]).status_code == 403

    doctors = client.get("/api/users/doctors?specialization=Cardiology").json()["data"]
    assert [d["id"] for d in doctors["items"]] == [ids["doctor"]]

    clash = client.put(f"/api/users/{ids['other']}", json={"email": "patient@example.com"}, headers=headers["admin"])
    assert clash.status_code == 400

    availability = {"monday": {"start": "09:00", "end": "12:00", "available": True}}
    resp = client.put("/api/users/availability", json={"availability": availability}, headers=headers["doctor"])
    assert resp.status_code == 200
    assert client.put("/api/users/availability", json={"availability": availability}, headers=headers["patient"]).status_code == 403

    bad = client.put("/api/users/availability", json={"availability": {"monday": {"start": "12:00", "end": "09:00", "available": True}}}, headers=headers["doctor"])
    assert bad.status_code == 400
    me = client.get(f"/api/users/{ids['doctor']}", headers=headers["doctor"]).json()["data"]["user"]
    assert me["availability"]["monday"]["end"] == "12:00"

    assert client.get(f"/api/users/{ids['patient']}", headers=headers["other"]).status_code == 403
    assert client.delete(f"/api/users/{ids['other']}", headers=headers["admin"]).status_code == 200
    assert client.get(f"/api/users/{ids['other']}", headers=headers["admin"]).json()["data"]["user"]["isActive"] is False


def test_ending_consultation_on_cancelled_appointment_writes_nothing(client, actors, confirmed_appointment):
    ids, headers = actors
    consultation = client.post(f"/api/consultations/{confirmed_appointment}/start", headers=headers["doctor"]).json()["data"]["consultation"]
    assert client.put(f"/api/appointments/{confirmed_appointment}/cancel", json={"reason": "Unwell"}, headers=headers["patient"]).status_code == 200

    for _ in range(2):
        ended = client.put(f"/api/consultations/{consultation['id']}/end", json={"notes": "n/a"}, headers=headers["doctor"])
        assert ended.status_code == 400
        assert ended.json()["message"] == "Only confirmed appointments can be completed"

    current = client.get(f"/api/consultations/{consultation['id']}", headers=headers["doctor"]).json()["data"]["consultation"]
    assert current["status"] == "active"
    assert current["endTime"] is None
    assert current["notes"] is None


def test_prescription_update_and_delete(client, actors, confirmed_appointment):
    ids, headers = actors
    body = {
        "patientId": ids["patient"],
        "appointmentId": confirmed_appointment,
        "medications": [{"name": "Iron", "dosage": "65mg", "frequency": "daily", "duration": "30 days"}],
        "diagnoses": [{"condition": "Anaemia"}],
    }
    prescription = client.post("/api/prescriptions", json=body, headers=headers["doctor"]).json()["data"]["prescription"]
    url = f"/api/prescriptions/{prescription['id']}"

    changes = {
        "notes": "Take with food",
        "medications": [{"name": "Iron", "dosage": "100mg", "frequency": "daily", "duration": "60 days"}],
    }
    updated = client.put(url, json=changes, headers=headers["doctor"])
    assert updated.status_code == 200
    assert updated.json()["data"]["prescription"]["notes"] == "Take with food"
    assert updated.json()["data"]["prescription"]["medications"][0]["dosage"] == "100mg"
    assert updated.json()["data"]["prescription"]["diagnoses"][0]["condition"] == "Anaemia"

    assert client.put(url, json={"medications": []}, headers=headers["doctor"]).status_code == 400
    assert client.put(url, json={"notes": "x"}, headers=headers["patient"]).status_code == 403

    assert client.delete(url, headers=headers["doctor"]).status_code == 403
    assert client.delete(url, headers=headers["admin"]).status_code == 200
    assert client.get(url, headers=headers["admin"]).status_code == 404
    assert client.delete(url, headers=headers["admin"]).status_code == 404
