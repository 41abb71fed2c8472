from conftest import create_appointment, create_patient, register_practitioner


def _request_appointment(client, **overrides):
    payload = {"date_time": "2026-11-03T15:00:00+00:00", "duration_minutes": 50, "notes": "First visit"}
    payload.update(overrides)
    res = client.post("/my-appointments", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def test_client_request_then_reject_flow(api_client, practitioner, linked_client):
    client, account = linked_client
    requested = _request_appointment(client)
    assert requested["status"] == "pending"
    assert requested["practitioner_id"] == practitioner["id"]
    assert requested["patient"]["name"] == "Maria Lopez"

    listed = api_client.get("/appointments", params={"status": "pending"})
    assert listed.status_code == 200, listed.text
    assert [appt["id"] for appt in listed.json()] == [requested["id"]]

    blank = api_client.post(f"/appointments/{requested['id']}/reject", json={"reason": "  "})
    assert blank.status_code == 400, blank.text
    assert blank.json()["field"] == "reason"

    rejected = api_client.post(
        f"/appointments/{requested['id']}/reject", json={"reason": "Fully booked that day"}
    )
    assert rejected.status_code == 200, rejected.text
    assert rejected.json()["status"] == "rejected"
    assert rejected.json()["notes"] == "Fully booked that day"

    mine = client.get("/my-appointments")
    assert mine.status_code == 200, mine.text
    assert mine.json()[0]["status"] == "rejected"

    again = api_client.post(f"/appointments/{requested['id']}/approve")
    assert again.status_code == 409, again.text
    assert "message" in again.json()


def test_approve_is_idempotent(api_client, practitioner, linked_client):
    client, _account = linked_client
    requested = _request_appointment(client)

    first = api_client.post(f"/appointments/{requested['id']}/approve", json={"notes": "See you then"})
    assert first.status_code == 200, first.text
    assert first.json()["status"] == "approved"
    assert first.json()["notes"] == "See you then"

    second = api_client.post(f"/appointments/{requested['id']}/approve")
    assert second.status_code == 200, second.text
    assert second.json() == first.json()

    audit = api_client.get(f"/appointments/{requested['id']}/audit")
    assert audit.status_code == 200, audit.text
    actions = [entry["action"] for entry in audit.json()]
    assert actions.count("appointment.approved") == 1
    assert "appointment.requested" in actions


def test_practitioner_created_appointment_lifecycle(api_client, practitioner):
    patient = create_patient(api_client)
    appt = create_appointment(api_client, patient["id"])
    assert appt["status"] == "scheduled"
    assert appt["meeting_type"] == "video"

    approve = api_client.post(f"/appointments/{appt['id']}/approve")
    assert approve.status_code == 409, approve.text

    completed = api_client.post(f"/appointments/{appt['id']}/complete", json={"notes": "Good progress"})
    assert completed.status_code == 200, completed.text
    assert completed.json()["status"] == "completed"
    assert completed.json()["notes"] == "Good progress"

    cancel = api_client.post(f"/appointments/{appt['id']}/cancel")
    assert cancel.status_code == 409, cancel.text

    reschedule = api_client.patch(
        f"/appointments/{appt['id']}", json={"date_time": "2026-11-10T10:00:00+00:00"}
    )
    assert reschedule.status_code == 409, reschedule.text

    notes = api_client.patch(f"/appointments/{appt['id']}", json={"notes": "Follow-up in two weeks"})
    assert notes.status_code == 200, notes.text
    assert notes.json()["notes"] == "Follow-up in two weeks"


def test_missed_and_cancelled_from_scheduled(api_client, practitioner):
    patient = create_patient(api_client)
    missed = create_appointment(api_client, patient["id"])
    cancelled = create_appointment(api_client, patient["id"], date_time="2026-11-04T10:00:00+00:00")

    res = api_client.post(f"/appointments/{missed['id']}/miss")
    assert res.status_code == 200, res.text
    assert res.json()["status"] == "missed"

    res = api_client.post(f"/appointments/{cancelled['id']}/cancel", json={"notes": "Client ill"})
    assert res.status_code == 200, res.text
    assert res.json()["status"] == "cancelled"
    assert res.json()["notes"] == "Client ill"


def test_create_validation(api_client, practitioner):
    patient = create_patient(api_client)

    missing_date = api_client.post(
        "/appointments", json={"patient_id": patient["id"], "duration_minutes": 50}
    )
    assert missing_date.status_code == 400, missing_date.text
    assert missing_date.json()["field"] == "date_time"

    zero = api_client.post(
        "/appointments",
        json={"patient_id": patient["id"], "date_time": "2026-11-02T10:00:00+00:00", "duration_minutes": 0},
    )
    assert zero.status_code == 400, zero.text
    assert zero.json()["field"] == "duration_minutes"

    unknown_patient = api_client.post(
        "/appointments",
        json={"patient_id": 9999, "date_time": "2026-11-02T10:00:00+00:00", "duration_minutes": 50},
    )
    assert unknown_patient.status_code == 404, unknown_patient.text


def test_other_practitioner_is_forbidden(api_client, practitioner, new_client):
    patient = create_patient(api_client)
    appt = create_appointment(api_client, patient["id"])

    other = new_client()
    register_practitioner(other, username="drgarcia")

    assert other.get(f"/appointments/{appt['id']}").status_code == 403
    assert other.post(f"/appointments/{appt['id']}/complete").status_code == 403
    assert other.patch(f"/appointments/{appt['id']}", json={"notes": "x"}).status_code == 403
    assert other.get(f"/appointments/{appt['id']}/audit").status_code == 403
    booking = other.post(
        "/appointments",
        json={"patient_id": patient["id"], "date_time": "2026-11-02T10:00:00+00:00", "duration_minutes": 50},
    )
    assert booking.status_code == 403, booking.text
    assert other.get("/appointments").json() == []

    assert api_client.get("/appointments/9999").status_code == 404


def test_clients_cannot_use_practitioner_endpoints(api_client, practitioner, linked_client):
    client, _account = linked_client
    requested = _request_appointment(client)

    assert client.get("/appointments").status_code == 403
    assert client.post(f"/appointments/{requested['id']}/approve").status_code == 403
    assert api_client.get("/my-appointments").status_code == 403


def test_list_cache_is_invalidated_on_write(api_client, practitioner):
    patient = create_patient(api_client)
    appt = create_appointment(api_client, patient["id"])

    listed = api_client.get("/appointments")
    assert [item["status"] for item in listed.json()] == ["scheduled"]

    api_client.post(f"/appointments/{appt['id']}/complete")
    listed = api_client.get("/appointments")
    assert [item["status"] for item in listed.json()] == ["completed"]


def test_unauthenticated_requests_are_rejected(api_client):
    res = api_client.get("/appointments")
    assert res.status_code == 401
    assert res.json() == {"message": "Not authenticated"}


def test_list_cache_sees_client_requests(api_client, practitioner, linked_client):
    client, _account = linked_client
    assert api_client.get("/appointments").json() == []

    requested = _request_appointment(client)

    listed = api_client.get("/appointments")
    assert [item["id"] for item in listed.json()] == [requested["id"]]


def test_list_cache_sees_detail_edits(api_client, practitioner):
    patient = create_patient(api_client)
    appt = create_appointment(api_client, patient["id"])
    assert api_client.get("/appointments").json()[0]["notes"] is None

    res = api_client.patch(
        f"/appointments/{appt['id']}",
        json={"notes": "Bring intake form", "date_time": "2026-11-09T10:00:00+00:00"},
    )
    assert res.status_code == 200, res.text

    listed = api_client.get("/appointments").json()
    assert listed[0]["notes"] == "Bring intake form"
    assert listed[0]["date_time"].startswith("2026-11-09T10:00:00")


def test_list_cache_sees_patient_renames(api_client, practitioner):
    patient = create_patient(api_client)
    appt = create_appointment(api_client, patient["id"])
    assert api_client.get("/appointments").json()[0]["patient"]["name"] == "Maria Lopez"

    res = api_client.patch(f"/patients/{patient['id']}", json={"name": "Maria Lopez Garcia"})
    assert res.status_code == 200, res.text

    assert api_client.get(f"/appointments/{appt['id']}").json()["patient"]["name"] == "Maria Lopez Garcia"
    listed = api_client.get("/appointments").json()
    assert listed[0]["patient"]["name"] == "Maria Lopez Garcia"


def test_patch_does_not_change_status(api_client, practitioner):
    patient = create_patient(api_client)
    appt = create_appointment(api_client, patient["id"])

    res = api_client.patch(
        f"/appointments/{appt['id']}", json={"status": "completed", "notes": "Moved online"}
    )
    assert res.status_code == 200, res.text
    assert res.json()["status"] == "scheduled"
    assert res.json()["notes"] == "Moved online"
