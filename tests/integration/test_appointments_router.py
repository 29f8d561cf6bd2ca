from datetime import date, timedelta

from storefront.errors import RemoteRejected

DOCTOR = {
    "_id": "d1",
    "userName": "Dr. Karim",
    "userEmail": "karim@vets.example",
    "meeting_fee_bdt": 1000,
    "availableDays": [],
    "availableTimeStart": "09:00",
    "availableTimeEnd": "17:00",
}
TOMORROW = (date.today() + timedelta(days=1)).isoformat()


def _routes(fake_api):
    fake_api.route("GET", "/cart/test@example.com", {"items": []})
    fake_api.route("GET", "/api/doctors", {"success": True, "doctors": [DOCTOR]})

def test_availability(client, fake_api):
    _routes(fake_api)
    r = client.get("/api/v1/appointments/doctors/karim@vets.example")
    assert r.status_code == 200
    body = r.json()
    assert body["time_slots"][0] == "09:00"
    assert body["time_slots"][-1] == "16:30"
    assert body["dates"][0] == date.today().isoformat()

def test_unknown_doctor_is_422(client, fake_api):
    _routes(fake_api)
    r = client.get("/api/v1/appointments/doctors/nobody")
    assert r.status_code == 422
    assert r.json()["detail"]["message"] == "Doctor not found"

def test_slot_conflict_is_409(client, fake_api):
    _routes(fake_api)
    fake_api.route("POST", "/appointment/create-payment-intent",
                   RemoteRejected("Slot already booked", status_code=409, payload={"conflict": True}))
    r = client.post("/api/v1/appointments/doctors/d1/slot", json={"date": TOMORROW, "time": "10:00"})
    assert r.status_code == 409
    detail = r.json()["detail"]
    assert detail["error"] == "slot_conflict"
    assert detail["data"]["session"]["step"] == "collecting_billing"
    assert detail["data"]["session"]["details"]["time"] is None

def test_booking_flow(client, fake_api):
    _routes(fake_api)
    fake_api.route("POST", "/appointment/create-payment-intent", {"success": True, "clientSecret": "pi_b_secret"})
    fake_api.route("POST", "/appointment/verify-payment", {"success": True, "appointment": {"appointmentId": "APT-7"}})
    r = client.post("/api/v1/appointments/doctors/d1/slot", json={"date": TOMORROW, "time": "10:00"})
    assert r.status_code == 200
    r = client.post("/api/v1/appointments/doctors/d1/confirm", json={"payment_intent_id": "pi_b"})
    assert r.status_code == 200
    assert r.json()["data"]["appointmentId"] == "APT-7"

def test_confirm_without_booking_is_404(client, fake_api):
    _routes(fake_api)
    r = client.post("/api/v1/appointments/doctors/d1/confirm", json={"payment_intent_id": "pi_b"})
    assert r.status_code == 404

def test_malformed_doctor_hours_still_list_default_slots(client, fake_api):
    fake_api.route("GET", "/cart/test@example.com", {"items": []})
    fake_api.route("GET", "/api/doctors", {"success": True, "doctors": [
        {**DOCTOR, "availableTimeStart": "noon", "availableTimeEnd": ""},
    ]})
    r = client.get("/api/v1/appointments/doctors/d1")
    assert r.status_code == 200
    assert r.json()["time_slots"][:2] == ["09:00", "09:30"]
