from conftest import register_practitioner


def test_availability_crud(api_client, practitioner, linked_client):
    client, _account = linked_client
    monday = api_client.post("/availability", json={"day_of_week": 1, "start_time": "09:00", "end_time": "13:00"})
    assert monday.status_code == 201, monday.text
    sunday = api_client.post("/availability", json={"day_of_week": 0, "start_time": "10:00", "end_time": "12:00"})
    assert sunday.status_code == 201, sunday.text

    listed = api_client.get("/availability").json()
    assert [slot["day_of_week"] for slot in listed] == [0, 1]

    seen_by_client = client.get("/my-practitioner/availability")
    assert seen_by_client.status_code == 200, seen_by_client.text
    assert seen_by_client.json() == listed

    deleted = api_client.delete(f"/availability/{sunday.json()['id']}")
    assert deleted.status_code == 200, deleted.text
    assert [slot["id"] for slot in api_client.get("/availability").json()] == [monday.json()["id"]]
    assert api_client.delete(f"/availability/{sunday.json()['id']}").status_code == 404


def test_availability_validation(api_client, practitioner):
    bad_day = api_client.post("/availability", json={"day_of_week": 7, "start_time": "09:00", "end_time": "10:00"})
    assert bad_day.status_code == 400, bad_day.text
    assert bad_day.json()["field"] == "day_of_week"

    bad_time = api_client.post("/availability", json={"day_of_week": 2, "start_time": "9:00", "end_time": "10:00"})
    assert bad_time.status_code == 400, bad_time.text
    assert bad_time.json()["field"] == "start_time"

    backwards = api_client.post("/availability", json={"day_of_week": 2, "start_time": "11:00", "end_time": "10:00"})
    assert backwards.status_code == 400, backwards.text
    assert backwards.json()["field"] == "end_time"


def test_cannot_delete_other_practitioners_slot(api_client, practitioner, new_client):
    slot = api_client.post("/availability", json={"day_of_week": 3, "start_time": "09:00", "end_time": "10:00"})
    other = new_client()
    register_practitioner(other, username="drgarcia")
    assert other.delete(f"/availability/{slot.json()['id']}").status_code == 403
