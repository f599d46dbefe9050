from conftest import auth_headers


async def _room(client, headers, capacity=1):
    hostel = await client.post("/api/hostels", json={"name": "Tagore House", "type": "BOYS"}, headers=headers)
    assert hostel.status_code == 201
    room = await client.post(
        f"/api/hostels/{hostel.json()['id']}/rooms",
        json={"room_number": "101", "floor": 1, "capacity": capacity},
        headers=headers,
    )
    assert room.status_code == 201
    return hostel.json()["id"], room.json()["id"]


async def test_full_room_rejects_allocation(client, seed):
    headers = auth_headers(seed.staff)
    hostel_id, room_id = await _room(client, headers, capacity=1)

    first = await client.post(
        "/api/hostels/allocations",
        json={"room_id": room_id, "student_id": str(seed.student.id), "start_date": "2026-06-01"},
        headers=headers,
    )
    assert first.status_code == 201
    assert first.json()["status"] == "ACTIVE"

    second = await client.post(
        "/api/hostels/allocations",
        json={"room_id": room_id, "student_id": str(seed.student2.id), "start_date": "2026-06-01"},
        headers=headers,
    )
    assert second.status_code == 400
    assert second.json()["detail"]["message"] == "Room is full"

    hostel = (await client.get(f"/api/hostels/{hostel_id}", headers=headers)).json()
    assert hostel["capacity"] == 1
    assert hostel["occupied"] == 1
    assert hostel["rooms"][0]["allocations"][0]["student_name"] == "Arjun Nair"


async def test_vacating_frees_the_bed(client, seed):
    headers = auth_headers(seed.staff)
    _, room_id = await _room(client, headers, capacity=1)

    first = await client.post(
        "/api/hostels/allocations",
        json={"room_id": room_id, "student_id": str(seed.student.id), "start_date": "2026-06-01"},
        headers=headers,
    )
    vacated = await client.put(f"/api/hostels/allocations/{first.json()['id']}/vacate", headers=headers)
    assert vacated.status_code == 200
    assert vacated.json()["status"] == "VACATED"
    assert vacated.json()["end_date"] is not None

    again = await client.put(f"/api/hostels/allocations/{first.json()['id']}/vacate", headers=headers)
    assert again.status_code == 400

    second = await client.post(
        "/api/hostels/allocations",
        json={"room_id": room_id, "student_id": str(seed.student2.id), "start_date": "2026-06-02"},
        headers=headers,
    )
    assert second.status_code == 201


async def test_student_holds_one_active_allocation(client, seed):
    headers = auth_headers(seed.staff)
    _, room_id = await _room(client, headers, capacity=3)
    body = {"room_id": room_id, "student_id": str(seed.student.id), "start_date": "2026-06-01"}

    assert (await client.post("/api/hostels/allocations", json=body, headers=headers)).status_code == 201
    duplicate = await client.post("/api/hostels/allocations", json=body, headers=headers)
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"]["field"] == "student_id"


async def test_capacity_cannot_drop_below_occupancy(client, seed):
    headers = auth_headers(seed.staff)
    _, room_id = await _room(client, headers, capacity=2)
    for student in (seed.student, seed.student2):
        response = await client.post(
            "/api/hostels/allocations",
            json={"room_id": room_id, "student_id": str(student.id), "start_date": "2026-06-01"},
            headers=headers,
        )
        assert response.status_code == 201

    shrink = await client.put(f"/api/hostels/rooms/{room_id}", json={"capacity": 1}, headers=headers)
    assert shrink.status_code == 400

    delete = await client.delete(f"/api/hostels/rooms/{room_id}", headers=headers)
    assert delete.status_code == 400


async def test_zero_capacity_room_is_invalid(client, seed):
    headers = auth_headers(seed.staff)
    hostel = await client.post("/api/hostels", json={"name": "Annexe"}, headers=headers)
    response = await client.post(
        f"/api/hostels/{hostel.json()['id']}/rooms",
        json={"room_number": "1", "capacity": 0},
        headers=headers,
    )
    assert response.status_code == 422


async def test_other_school_cannot_see_rooms(client, seed):
    _, room_id = await _room(client, auth_headers(seed.staff))
    response = await client.put(
        f"/api/hostels/rooms/{room_id}",
        json={"capacity": 4},
        headers=auth_headers(seed.other_admin),
    )
    assert response.status_code == 404


async def test_teacher_cannot_manage_hostels(client, seed):
    response = await client.get("/api/hostels", headers=auth_headers(seed.teacher_user))
    assert response.status_code == 403
