from conftest import auth_headers


async def _bus(client, seed, **extra):
    response = await client.post(
        "/api/transport/buses",
        json={"number_plate": "KA-01-F-1234", "route_name": "Indiranagar", "pickup_time": "07:15", **extra},
        headers=auth_headers(seed.staff),
    )
    return response


async def test_staff_registers_and_parents_see_buses(client, seed):
    created = await _bus(client, seed)
    assert created.status_code == 201
    assert created.json()["has_started"] is False

    buses = (await client.get("/api/transport/buses", headers=auth_headers(seed.parent_user))).json()
    assert [b["number_plate"] for b in buses] == ["KA-01-F-1234"]
    other = (await client.get("/api/transport/buses", headers=auth_headers(seed.other_admin))).json()
    assert other == []


async def test_arrival_implies_departure(client, seed):
    bus = (await _bus(client, seed)).json()
    response = await client.put(
        f"/api/transport/buses/{bus['id']}", json={"has_arrived": True}, headers=auth_headers(seed.staff)
    )
    assert response.json()["has_arrived"] is True
    assert response.json()["has_started"] is True


async def test_times_must_be_hh_mm(client, seed):
    assert (await _bus(client, seed, pickup_time="7.15am")).status_code == 422
    assert (await _bus(client, seed, arrival_time="24:00")).status_code == 422


async def test_students_cannot_register_buses(client, seed):
    response = await client.post(
        "/api/transport/buses", json={"number_plate": "KA-02"}, headers=auth_headers(seed.student_user)
    )
    assert response.status_code == 403
