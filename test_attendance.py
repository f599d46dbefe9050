from conftest import auth_headers

INSIDE = {"latitude": 12.9720, "longitude": 77.5950}
OUTSIDE = {"latitude": 12.9816, "longitude": 77.5946}


def _roll(seed, day="2026-10-05", **extra):
    return {
        "class_id": str(seed.school_class.id),
        "date": day,
        "records": [
            {"student_id": str(seed.student.id), "status": "p"},
            {"student_id": str(seed.student2.id), "status": "absent"},
        ],
        **extra,
    }


async def test_teacher_marks_within_geofence(client, seed):
    headers = auth_headers(seed.teacher_user)
    response = await client.post("/api/attendance", json=_roll(seed, **INSIDE), headers=headers)
    assert response.status_code == 200
    statuses = {r["student_name"]: r["status"] for r in response.json()["session"]["records"]}
    assert statuses == {"Arjun Nair": "present", "Diya Shah": "absent"}

    fetched = await client.get(
        "/api/attendance",
        params={"class_id": str(seed.school_class.id), "date": "2026-10-05"},
        headers=headers,
    )
    assert len(fetched.json()["records"]) == 2


async def test_marking_outside_geofence_is_forbidden(client, seed):
    response = await client.post(
        "/api/attendance", json=_roll(seed, **OUTSIDE), headers=auth_headers(seed.teacher_user)
    )
    assert response.status_code == 403
    assert "premises" in response.json()["detail"]


async def test_geofence_check_reports_distance(client, seed):
    body = {"class_id": str(seed.school_class.id), **OUTSIDE}
    response = await client.post("/api/attendance/geofence-check", json=body, headers=auth_headers(seed.teacher_user))
    data = response.json()
    assert data["allowed"] is False
    assert data["configured"] is True
    assert data["distance_meters"] > 1000

    foreign = await client.post("/api/attendance/geofence-check", json=body, headers=auth_headers(seed.other_admin))
    assert foreign.status_code == 403


async def test_remarking_replaces_the_day(client, seed):
    headers = auth_headers(seed.teacher_user)
    await client.post("/api/attendance", json=_roll(seed), headers=headers)

    again = _roll(seed)
    again["records"] = [{"student_id": str(seed.student.id), "status": "a"}]
    response = await client.post("/api/attendance", json=again, headers=headers)
    assert [r["status"] for r in response.json()["session"]["records"]] == ["absent"]


async def test_invalid_status_and_foreign_student(client, seed):
    headers = auth_headers(seed.teacher_user)
    bad = _roll(seed)
    bad["records"][0]["status"] = "late"
    response = await client.post("/api/attendance", json=bad, headers=headers)
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "status"

    wrong_grade = await client.post("/api/attendance", json=_roll(seed, grade="9"), headers=headers)
    assert wrong_grade.status_code == 400


async def test_student_sees_own_percentage(client, seed):
    headers = auth_headers(seed.teacher_user)
    await client.post("/api/attendance", json=_roll(seed, day="2026-10-05"), headers=headers)
    second = _roll(seed, day="2026-10-06")
    second["records"][0]["status"] = "a"
    await client.post("/api/attendance", json=second, headers=headers)
    await client.post("/api/attendance", json=_roll(seed, day="2026-10-07"), headers=headers)

    mine = (await client.get("/api/attendance/self", headers=auth_headers(seed.student_user))).json()
    assert mine["total"] == 3
    assert mine["present"] == 2
    assert mine["percentage"] == 67
    assert mine["records"][0]["date"] == "2026-10-07"


async def test_unassigned_teacher_is_refused(client, seed, session_factory):
    from school_erp.models import ClassSubject
    from sqlalchemy import delete

    async with session_factory() as session:
        await session.execute(delete(ClassSubject))
        await session.commit()

    response = await client.post("/api/attendance", json=_roll(seed), headers=auth_headers(seed.teacher_user))
    assert response.status_code == 403


async def test_first_roll_of_a_day_is_stored(client, seed, session_factory):
    from school_erp.models import AttendanceRecord
    from sqlalchemy import func, select

    response = await client.post(
        "/api/attendance", json=_roll(seed, day="2026-11-02"), headers=auth_headers(seed.teacher_user)
    )
    assert response.status_code == 200
    assert response.json()["session"]["date"] == "2026-11-02"
    assert len(response.json()["session"]["records"]) == 2

    async with session_factory() as session:
        stored = (await session.execute(select(func.count()).select_from(AttendanceRecord))).scalar()
    assert stored == 2
