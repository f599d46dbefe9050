from conftest import auth_headers


async def test_health_endpoints(client):
    response = await client.get("/api/health")
    assert response.json()["status"] == "ok"

    db = await client.get("/api/db/health")
    assert db.status_code == 200
    assert db.json()["checks"] == {"database": "ok", "cache": "unavailable"}


async def test_super_admin_manages_schools(client, seed):
    headers = auth_headers(seed.admin)
    created = await client.post(
        "/api/schools",
        json={"name": "Hillside Public School", "code": "hps-1", "latitude": 13.0, "longitude": 77.6, "radius_meters": 150},
        headers=headers,
    )
    assert created.status_code == 201
    assert created.json()["code"] == "HPS-1"

    duplicate = await client.post("/api/schools", json={"name": "Copy", "code": "GFH"}, headers=headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["field"] == "code"

    names = [s["name"] for s in (await client.get("/api/schools", headers=headers)).json()]
    assert names == ["Greenfield High", "Hillside Public School", "Riverside Academy"]


async def test_geofence_coordinates_come_in_pairs(client, seed):
    response = await client.post(
        "/api/schools", json={"name": "Lakeside", "code": "LKS", "latitude": 12.0}, headers=auth_headers(seed.admin)
    )
    assert response.status_code == 422


async def test_school_admin_edits_only_own_school(client, seed):
    headers = auth_headers(seed.school_admin)
    own = await client.put(f"/api/schools/{seed.school.id}", json={"radius_meters": 500}, headers=headers)
    assert own.json()["radius_meters"] == 500

    other = await client.put(f"/api/schools/{seed.other_school.id}", json={"name": "Mine now"}, headers=headers)
    assert other.status_code == 403

    lookup = await client.get(f"/api/classes/{seed.school_class.id}/school", headers=auth_headers(seed.teacher_user))
    assert lookup.json()["code"] == "GFH"


async def test_school_logo_upload(client, seed):
    response = await client.post(
        "/api/schools/me/logo",
        files={"logo": ("crest.png", b"png-bytes", "image/png")},
        headers=auth_headers(seed.school_admin),
    )
    assert response.json()["logo"].startswith("/uploads/")

    pdf = await client.post(
        "/api/schools/me/logo",
        files={"logo": ("crest.pdf", b"%PDF", "application/pdf")},
        headers=auth_headers(seed.school_admin),
    )
    assert pdf.status_code == 400


async def test_create_student_with_account(client, seed):
    headers = auth_headers(seed.school_admin)
    response = await client.post(
        "/api/students",
        json={
            "name": "Kabir Menon",
            "email": "Kabir@Greenfield.edu",
            "password": "welcome1",
            "class_id": str(seed.school_class.id),
            "admission_number": "ADM003",
            "grade": "10",
            "section": "A",
        },
        headers=headers,
    )
    assert response.status_code == 201
    assert response.json()["email"] == "kabir@greenfield.edu"
    assert response.json()["class_name"] == "Grade 10 A"

    login = await client.post("/api/auth/login", json={"email": "kabir@greenfield.edu", "password": "welcome1"})
    assert login.status_code == 200

    duplicate = await client.post(
        "/api/students",
        json={"name": "Kabir Again", "email": "kabir@greenfield.edu", "password": "welcome1"},
        headers=headers,
    )
    assert duplicate.status_code == 409


async def test_student_class_must_belong_to_school(client, seed):
    response = await client.post(
        "/api/students",
        json={
            "name": "Tom Hill Jr",
            "email": "junior@riverside.edu",
            "password": "welcome1",
            "class_id": str(seed.school_class.id),
        },
        headers=auth_headers(seed.other_admin),
    )
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "class_id"


async def test_student_list_paginates_and_searches(client, seed):
    headers = auth_headers(seed.teacher_user)
    page = (await client.get("/api/students", params={"size": 1}, headers=headers)).json()
    assert page["total"] == 2
    assert [s["name"] for s in page["items"]] == ["Arjun Nair"]
    assert page["meta"]["total_pages"] == 2

    found = (await client.get("/api/students", params={"search": "diya"}, headers=headers)).json()
    assert [s["admission_number"] for s in found["items"]] == ["ADM002"]

    denied = await client.get("/api/students", headers=auth_headers(seed.parent_user))
    assert denied.status_code == 403


async def test_student_detail_visibility(client, seed):
    url = f"/api/students/{seed.student.id}"
    assert (await client.get(url, headers=auth_headers(seed.student_user))).status_code == 200
    assert (await client.get(url, headers=auth_headers(seed.parent_user))).status_code == 200
    assert (await client.get(url, headers=auth_headers(seed.student2_user))).status_code == 403
    assert (await client.get(url, headers=auth_headers(seed.other_admin))).status_code == 404


async def test_update_and_remove_student(client, seed):
    headers = auth_headers(seed.school_admin)
    updated = await client.put(
        f"/api/students/{seed.student2.id}", json={"name": "Diya S. Shah", "section": "B"}, headers=headers
    )
    assert updated.json()["name"] == "Diya S. Shah"
    assert updated.json()["section"] == "B"

    removed = await client.delete(f"/api/students/{seed.student2.id}", headers=headers)
    assert removed.status_code == 200
    login = await client.post("/api/auth/login", json={"email": "diya@greenfield.edu", "password": "secret123"})
    assert login.status_code == 403


async def test_teachers_and_parents(client, seed):
    headers = auth_headers(seed.school_admin)
    teacher = await client.post(
        "/api/teachers",
        json={"name": "Rahul Das", "email": "rahul@greenfield.edu", "password": "welcome1", "qualification": "B.Ed"},
        headers=headers,
    )
    assert teacher.status_code == 201
    names = sorted(t["name"] for t in (await client.get("/api/teachers", headers=headers)).json())
    assert names == ["Meera Iyer", "Rahul Das"]

    parent = await client.post(
        "/api/parents",
        json={
            "name": "Nikhil Shah",
            "email": "nikhil@greenfield.edu",
            "password": "welcome1",
            "student_ids": [str(seed.student2.id)],
        },
        headers=headers,
    )
    assert parent.status_code == 201
    assert [c["name"] for c in parent.json()["children"]] == ["Diya Shah"]

    parent_id = parent.json()["id"]
    link = await client.post(
        f"/api/parents/{parent_id}/students",
        json={"student_id": str(seed.student.id), "relationship_type": "uncle"},
        headers=headers,
    )
    assert link.status_code == 201
    unlink = await client.delete(f"/api/parents/{parent_id}/students/{seed.student.id}", headers=headers)
    assert unlink.status_code == 200
    again = await client.delete(f"/api/parents/{parent_id}/students/{seed.student.id}", headers=headers)
    assert again.status_code == 404


async def test_users_and_stats(client, seed):
    teachers = (await client.get(
        "/api/users", params={"role": "teacher"}, headers=auth_headers(seed.school_admin)
    )).json()
    assert [u["email"] for u in teachers] == ["meera@greenfield.edu"]

    school_stats = (await client.get("/api/stats", headers=auth_headers(seed.school_admin))).json()
    assert school_stats == {"students": 2, "teachers": 1, "classes": 1, "parents": 1}

    global_stats = (await client.get("/api/stats", headers=auth_headers(seed.admin))).json()
    assert global_stats["schools"] == 2
    assert global_stats["users"] == 8


async def test_parent_portal_shows_only_linked_children(client, seed):
    headers = auth_headers(seed.parent_user)
    children = (await client.get("/api/parents/children", headers=headers)).json()
    assert [c["name"] for c in children] == ["Arjun Nair"]

    overview = (await client.get(f"/api/parents/children/{seed.student.id}/overview", headers=headers)).json()
    assert overview["attendance"] == {"total": 0, "present": 0, "percentage": 0}
    assert overview["fees"]["status"] == "Not Paid"
    assert overview["results"] == []

    fees = await client.get(f"/api/parents/children/{seed.student.id}/fees", headers=headers)
    assert fees.json()["payments"] == []

    other_child = await client.get(f"/api/parents/children/{seed.student2.id}/attendance", headers=headers)
    assert other_child.status_code == 404

    teacher = await client.get("/api/parents/children", headers=auth_headers(seed.teacher_user))
    assert teacher.status_code == 403
