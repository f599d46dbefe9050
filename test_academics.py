from conftest import auth_headers


async def test_class_visibility_by_role(client, seed):
    admin = auth_headers(seed.school_admin)
    created = await client.post("/api/classes", json={"name": "Grade 9 B", "grade": "9", "sections": ["B"]}, headers=admin)
    assert created.status_code == 201

    assert len((await client.get("/api/classes", headers=admin)).json()) == 2
    teacher = (await client.get("/api/classes", headers=auth_headers(seed.teacher_user))).json()
    assert [c["name"] for c in teacher] == ["Grade 10 A"]
    student = (await client.get("/api/classes", headers=auth_headers(seed.student_user))).json()
    assert [c["name"] for c in student] == ["Grade 10 A"]
    parent = (await client.get("/api/classes", headers=auth_headers(seed.parent_user))).json()
    assert [c["name"] for c in parent] == ["Grade 10 A"]


async def test_class_update_and_delete(client, seed):
    admin = auth_headers(seed.school_admin)
    created = (await client.post("/api/classes", json={"name": "Grade 8"}, headers=admin)).json()
    renamed = await client.put(f"/api/classes/{created['id']}", json={"sections": ["A", "B"]}, headers=admin)
    assert renamed.json()["sections"] == ["A", "B"]

    assert (await client.delete(f"/api/classes/{created['id']}", headers=admin)).status_code == 200
    assert len((await client.get("/api/classes", headers=admin)).json()) == 1

    foreign = await client.put(
        f"/api/classes/{seed.school_class.id}", json={"name": "x"}, headers=auth_headers(seed.other_admin)
    )
    assert foreign.status_code == 404


async def test_teacher_sees_own_assignments(client, seed):
    mine = (await client.get("/api/teacher/classes", headers=auth_headers(seed.teacher_user))).json()
    assert mine == [{
        "id": mine[0]["id"],
        "class_id": str(seed.school_class.id),
        "class_name": "Grade 10 A",
        "subject_id": str(seed.subject.id),
        "subject_name": "Mathematics",
        "teacher_id": str(seed.teacher.id),
        "periods_per_week": 5,
    }]


async def test_subject_crud_and_assignment(client, seed):
    admin = auth_headers(seed.school_admin)
    subject = await client.post("/api/subjects", json={"name": "Physics", "code": "PHY"}, headers=admin)
    assert subject.status_code == 201

    assignment = await client.post(
        "/api/class-subjects",
        json={
            "class_id": str(seed.school_class.id),
            "subject_id": subject.json()["id"],
            "teacher_id": str(seed.teacher.id),
            "periods_per_week": 4,
        },
        headers=admin,
    )
    assert assignment.status_code == 201
    assert assignment.json()["subject_name"] == "Physics"

    listed = (await client.get(
        "/api/class-subjects", params={"class_id": str(seed.school_class.id)}, headers=admin
    )).json()
    assert sorted(a["subject_name"] for a in listed) == ["Mathematics", "Physics"]

    updated = await client.put(
        f"/api/class-subjects/{assignment.json()['id']}", json={"periods_per_week": 6}, headers=admin
    )
    assert updated.json()["periods_per_week"] == 6

    removed = await client.delete(f"/api/class-subjects/{assignment.json()['id']}", headers=admin)
    assert removed.status_code == 200

    renamed = await client.put(f"/api/subjects/{subject.json()['id']}", json={"name": "Applied Physics"}, headers=admin)
    assert renamed.json()["name"] == "Applied Physics"


async def test_assignment_rejects_other_school_subject(client, seed):
    response = await client.post(
        "/api/class-subjects",
        json={"class_id": str(seed.school_class.id), "subject_id": str(seed.subject.id)},
        headers=auth_headers(seed.other_admin),
    )
    assert response.status_code == 404


async def test_teachers_cannot_create_classes(client, seed):
    response = await client.post("/api/classes", json={"name": "Grade 7"}, headers=auth_headers(seed.teacher_user))
    assert response.status_code == 403
