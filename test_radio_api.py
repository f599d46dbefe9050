import io
from datetime import datetime, timedelta, timezone

from pypdf import PdfWriter

from conftest import auth_headers
from school_erp.utils.radio_schedule import format_timestamp


def _starts_ago(seconds: int) -> str:
    return format_timestamp(datetime.now(timezone.utc) - timedelta(seconds=seconds))


async def _create_text_program(client, user, scheduled_for, duration="300", content="Good morning school " * 30):
    return await client.post(
        "/api/radio/programs",
        data={
            "title": "Morning Assembly",
            "scheduledFor": scheduled_for,
            "durationSeconds": duration,
            "content": content,
        },
        headers=auth_headers(user),
    )


async def test_text_program_goes_live(client, seed, radio_store):
    created = await _create_text_program(client, seed.school_admin, _starts_ago(60))
    assert created.status_code == 201
    program = created.json()
    assert program["fileType"] == "TEXT"
    assert program["durationSeconds"] == 300
    assert program["status"] == "SCHEDULED"

    stored = await radio_store.get_programs(seed.school.id)
    assert [p["id"] for p in stored] == [program["id"]]

    headers = auth_headers(seed.student_user)
    current = (await client.get("/api/radio/current", headers=headers)).json()
    assert current["id"] == program["id"]
    assert 55 <= current["currentOffset"] <= 120

    live = (await client.get("/api/radio/live", headers=headers)).json()
    assert [p["id"] for p in live] == [program["id"]]

    playback = (await client.get(f"/api/radio/programs/{program['id']}/playback", headers=headers)).json()
    assert playback["mode"] == "speech"
    assert playback["programId"] == program["id"]
    assert playback["startChunk"] >= 1


async def test_future_program_is_not_on_air(client, seed):
    await _create_text_program(client, seed.school_admin, _starts_ago(-3600))
    headers = auth_headers(seed.student_user)
    assert (await client.get("/api/radio/current", headers=headers)).json() is None
    assert (await client.get("/api/radio/live", headers=headers)).json() == []

    schedule = (await client.get("/api/radio/schedule", headers=headers)).json()
    assert len(schedule) == 1


async def test_programs_are_scoped_to_school(client, seed):
    await _create_text_program(client, seed.school_admin, _starts_ago(30))
    other = await client.get("/api/radio/live", headers=auth_headers(seed.other_admin))
    assert other.json() == []


async def test_schedule_filters_by_date(client, seed):
    await _create_text_program(client, seed.school_admin, "2026-03-01T08:00:00Z")
    await _create_text_program(client, seed.school_admin, "2026-03-02T08:00:00Z")
    headers = auth_headers(seed.teacher_user)

    day = await client.get("/api/radio/programs", params={"date": "2026-03-02"}, headers=headers)
    assert [p["scheduledFor"] for p in day.json()] == ["2026-03-02T08:00:00Z"]


async def test_teacher_needs_radio_department(client, seed, department_store):
    denied = await _create_text_program(client, seed.teacher_user, _starts_ago(0))
    assert denied.status_code == 403

    await department_store.set_staff("radio", seed.school.id, [str(seed.teacher_user.id)])
    allowed = await _create_text_program(client, seed.teacher_user, _starts_ago(0))
    assert allowed.status_code == 201


async def test_invalid_input_is_rejected(client, seed):
    bad_time = await _create_text_program(client, seed.school_admin, "next tuesday")
    assert bad_time.status_code == 400
    assert bad_time.json()["detail"]["field"] == "scheduledFor"

    bad_duration = await _create_text_program(client, seed.school_admin, _starts_ago(0), duration="-5")
    assert bad_duration.status_code == 400
    assert bad_duration.json()["detail"]["field"] == "durationSeconds"

    no_content = await _create_text_program(client, seed.school_admin, _starts_ago(0), content="   ")
    assert no_content.status_code == 400


async def test_audio_upload_plays_by_seeking(client, seed):
    response = await client.post(
        "/api/radio/programs",
        data={"title": "Anthem", "scheduledFor": _starts_ago(20), "durationSeconds": "90"},
        files={"file": ("anthem.mp3", b"ID3fake-audio-bytes", "audio/mpeg")},
        headers=auth_headers(seed.school_admin),
    )
    assert response.status_code == 201
    program = response.json()
    assert program["fileType"] == "AUDIO"
    assert program["fileUrl"].startswith("/uploads/")

    playback = await client.get(
        f"/api/radio/programs/{program['id']}/playback", headers=auth_headers(seed.student_user)
    )
    assert playback.json()["mode"] == "audio"
    assert 15 <= playback.json()["seekSeconds"] <= 60


async def test_pdf_without_text_is_rejected(client, seed):
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)

    response = await client.post(
        "/api/radio/programs",
        data={"title": "Blank", "scheduledFor": _starts_ago(0)},
        files={"file": ("blank.pdf", buffer.getvalue(), "application/pdf")},
        headers=auth_headers(seed.school_admin),
    )
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "file"


async def test_update_and_delete(client, seed):
    program = (await _create_text_program(client, seed.school_admin, _starts_ago(0))).json()
    headers = auth_headers(seed.school_admin)

    updated = await client.put(
        f"/api/radio/programs/{program['id']}",
        json={"title": "Assembly", "durationSeconds": 120, "scheduledFor": "2026-05-01T09:30:00+05:30"},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["title"] == "Assembly"
    assert updated.json()["durationSeconds"] == 120
    assert updated.json()["scheduledFor"] == "2026-05-01T04:00:00Z"

    deleted = await client.delete(f"/api/radio/programs/{program['id']}", headers=headers)
    assert deleted.json() == {"message": "Program deleted successfully"}
    missing = await client.delete(f"/api/radio/programs/{program['id']}", headers=headers)
    assert missing.status_code == 404

    playback = await client.get(f"/api/radio/programs/{program['id']}/playback", headers=headers)
    assert playback.status_code == 404


async def test_students_cannot_delete(client, seed):
    program = (await _create_text_program(client, seed.school_admin, _starts_ago(0))).json()
    response = await client.delete(f"/api/radio/programs/{program['id']}", headers=auth_headers(seed.student_user))
    assert response.status_code == 403


async def test_super_admin_must_name_a_school(client, seed):
    headers = auth_headers(seed.admin)
    assert (await client.get("/api/radio/live", headers=headers)).status_code == 400
    scoped = await client.get("/api/radio/live", params={"school_id": str(seed.school.id)}, headers=headers)
    assert scoped.status_code == 200


async def _create_audio_program(client, user):
    response = await client.post(
        "/api/radio/programs",
        data={"title": "Anthem", "scheduledFor": _starts_ago(0), "durationSeconds": "90"},
        files={"file": ("anthem.mp3", b"ID3fake-audio-bytes", "audio/mpeg")},
        headers=auth_headers(user),
    )
    assert response.status_code == 201
    return response.json()


async def test_new_content_turns_program_into_text(client, seed, radio_store):
    program = await _create_audio_program(client, seed.school_admin)
    response = await client.put(
        f"/api/radio/programs/{program['id']}",
        json={"content": "Now read this text"},
        headers=auth_headers(seed.school_admin),
    )
    assert response.status_code == 200
    assert response.json()["fileType"] == "TEXT"
    assert response.json()["fileUrl"] is None
    assert response.json()["content"] == "Now read this text"

    stored = await radio_store.get_programs(seed.school.id)
    assert stored[0]["content"] == "Now read this text"

    blank = await client.put(
        f"/api/radio/programs/{program['id']}", json={"content": "  "}, headers=auth_headers(seed.school_admin)
    )
    assert blank.status_code == 400
    assert blank.json()["detail"]["field"] == "content"


async def test_file_can_be_replaced_with_multipart(client, seed):
    program = (await _create_text_program(client, seed.school_admin, _starts_ago(0))).json()
    headers = auth_headers(seed.school_admin)

    response = await client.put(
        f"/api/radio/programs/{program['id']}",
        data={"title": "Anthem", "durationSeconds": "60"},
        files={"file": ("anthem.mp3", b"ID3fake-audio-bytes", "audio/mpeg")},
        headers=headers,
    )
    assert response.status_code == 200
    updated = response.json()
    assert updated["fileType"] == "AUDIO"
    assert updated["fileUrl"].startswith("/uploads/")
    assert updated["title"] == "Anthem"
    assert updated["durationSeconds"] == 60


async def test_unreadable_pdf_does_not_replace_media(client, seed, radio_store):
    program = (await _create_text_program(client, seed.school_admin, _starts_ago(0), content="Keep me")).json()
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)

    response = await client.put(
        f"/api/radio/programs/{program['id']}",
        files={"file": ("blank.pdf", buffer.getvalue(), "application/pdf")},
        headers=auth_headers(seed.school_admin),
    )
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "file"

    stored = await radio_store.get_programs(seed.school.id)
    assert (stored[0]["fileType"], stored[0]["content"]) == ("TEXT", "Keep me")
