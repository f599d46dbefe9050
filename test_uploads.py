import os

from conftest import auth_headers


async def test_image_upload_is_stored_and_served(client, seed, tmp_path):
    response = await client.post(
        "/api/upload",
        files={"image": ("logo.PNG", b"\x89PNG\r\n\x1a\nfake", "image/png")},
        headers=auth_headers(seed.teacher_user),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["url"] == f"/uploads/{data['filename']}"
    assert data["filename"].endswith(".png")
    assert data["size"] == 12
    assert os.path.exists(tmp_path / "uploads" / data["filename"])


async def test_disallowed_extension_is_rejected(client, seed, tmp_path):
    response = await client.post(
        "/api/upload",
        files={"image": ("run.exe", b"MZ", "application/octet-stream")},
        headers=auth_headers(seed.teacher_user),
    )
    assert response.status_code == 400
    assert response.json()["detail"]["message"] == "Only image, PDF, and audio files are allowed!"


async def test_multiple_upload_limit(client, seed):
    headers = auth_headers(seed.teacher_user)
    two = [("images", (f"p{i}.jpg", b"jpeg", "image/jpeg")) for i in range(2)]
    ok = await client.post("/api/upload-multiple", files=two, headers=headers)
    assert len(ok.json()["urls"]) == 2

    eleven = [("images", (f"p{i}.jpg", b"jpeg", "image/jpeg")) for i in range(11)]
    too_many = await client.post("/api/upload-multiple", files=eleven, headers=headers)
    assert too_many.status_code == 400


async def test_upload_requires_login(client, seed):
    response = await client.post("/api/upload", files={"image": ("a.png", b"x", "image/png")})
    assert response.status_code == 401
