from conftest import auth_headers


async def _book(client, headers, quantity=1):
    response = await client.post(
        "/api/books",
        json={"title": "Wings of Fire", "author": "A. P. J. Abdul Kalam", "isbn": "9788173711466", "quantity": quantity},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


async def test_issue_and_return_cycle(client, seed):
    headers = auth_headers(seed.staff)
    book = await _book(client, headers, quantity=1)
    assert book["available"] == 1

    issued = await client.post(
        "/api/books/issue",
        json={"book_id": book["id"], "student_id": str(seed.student.id), "due_date": "2026-11-15T00:00:00"},
        headers=headers,
    )
    assert issued.status_code == 201
    assert issued.json()["status"] == "ISSUED"

    unavailable = await client.post(
        "/api/books/issue",
        json={"book_id": book["id"], "student_id": str(seed.student2.id)},
        headers=headers,
    )
    assert unavailable.status_code == 400
    assert unavailable.json()["detail"]["message"] == "Book not available"

    outstanding = (await client.get("/api/books/issued", headers=headers)).json()
    assert [i["student_name"] for i in outstanding] == ["Arjun Nair"]

    returned = await client.post("/api/books/return", json={"issue_id": issued.json()["id"]}, headers=headers)
    assert returned.status_code == 200
    assert returned.json()["status"] == "RETURNED"

    twice = await client.post("/api/books/return", json={"issue_id": issued.json()["id"]}, headers=headers)
    assert twice.status_code == 400

    books = (await client.get("/api/books", headers=headers)).json()
    assert books[0]["available"] == 1


async def test_quantity_cannot_drop_below_issued_copies(client, seed):
    headers = auth_headers(seed.staff)
    book = await _book(client, headers, quantity=2)
    await client.post(
        "/api/books/issue",
        json={"book_id": book["id"], "student_id": str(seed.student.id)},
        headers=headers,
    )

    shrink = await client.put(f"/api/books/{book['id']}", json={"quantity": 0}, headers=headers)
    assert shrink.status_code == 400

    grow = await client.put(f"/api/books/{book['id']}", json={"quantity": 5}, headers=headers)
    assert grow.json()["quantity"] == 5
    assert grow.json()["available"] == 4


async def test_search_is_case_insensitive(client, seed):
    headers = auth_headers(seed.staff)
    await _book(client, headers)
    await client.post("/api/books", json={"title": "Malgudi Days", "author": "R. K. Narayan"}, headers=headers)

    found = (await client.get("/api/books", params={"search": "narayan"}, headers=auth_headers(seed.student_user))).json()
    assert [b["title"] for b in found] == ["Malgudi Days"]


async def test_students_cannot_issue_books(client, seed):
    book = await _book(client, auth_headers(seed.staff))
    response = await client.post(
        "/api/books/issue",
        json={"book_id": book["id"], "student_id": str(seed.student.id)},
        headers=auth_headers(seed.student_user),
    )
    assert response.status_code == 403


async def test_deleted_book_disappears(client, seed):
    headers = auth_headers(seed.staff)
    book = await _book(client, headers)
    assert (await client.delete(f"/api/books/{book['id']}", headers=headers)).status_code == 200
    assert (await client.get("/api/books", headers=headers)).json() == []
