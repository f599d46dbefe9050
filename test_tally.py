from conftest import auth_headers
from school_erp.utils.tally import extract_list, normalize_ledger, normalize_sale


def test_extract_list_unwraps_envelopes():
    bare = [{"NAME": "Cash"}]
    wrapped = {"data": [{"NAME": "Cash"}]}
    enveloped = {"ENVELOPE": {"BODY": {"DATA": {"COLLECTION": {"LEDGER": [{"@NAME": "Cash"}]}}}}}
    single = {"ENVELOPE": {"BODY": {"DATA": {"COLLECTION": {"LEDGER": {"@NAME": "Cash"}}}}}}

    assert extract_list(bare, "ledger") == [{"NAME": "Cash"}]
    assert extract_list(wrapped, "ledger") == [{"NAME": "Cash"}]
    assert extract_list(enveloped, "ledger") == [{"@NAME": "Cash"}]
    assert extract_list(single, "ledger") == [{"@NAME": "Cash"}]
    assert extract_list(None, "ledger") == []


def test_extract_list_ignores_empty_payloads():
    assert extract_list({}, "company") == []
    assert extract_list({"ENVELOPE": {"BODY": {}}}, "company") == []
    assert extract_list({"data": {}}, "ledger") == []
    assert extract_list([{}, {"NAME": "Cash"}], "ledger") == [{"NAME": "Cash"}]


def test_normalizers_read_text_nodes():
    ledger = normalize_ledger({
        "@NAME": "Arjun Nair (ADM001)",
        "PARENT": {"#text": "Sundry Debtors"},
        "OPENINGBALANCE": "1,200.00",
        "CLOSINGBALANCE": {"$": "-300"},
    })
    assert ledger == {
        "name": "Arjun Nair (ADM001)",
        "parent": "Sundry Debtors",
        "opening_balance": 1200.0,
        "closing_balance": -300.0,
    }

    sale = normalize_sale({"VOUCHERNUMBER": ["17"], "DATE": "20260210", "PARTYLEDGERNAME": "Cash", "AMOUNT": "-500"})
    assert sale["voucher_number"] == "17"
    assert sale["amount"] == 500.0
    assert sale["narration"] is None


async def test_read_routes_normalize_bridge_data(client, seed, tally_bridge):
    tally_bridge.routes[("GET", "/health")] = {"status": "up"}
    tally_bridge.routes[("GET", "/companies")] = {"data": [{"NAME": "Greenfield Trust", "GUID": "g-1"}]}
    tally_bridge.routes[("GET", "/ledgers")] = {"ledger": [{"name": "School Fees", "parent": "Sales Accounts"}]}
    headers = auth_headers(seed.school_admin)

    health = await client.get("/api/tally/health", headers=headers)
    assert health.json() == {"status": "ok", "bridge": {"status": "up"}}

    companies = (await client.get("/api/tally/companies", headers=headers)).json()
    assert companies[0]["name"] == "Greenfield Trust"

    ledgers = await client.get("/api/tally/ledgers", params={"company": "Greenfield Trust"}, headers=headers)
    assert ledgers.json()[0]["parent"] == "Sales Accounts"
    assert tally_bridge.requests[-1].url.params["company"] == "Greenfield Trust"


async def test_bridge_down_is_a_bad_gateway(client, seed, tally_bridge):
    tally_bridge.down = True
    response = await client.get("/api/tally/companies", headers=auth_headers(seed.school_admin))
    assert response.status_code == 502
    assert response.json()["detail"]["error"] == "Tally unavailable"


async def test_push_payment_marks_it_synced(client, seed, tally_bridge):
    tally_bridge.routes[("POST", "/vouchers/sales")] = {"created": 1}
    headers = auth_headers(seed.school_admin)
    payment = (await client.post(
        "/api/finance/payments",
        json={"student_id": str(seed.student.id), "amount": 500, "date": "2026-02-10", "reference": "RCPT-1"},
        headers=headers,
    )).json()

    pushed = await client.post("/api/tally/sales", json={"payment_id": payment["id"]}, headers=headers)
    assert pushed.status_code == 201
    voucher = pushed.json()["voucher"]
    assert voucher["party"] == "Arjun Nair (ADM001)"
    assert voucher["amount"] == 500
    assert voucher["reference"] == "RCPT-1"

    rows = (await client.get("/api/finance/students", headers=headers)).json()
    arjun = next(r for r in rows if r["name"] == "Arjun Nair")
    assert arjun["payments"][0]["synced_to_tally"] is True


async def test_failed_push_leaves_payment_unsynced(client, seed, tally_bridge):
    headers = auth_headers(seed.school_admin)
    payment = (await client.post(
        "/api/finance/payments",
        json={"student_id": str(seed.student.id), "amount": 500},
        headers=headers,
    )).json()

    # no route registered, so the bridge answers 404
    pushed = await client.post("/api/tally/sales", json={"payment_id": payment["id"]}, headers=headers)
    assert pushed.status_code == 502

    rows = (await client.get("/api/finance/students", headers=headers)).json()
    arjun = next(r for r in rows if r["name"] == "Arjun Nair")
    assert arjun["payments"][0]["synced_to_tally"] is False


async def test_auto_ledger_skips_existing_parties(client, seed, tally_bridge):
    tally_bridge.routes[("GET", "/ledgers")] = [{"NAME": "Arjun Nair (ADM001)"}]
    tally_bridge.routes[("POST", "/ledgers")] = {"created": 1}

    response = await client.post("/api/tally/auto-ledger", json={}, headers=auth_headers(seed.school_admin))
    assert response.json() == {"created": ["Diya Shah (ADM002)"], "skipped": 1}
    posted = [r for r in tally_bridge.requests if r.method == "POST"]
    assert len(posted) == 1


async def test_tally_requires_finance_rights(client, seed):
    response = await client.get("/api/tally/health", headers=auth_headers(seed.staff))
    assert response.status_code == 403
