import pytest

TENANT = "GST07PQRSX5678K1Z2"
SUPPLIER = {"X-Tenant-Id": TENANT, "X-Supplier-Id": "sup-api"}
ADMIN = {"X-Admin-Id": "adm-api"}

MALA = {"product_category": "RUDRAKSHA_MALA", "mukhi_type": "5_MUKHI", "origin": "NEPAL"}


async def _set_code(client, code="zx9"):
    r = await client.put(f"/v1/admin/tenants/{TENANT}/sku-code", json={"code": code}, headers=ADMIN)
    assert r.status_code == 200, r.text
    return r.json()["code"]


@pytest.mark.asyncio
async def test_listing_lifecycle_over_http(client):
    assert await _set_code(client) == "ZX9"

    r = await client.post("/v1/supplier/rudraksha/listings", headers=SUPPLIER)
    assert r.status_code == 201, r.text
    sku = r.json()["sku_id"]
    assert sku == "8165RDZX9001"
    assert r.headers["ETag"] == '"1"'

    body = {"attributes": MALA, "tags": ["Red"], "pricing": {"offer_price": 500}}
    r = await client.put(f"/v1/supplier/rudraksha/listings/{sku}", json=body, headers={**SUPPLIER, "If-Match": '"1"'})
    assert r.status_code == 200, r.text
    assert r.headers["ETag"] == '"2"'
    assert r.json()["title"] == "5 Mukhi Nepal Rudraksha Mala"

    r = await client.put(f"/v1/supplier/rudraksha/listings/{sku}", json=body, headers={**SUPPLIER, "If-Match": '"1"'})
    assert r.status_code == 409
    err = r.json()
    assert err["code"] == "version_conflict"
    assert err["details"][0] == {"sku_id": sku, "transition": "save_draft"}

    r = await client.post(
        f"/v1/supplier/rudraksha/listings/{sku}/media",
        data={"kind": "img"},
        files={"file": ("front.jpg", b"\xff\xd8jpeg", "image/jpeg")},
        headers=SUPPLIER,
    )
    assert r.status_code == 201, r.text
    asset = r.json()["asset"]
    assert asset["kind"] == "IMG" and asset["order"] == 0
    assert asset["url"].startswith(f"http://test/media/global/rudraksha/{sku}/images/{sku}_IMG_")

    r = await client.post(f"/v1/supplier/rudraksha/listings/{sku}/submit", headers=SUPPLIER)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "PENDING"

    r = await client.get("/v1/admin/rudraksha/queue", headers=ADMIN)
    assert [e["sku_id"] for e in r.json()] == [sku]

    r = await client.post(f"/v1/admin/rudraksha/listings/{sku}/approve", json={}, headers=ADMIN)
    assert r.status_code == 200, r.text
    assert r.json()["public_price"] == 600

    r = await client.get("/v1/catalog/rudraksha")
    items = r.json()
    assert [i["sku_id"] for i in items] == [sku]
    assert items[0]["price"] == 600 and items[0]["price_on_request"] is False
    assert "supplier_id" not in items[0] and "margin_pct" not in items[0]

    r = await client.get("/v1/catalog/rudraksha/by/tag/red")
    assert [i["sku_id"] for i in r.json()] == [sku]

    r = await client.get(f"/v1/catalog/rudraksha/{sku}")
    assert r.json()["cover_url"] == asset["url"]

    r = await client.post(f"/v1/admin/rudraksha/listings/{sku}/send-back", json={"reason": ""}, headers=ADMIN)
    assert r.status_code == 422
    assert r.json()["code"] == "validation_failed"

    r = await client.post(f"/v1/admin/rudraksha/listings/{sku}/send-back", json={"reason": "fix photos"}, headers=ADMIN)
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "PENDING"

    r = await client.get(f"/v1/catalog/rudraksha/{sku}")
    assert r.status_code == 404

    r = await client.get("/v1/supplier/rudraksha/inbox", params={"unread_only": True}, headers=SUPPLIER)
    assert [(n["sku_id"], n["reason"]) for n in r.json()] == [(sku, "fix photos")]

    r = await client.post(f"/v1/supplier/rudraksha/inbox/{sku}/read", headers=SUPPLIER)
    assert r.json()["read"] is True

    r = await client.delete(f"/v1/admin/rudraksha/listings/{sku}", headers=ADMIN)
    assert r.json() == {"sku_id": sku, "outcome": "REMOVED"}
    r = await client.get(f"/v1/admin/rudraksha/listings/{sku}", headers=ADMIN)
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_missing_identity_headers_are_unauthorized(client):
    r = await client.get("/v1/supplier/rudraksha/listings")
    assert r.status_code == 401
    r = await client.get("/v1/supplier/rudraksha/listings", headers={"X-Tenant-Id": TENANT})
    assert r.status_code == 401
    r = await client.get("/v1/admin/rudraksha/queue")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_unknown_domain_is_not_found(client):
    r = await client.get("/v1/supplier/pottery/listings", headers=SUPPLIER)
    assert r.status_code == 404
    r = await client.get("/v1/catalog/pottery")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_bad_if_match_and_missing_sku_code(client):
    r = await client.post("/v1/supplier/gemstones/listings", headers=SUPPLIER)
    assert r.status_code == 422
    assert r.json()["code"] == "validation_failed"

    await _set_code(client)
    r = await client.post("/v1/supplier/gemstones/listings", headers=SUPPLIER)
    sku = r.json()["sku_id"]
    assert sku == "8165GSZX9001"

    r = await client.put(
        f"/v1/supplier/gemstones/listings/{sku}", json={"attributes": {}}, headers={**SUPPLIER, "If-Match": "abc"}
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_other_supplier_gets_forbidden(client):
    await _set_code(client)
    r = await client.post("/v1/supplier/rudraksha/listings", headers=SUPPLIER)
    sku = r.json()["sku_id"]
    r = await client.get(f"/v1/supplier/rudraksha/listings/{sku}", headers={**SUPPLIER, "X-Supplier-Id": "someone-else"})
    assert r.status_code == 403
    assert r.json()["code"] == "access_denied"


@pytest.mark.asyncio
async def test_admin_sees_unlist_requests(client):
    await _set_code(client)
    r = await client.post("/v1/supplier/rudraksha/listings", headers=SUPPLIER)
    sku = r.json()["sku_id"]
    body = {"attributes": MALA, "pricing": {"offer_price": 500}}
    await client.put(f"/v1/supplier/rudraksha/listings/{sku}", json=body, headers=SUPPLIER)
    await client.post(f"/v1/supplier/rudraksha/listings/{sku}/submit", headers=SUPPLIER)
    await client.post(f"/v1/admin/rudraksha/listings/{sku}/approve", json={}, headers=ADMIN)

    r = await client.get(f"/v1/admin/rudraksha/tenants/{TENANT}/unlist-requests", headers=ADMIN)
    assert r.status_code == 200 and r.json() == []

    r = await client.delete(f"/v1/supplier/rudraksha/listings/{sku}", headers=SUPPLIER)
    assert r.json() == {"sku_id": sku, "outcome": "UNLIST_REQUESTED"}

    r = await client.get(f"/v1/admin/rudraksha/tenants/{TENANT}/unlist-requests", headers=ADMIN)
    assert [(u["sku_id"], u["supplier_id"], u["action"]) for u in r.json()] == [(sku, "sup-api", "UNLIST")]

    # removal by the admin clears the request
    await client.delete(f"/v1/admin/rudraksha/listings/{sku}", headers=ADMIN)
    r = await client.get(f"/v1/admin/rudraksha/tenants/{TENANT}/unlist-requests", headers=ADMIN)
    assert r.json() == []
