"""
Item reporting, browsing, search, status changes and image upload
"""
from pathlib import Path

import pytest

from lostfound.models.enums import Role
from support import API

LOST_WALLET = {"title": "Black wallet", "description": "Leather, has ID", "category": "wallet", "location": "Library"}


async def report(client, users, user, kind="lost", **overrides):
    r = await client.post(f"{API}/items/{kind}", json={**LOST_WALLET, **overrides}, headers=users.headers(user))
    assert r.status_code == 201, r.text
    return r.json()["item_id"]


@pytest.mark.asyncio
async def test_report_lost_item_sets_reporter(client, users):
    owner = await users.create()
    item_id = await report(client, users, owner)

    r = await client.get(f"{API}/items/{item_id}")
    assert r.status_code == 200
    item = r.json()
    assert item["status"] == "lost"
    assert item["reporter_id"] == owner.id
    assert item["finder_id"] is None


@pytest.mark.asyncio
async def test_report_found_item_sets_finder(client, users):
    finder = await users.create()
    item_id = await report(client, users, finder, kind="found")

    item = (await client.get(f"{API}/items/{item_id}")).json()
    assert item["status"] == "found"
    assert item["finder_id"] == finder.id
    assert item["reporter_id"] is None


@pytest.mark.asyncio
async def test_report_requires_title_category_location(client, users):
    user = await users.create()
    r = await client.post(f"{API}/items/lost", json={"title": "Umbrella"}, headers=users.headers(user))
    assert r.status_code == 400
    assert r.json() == {"error": "Title, category, and location are required"}


@pytest.mark.asyncio
async def test_report_requires_authentication(client):
    r = await client.post(f"{API}/items/lost", json=LOST_WALLET)
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_unknown_item_is_404(client):
    r = await client.get(f"{API}/items/9999")
    assert r.status_code == 404
    assert r.json() == {"error": "Item not found"}


@pytest.mark.asyncio
async def test_listing_pagination_meta(client, users):
    user = await users.create()
    for n in range(25):
        await report(client, users, user, title=f"Lost thing {n}")
    await report(client, users, user, kind="found", title="Found thing")

    r = await client.get(f"{API}/items", params={"status": "lost", "page": 2, "limit": 10})
    assert r.status_code == 200
    body = r.json()
    assert len(body["items"]) == 10
    assert body["meta"] == {"total": 25, "page": 2, "limit": 10, "pages": 3}
    assert all(item["status"] == "lost" for item in body["items"])


@pytest.mark.asyncio
async def test_listing_newest_first_and_all_sentinel(client, users):
    user = await users.create()
    first = await report(client, users, user, title="First")
    second = await report(client, users, user, kind="found", title="Second")

    body = (await client.get(f"{API}/items", params={"status": "all"})).json()
    assert [item["id"] for item in body["items"]] == [second, first]
    assert body["meta"]["total"] == 2


@pytest.mark.asyncio
async def test_listing_limit_is_clamped(client, users):
    user = await users.create()
    await report(client, users, user)
    body = (await client.get(f"{API}/items", params={"limit": 100000, "page": 0})).json()
    assert body["meta"]["limit"] == 100
    assert body["meta"]["page"] == 1


@pytest.mark.asyncio
async def test_search_matches_title_and_description_case_insensitively(client, users):
    user = await users.create()
    wallet = await report(client, users, user)
    await report(client, users, user, title="Blue umbrella", description="Folding", category="umbrella")

    body = (await client.get(f"{API}/items/search", params={"q": "LEATHER"})).json()
    assert [item["id"] for item in body["items"]] == [wallet]

    body = (await client.get(f"{API}/items/search", params={"q": "%"})).json()
    assert body["items"] == []


@pytest.mark.asyncio
async def test_search_without_query_is_400(client):
    r = await client.get(f"{API}/items/search")
    assert r.status_code == 400
    assert r.json() == {"error": "Search query is required"}


@pytest.mark.asyncio
async def test_owner_can_claim_and_claimed_time_is_set(client, users):
    owner = await users.create()
    item_id = await report(client, users, owner)

    r = await client.put(f"{API}/items/{item_id}/status", json={"status": "claimed"}, headers=users.headers(owner))
    assert r.status_code == 200

    item = (await client.get(f"{API}/items/{item_id}")).json()
    assert item["status"] == "claimed"
    assert item["claimed_time"] is not None


@pytest.mark.asyncio
async def test_non_owner_cannot_update_status(client, users):
    owner = await users.create()
    stranger = await users.create()
    item_id = await report(client, users, owner)

    r = await client.put(f"{API}/items/{item_id}/status", json={"status": "returned"}, headers=users.headers(stranger))
    assert r.status_code == 403

    item = (await client.get(f"{API}/items/{item_id}")).json()
    assert item["status"] == "lost"


@pytest.mark.asyncio
async def test_guard_can_update_any_item(client, users):
    owner = await users.create()
    guard = await users.create(Role.GUARD)
    item_id = await report(client, users, owner)

    r = await client.put(f"{API}/items/{item_id}/status", json={"status": "returned"}, headers=users.headers(guard))
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_invalid_status_is_400(client, users):
    owner = await users.create()
    item_id = await report(client, users, owner)

    r = await client.put(f"{API}/items/{item_id}/status", json={"status": "stolen"}, headers=users.headers(owner))
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid status. Must be one of: lost, found, claimed, returned"}


@pytest.mark.asyncio
async def test_my_items_lists_only_own_reports(client, users):
    me = await users.create()
    other = await users.create()
    mine = await report(client, users, me)
    found_by_me = await report(client, users, me, kind="found")
    await report(client, users, other)

    body = (await client.get(f"{API}/user/items", headers=users.headers(me))).json()
    assert {item["id"] for item in body["items"]} == {mine, found_by_me}
    assert body["meta"]["total"] == 2


@pytest.mark.asyncio
async def test_image_upload_attaches_url(client, users, settings):
    owner = await users.create()
    item_id = await report(client, users, owner)

    r = await client.post(
        f"{API}/items/{item_id}/image",
        files={"image": ("../../photo of wallet.png", b"\x89PNG fake", "image/png")},
        headers=users.headers(owner),
    )
    assert r.status_code == 200
    image_url = r.json()["image_url"]
    assert image_url.startswith("/uploads/")
    assert "/" not in image_url[len("/uploads/"):]

    item = (await client.get(f"{API}/items/{item_id}")).json()
    assert item["image_url"] == image_url

    served = await client.get(image_url)
    assert served.status_code == 200
    assert served.content == b"\x89PNG fake"


@pytest.mark.asyncio
async def test_image_upload_without_file_is_400(client, users):
    owner = await users.create()
    item_id = await report(client, users, owner)
    r = await client.post(f"{API}/items/{item_id}/image", headers=users.headers(owner))
    assert r.status_code == 400
    assert r.json() == {"error": "No image file provided"}


@pytest.mark.asyncio
async def test_huge_page_number_returns_empty_page(client, users):
    user = await users.create()
    await report(client, users, user)

    r = await client.get(f"{API}/items", params={"page": 10**20, "limit": 10})
    assert r.status_code == 200
    body = r.json()
    assert body["items"] == []
    assert body["meta"]["total"] == 1


@pytest.mark.asyncio
async def test_out_of_range_item_id_is_400(client, users):
    r = await client.get(f"{API}/items/{10**20}")
    assert r.status_code == 400
    assert "error" in r.json()

    owner = await users.create()
    r = await client.put(f"{API}/items/{10**20}/status", json={"status": "claimed"}, headers=users.headers(owner))
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_oversized_image_is_rejected(client, users, settings, monkeypatch):
    monkeypatch.setattr(settings, "UPLOAD_MAX_BYTES", 1024)
    owner = await users.create()
    item_id = await report(client, users, owner)

    r = await client.post(
        f"{API}/items/{item_id}/image",
        files={"image": ("big.png", b"\x89PNG" + b"0" * 2048, "image/png")},
        headers=users.headers(owner),
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Image exceeds the maximum size of 1024 bytes"}

    item = (await client.get(f"{API}/items/{item_id}")).json()
    assert item["image_url"] is None
    upload_dir = Path(settings.UPLOAD_DIR)
    assert not any(upload_dir.iterdir())


@pytest.mark.asyncio
async def test_non_image_upload_is_rejected(client, users, settings):
    owner = await users.create()
    item_id = await report(client, users, owner)

    for filename, content_type in (("page.html", "text/html"), ("page.html", "image/png"), ("photo.png", "text/html")):
        r = await client.post(
            f"{API}/items/{item_id}/image",
            files={"image": (filename, b"<script>alert(1)</script>", content_type)},
            headers=users.headers(owner),
        )
        assert r.status_code == 400
        assert r.json() == {"error": "Only JPEG, PNG, GIF or WEBP images are allowed"}

    item = (await client.get(f"{API}/items/{item_id}")).json()
    assert item["image_url"] is None
    assert not any(Path(settings.UPLOAD_DIR).iterdir())
