"""
LoveAlbum Backend — API Endpoint Tests
=======================================

What:  End-to-end tests of the HTTP surface against a real SQLite database.
How:   HTTPX AsyncClient + ASGITransport talk to the app in-process; every
       test starts from an empty schema (see conftest.py).

What we test:
    ✅ Admin session: login cookie, verify, logout, 401 paths
    ✅ Album lifecycle: multipart create, lookup with views, update, delete
    ✅ Listing, search and category filtering
    ✅ Viewer screens, notes, analytics
    ✅ Single and chunked uploads, media serving
    ✅ Health, request ids, error body shape
"""

import json
import uuid
from unittest.mock import AsyncMock, patch

import pytest

from app.config import settings
from app.database import async_session_factory
from app.models.category import Category, category_albums
from app.services.album_cache import album_cache
from app.services.auth_service import auth_service

JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


async def create_album(client, name="Anh & Em", **fields):
    data = {
        "name": name,
        "day_start": "2024-02-14",
        "subtitle": "Since the first coffee",
        "quote": "Forever",
        "photo_notes": ["first kiss", "beach"],
        "letter_notes": json.dumps(
            [{"title": "Day 1", "content": "Dear you,\nhello", "date": "14/02/2024"}]
        ),
    }
    data.update(fields)
    files = [
        ("male_photo", ("him.jpg", JPEG, "image/jpeg")),
        ("female_photo", ("her.png", JPEG, "image/png")),
        ("photos", ("one.jpg", JPEG, "image/jpeg")),
        ("photos", ("two.webp", JPEG, "image/webp")),
    ]
    return await client.post("/api/albums", data=data, files=files)


class TestAdminSession:

    @pytest.mark.asyncio
    async def test_login_sets_httponly_cookie(self, test_client):
        async with async_session_factory() as session:
            async with session.begin():
                await auth_service.ensure_admin(session, "owner", "long-password")

        response = await test_client.post(
            "/api/admin/login", json={"admin_account": "owner", "password": "long-password"}
        )

        assert response.status_code == 200
        assert response.json()["admin"]["admin_account"] == "owner"
        cookie = response.headers["set-cookie"]
        assert cookie.startswith(f"{settings.admin_cookie_name}=")
        assert "httponly" in cookie.lower()
        assert f"max-age={settings.jwt_expire_hours * 3600}" in cookie.lower()

    @pytest.mark.asyncio
    async def test_wrong_password(self, test_client):
        async with async_session_factory() as session:
            async with session.begin():
                await auth_service.ensure_admin(session, "owner", "long-password")

        response = await test_client.post(
            "/api/admin/login", json={"admin_account": "owner", "password": "nope"}
        )

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "unauthorized"
        assert body["message"] == "Invalid credentials"
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_missing_credentials(self, test_client):
        response = await test_client.post("/api/admin/login", json={"admin_account": "owner"})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_verify_and_logout(self, admin_client):
        response = await admin_client.get("/api/admin/verify")
        assert response.status_code == 200
        assert response.json()["admin"]["admin_account"] == "admin"
        assert "no-store" in response.headers["cache-control"]

        response = await admin_client.post("/api/admin/logout")
        assert response.status_code == 200
        assert "max-age=0" in response.headers["set-cookie"].lower()

    @pytest.mark.asyncio
    async def test_verify_without_cookie(self, test_client):
        response = await test_client.get("/api/admin/verify")
        assert response.status_code == 401
        assert response.json()["message"] == "No token provided"

    @pytest.mark.asyncio
    async def test_verify_with_forged_cookie(self, test_client):
        test_client.cookies.set(settings.admin_cookie_name, "forged.token.value")
        response = await test_client.get("/api/admin/verify")
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid token"

    @pytest.mark.asyncio
    async def test_mutations_require_admin(self, test_client):
        assert (await create_album(test_client)).status_code == 401
        assert (await test_client.put("/api/albums/x", json={"quote": "q"})).status_code == 401
        assert (await test_client.delete("/api/albums/x")).status_code == 401
        assert (await test_client.get("/api/admin/albums")).status_code == 401
        upload = await test_client.post(
            "/api/upload", data={"type": "albums"}, files={"file": ("a.jpg", JPEG, "image/jpeg")}
        )
        assert upload.status_code == 401


class TestAlbumLifecycle:

    @pytest.mark.asyncio
    async def test_create_album(self, admin_client):
        response = await create_album(admin_client)

        assert response.status_code == 201
        album = response.json()["album"]
        assert album["slug"] == "anh-em"
        assert album["created_by"] == "admin"
        assert len(album["photos"]) == 2
        assert album["cover_image"] == album["photos"][0]
        assert album["messages"] == {"0": "first kiss", "1": "beach"}
        assert album["letter_notes"][0]["content"] == ["Dear you,", "hello"]
        assert album["settings"] == {"auto_play": True, "show_counter": True, "allow_comments": True}
        assert album["views"] == 0

        media = await admin_client.get(album["photos"][0])
        assert media.status_code == 200
        assert media.content == JPEG
        assert media.headers["content-type"] == "image/jpeg"
        assert "no-store" in media.headers["cache-control"]

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, admin_client):
        assert (await create_album(admin_client)).status_code == 201
        response = await create_album(admin_client, name="anh em")
        assert response.status_code == 409
        assert response.json()["message"] == "Album with this name already exists"

    @pytest.mark.asyncio
    async def test_missing_fields(self, admin_client):
        response = await admin_client.post("/api/albums", data={"name": "Only a name"})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"] == "Missing required fields"
        assert body["request_id"]

    @pytest.mark.asyncio
    async def test_every_lookup_counts_a_view(self, admin_client):
        await create_album(admin_client)

        first = await admin_client.get("/api/albums/anh-em")
        second = await admin_client.get("/api/albums/anh-em")
        assert first.status_code == 200
        assert first.json()["views"] == 1
        # Served from the cache: the copy lags behind the stored counter
        assert second.json()["views"] == 1

        album_cache.clear()
        third = await admin_client.get("/api/albums/anh-em")
        assert third.json()["views"] == 3

    @pytest.mark.asyncio
    async def test_unknown_album(self, test_client):
        response = await test_client.get("/api/albums/nobody-here")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_update_invalidates_cache(self, admin_client):
        await create_album(admin_client)
        await admin_client.get("/api/albums/anh-em")

        response = await admin_client.put(
            "/api/albums/anh-em", json={"quote": "Always", "tags": ["beach"]}
        )
        assert response.status_code == 200
        assert response.json()["quote"] == "Always"
        assert response.json()["subtitle"] == "Since the first coffee"

        fresh = await admin_client.get("/api/albums/anh-em")
        assert fresh.json()["quote"] == "Always"

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_template(self, admin_client):
        await create_album(admin_client)
        response = await admin_client.put("/api/albums/anh-em", json={"template": "template9"})
        assert response.status_code == 422

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [{"name": None}, {"cover_image": None}, {"photos": None}, {"settings": None}],
    )
    async def test_update_rejects_null_for_required_fields(self, admin_client, body):
        await create_album(admin_client)
        response = await admin_client.put("/api/albums/anh-em", json=body)
        assert response.status_code == 422

        unchanged = (await admin_client.get("/api/albums/anh-em")).json()
        assert unchanged["name"] == "Anh & Em"
        assert len(unchanged["photos"]) == 2

    @pytest.mark.asyncio
    async def test_update_clears_music(self, admin_client):
        await create_album(admin_client, music_url="https://example.com/song.mp3")
        response = await admin_client.put("/api/albums/anh-em", json={"music": None})
        assert response.status_code == 200
        assert response.json()["music"] is None

    @pytest.mark.asyncio
    async def test_delete_removes_album_and_media(self, admin_client):
        album = (await create_album(admin_client)).json()["album"]
        await admin_client.post("/api/notes", json={
            "album": "anh-em", "title": "Hi", "content": "x", "author": "Lan",
        })
        await admin_client.post("/api/analytics", json={"album": "anh-em", "event_type": "view"})

        response = await admin_client.delete("/api/albums/anh-em")
        assert response.status_code == 200
        assert response.json()["success"] is True

        assert (await admin_client.get("/api/albums/anh-em")).status_code == 404
        assert (await admin_client.get(album["photos"][0])).status_code == 404
        assert (await admin_client.get(album["male_avatar"])).status_code == 404


class TestListing:

    @pytest.mark.asyncio
    async def test_public_listing_paginates_and_hides_private(self, admin_client):
        first = (await create_album(admin_client, name="First")).json()["album"]
        await create_album(admin_client, name="Second")
        await create_album(admin_client, name="Third")
        hidden = await admin_client.put(
            "/api/admin/albums", json={"album_id": first["id"], "is_public": False}
        )
        assert hidden.status_code == 200

        response = await admin_client.get("/api/albums", params={"page": 1, "limit": 1})
        body = response.json()
        assert body["pagination"] == {"page": 1, "limit": 1, "total": 2, "pages": 2}
        assert len(body["albums"]) == 1

        admin_view = await admin_client.get("/api/admin/albums")
        assert admin_view.json()["pagination"]["total"] == 3

    @pytest.mark.asyncio
    async def test_search(self, admin_client):
        await create_album(admin_client, name="Beach Days")
        await create_album(admin_client, name="Mountain Trip")

        response = await admin_client.get("/api/albums", params={"search": "BEACH"})
        assert [a["slug"] for a in response.json()["albums"]] == ["beach-days"]

    @pytest.mark.asyncio
    async def test_search_treats_wildcards_literally(self, admin_client):
        await create_album(admin_client, name="Beach Days")
        response = await admin_client.get("/api/albums", params={"search": "%"})
        assert response.json()["albums"] == []

    @pytest.mark.asyncio
    async def test_categories(self, admin_client):
        album = (await create_album(admin_client, name="Wedding Day")).json()["album"]
        await create_album(admin_client, name="Other")

        async with async_session_factory() as session:
            async with session.begin():
                category = Category(name="Wedding", slug="wedding", sort_order=1)
                session.add(Category(name="Empty", slug="empty", sort_order=2))
                session.add(category)
                await session.flush()
                await session.execute(
                    category_albums.insert().values(
                        category_id=category.id, album_id=uuid.UUID(album["id"])
                    )
                )

        categories = (await admin_client.get("/api/categories")).json()
        assert [(c["slug"], c["album_count"]) for c in categories] == [("wedding", 1), ("empty", 0)]

        in_category = await admin_client.get("/api/albums", params={"category": "wedding"})
        assert [a["slug"] for a in in_category.json()["albums"]] == ["wedding-day"]

        unknown = await admin_client.get("/api/albums", params={"category": "nope"})
        assert unknown.json()["pagination"]["total"] == 0


class TestAdminAlbums:

    @pytest.mark.asyncio
    async def test_delete_by_id(self, admin_client):
        album = (await create_album(admin_client)).json()["album"]
        response = await admin_client.delete("/api/admin/albums", params={"id": album["id"]})
        assert response.status_code == 200
        assert (await admin_client.get("/api/albums/anh-em")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_requires_valid_id(self, admin_client):
        missing = await admin_client.delete("/api/admin/albums")
        assert missing.status_code == 400
        assert missing.json()["message"] == "Album ID is required"

        malformed = await admin_client.delete("/api/admin/albums", params={"id": "123"})
        assert malformed.status_code == 400

        unknown = await admin_client.delete("/api/admin/albums", params={"id": str(uuid.uuid4())})
        assert unknown.status_code == 404


class TestViewerScreens:

    @pytest.mark.asyncio
    async def test_screens(self, admin_client):
        await create_album(admin_client)

        preview = (await admin_client.get("/api/albums/anh-em/preview")).json()
        assert preview["photo_count"] == 2
        assert preview["days_together"] >= 0

        carousel = (await admin_client.get("/api/albums/anh-em/carousel")).json()
        assert [s["caption"] for s in carousel["slides"]] == ["first kiss", "beach"]

        letters = (await admin_client.get("/api/albums/anh-em/letters")).json()
        assert letters["pages"][0]["lines"] == ["Dear you,", "hello"]

        album_cache.clear()
        assert (await admin_client.get("/api/albums/anh-em")).json()["views"] == 1

    @pytest.mark.asyncio
    async def test_unknown_album(self, test_client):
        assert (await test_client.get("/api/albums/ghost/carousel")).status_code == 404


class TestNotes:

    @pytest.mark.asyncio
    async def test_create_and_list(self, admin_client):
        await create_album(admin_client)

        created = await admin_client.post("/api/notes", json={
            "album": "anh-em", "title": "Hello", "content": "We were here", "author": "Lan",
            "date": "14/02/2024",
        })
        assert created.status_code == 201
        assert created.json()["note"]["title"] == "Hello"

        await admin_client.post("/api/notes", json={
            "album": "anh-em", "title": "Hidden", "content": "x", "author": "Lan",
            "is_public": False,
        })

        listed = await admin_client.get("/api/notes", params={"album": "anh-em"})
        assert [n["title"] for n in listed.json()["notes"]] == ["Hello"]

    @pytest.mark.asyncio
    async def test_errors(self, admin_client):
        assert (await admin_client.get("/api/notes")).status_code == 400
        assert (await admin_client.get("/api/notes", params={"album": "ghost"})).status_code == 404

        missing = await admin_client.post("/api/notes", json={"album": "ghost"})
        assert missing.status_code == 400
        assert missing.json()["details"]["missing"] == ["title", "content", "author"]


class TestAnalytics:

    @pytest.mark.asyncio
    async def test_track_and_read(self, admin_client):
        await create_album(admin_client)

        for event in (
            {"event_type": "view"},
            {"event_type": "view"},
            {"event_type": "timeSpent", "data": {"duration": 40}},
            {"event_type": "photo_view", "data": {"photo_index": 1}},
            {"event_type": "share"},
        ):
            response = await admin_client.post("/api/analytics", json={"album": "anh-em", **event})
            assert response.status_code == 200

        body = (await admin_client.get("/api/analytics", params={"album": "anh-em"})).json()
        assert len(body["analytics"]) == 1
        assert body["aggregated"]["total_views"] == 2
        assert body["aggregated"]["total_time_spent"] == 40
        assert body["aggregated"]["total_shares"] == 1
        assert body["aggregated"]["photo_views"] == {"1": 1}

        outside = await admin_client.get("/api/analytics", params={
            "album": "anh-em", "start_date": "2000-01-01", "end_date": "2000-01-31",
        })
        assert outside.json()["analytics"] == []

    @pytest.mark.asyncio
    async def test_unknown_event(self, admin_client):
        await create_album(admin_client)
        response = await admin_client.post(
            "/api/analytics", json={"album": "anh-em", "event_type": "dance"}
        )
        assert response.status_code == 400


class TestUploads:

    @pytest.mark.asyncio
    async def test_single_upload(self, admin_client):
        response = await admin_client.post(
            "/api/upload", data={"type": "avatars"}, files={"file": ("me.png", JPEG, "image/png")}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["complete"] is True
        assert body["url"].startswith("/uploads/avatars/avatars-")

    @pytest.mark.asyncio
    async def test_rejects_bad_type_and_extension(self, admin_client):
        bad_type = await admin_client.post(
            "/api/upload", data={"type": "docs"}, files={"file": ("a.jpg", JPEG, "image/jpeg")}
        )
        assert bad_type.status_code == 400

        bad_ext = await admin_client.post(
            "/api/upload", data={"type": "audio"}, files={"file": ("a.jpg", JPEG, "image/jpeg")}
        )
        assert bad_ext.status_code == 400

    @pytest.mark.asyncio
    async def test_chunked_music_upload(self, admin_client):
        fields = {"type": "audio", "upload_id": "song-42", "total_chunks": "2", "filename": "song.mp3"}

        first = await admin_client.post(
            "/api/upload",
            data={**fields, "chunk_index": "0"},
            files={"file": ("blob", b"ID3-part-one|", "application/octet-stream")},
        )
        assert first.json() == {
            "success": True, "complete": False, "url": None, "filename": None, "chunk_index": 0,
        }

        last = await admin_client.post(
            "/api/upload",
            data={**fields, "chunk_index": "1"},
            files={"file": ("blob", b"part-two", "application/octet-stream")},
        )
        body = last.json()
        assert body["complete"] is True
        assert body["url"].startswith("/uploads/audio/")

        served = await admin_client.get(body["url"])
        assert served.content == b"ID3-part-one|part-two"
        assert served.headers["content-type"] == "audio/mpeg"

        # The assembled file can be attached to a new album
        album = await create_album(admin_client, music_url=body["url"])
        assert album.json()["album"]["music"] == body["url"]

    @pytest.mark.asyncio
    async def test_partial_chunk_fields_rejected(self, admin_client):
        response = await admin_client.post(
            "/api/upload",
            data={"type": "audio", "upload_id": "x"},
            files={"file": ("song.mp3", b"abc", "audio/mpeg")},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_serving_missing_file(self, test_client):
        assert (await test_client.get("/uploads/albums/nothing.jpg")).status_code == 404


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert "size" in body["cache"]

    @pytest.mark.asyncio
    async def test_database_down(self, test_client):
        with patch("app.routes.health.ping_database", AsyncMock(side_effect=OSError("refused"))):
            response = await test_client.get("/api/health")
        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["x-request-id"] == "trace-123"

        generated = await test_client.get("/health")
        assert len(generated.headers["x-request-id"]) == 8
