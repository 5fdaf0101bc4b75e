"""
ReadSync Backend — Reading Records & App Plumbing Endpoint Tests
=================================================================

What:  /reading-records routes end to end, plus the cross-cutting behavior
       every route shares (envelope, CORS preflight, 404/405, health).
How:   AsyncClient over ASGITransport; in-memory SQLite; fake identity.
"""

from unittest.mock import AsyncMock, patch

import pytest

from readsync.database import get_db_session


SYNC_BODY = {
    "fileId": "doc-1",
    "record": {
        "fileName": "Dune.pdf",
        "currentPage": 42,
        "totalPages": 600,
        "readPages": [1, 2, 3],
        "readingMode": True,
        "deviceId": "kindle-7",
        "lastModified": "2026-10-01T12:00:00Z",
    },
}


class TestAuthentication:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, path",
        [
            ("POST", "/reading-records"),
            ("GET", "/reading-records"),
            ("GET", "/reading-records/doc-1"),
            ("DELETE", "/reading-records/doc-1"),
        ],
    )
    async def test_missing_header_is_401_before_store_access(self, app, client, method, path):
        opened = []

        async def tracking_session():
            opened.append(True)
            yield AsyncMock()

        app.dependency_overrides[get_db_session] = tracking_session

        with patch("readsync.routes.reading_records.reading_record_service") as mock_service:
            mock_service.upsert = AsyncMock()
            mock_service.list = AsyncMock()
            mock_service.get = AsyncMock()
            mock_service.delete = AsyncMock()

            kwargs = {"json": SYNC_BODY} if method == "POST" else {}
            response = await client.request(method, path, **kwargs)

            assert response.status_code == 401
            assert response.json() == {"success": False, "message": "Missing access token"}
            assert opened == []
            for op in (mock_service.upsert, mock_service.list, mock_service.get, mock_service.delete):
                op.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unparsable_body_without_token_is_401(self, app, client, identity):
        opened = []

        async def tracking_session():
            opened.append(True)
            yield AsyncMock()

        app.dependency_overrides[get_db_session] = tracking_session

        response = await client.post(
            "/reading-records",
            content=b'{"fileId": "doc-1", "record": ',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Missing access token"}
        assert opened == []
        assert identity.calls == []

    @pytest.mark.asyncio
    async def test_invalid_token_is_401(self, client):
        response = await client.get(
            "/reading-records", headers={"Authorization": "Bearer forged"}
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid access token"

    @pytest.mark.asyncio
    async def test_empty_bearer_is_missing_token(self, client, identity):
        response = await client.get("/reading-records", headers={"Authorization": "Bearer "})

        assert response.status_code == 401
        assert response.json()["message"] == "Missing access token"
        assert identity.calls == []

    @pytest.mark.asyncio
    async def test_identity_outage_is_500(self, client, identity, auth_headers):
        identity.down = True

        response = await client.get("/reading-records", headers=auth_headers)

        assert response.status_code == 500
        assert response.json()["success"] is False


class TestSync:

    @pytest.mark.asyncio
    async def test_sync_then_get(self, client, auth_headers):
        sync = await client.post("/reading-records", json=SYNC_BODY, headers=auth_headers)

        assert sync.status_code == 200
        body = sync.json()
        assert body["success"] is True
        assert body["message"] == "Sync successful"
        assert "lastSynced" in body["data"]

        response = await client.get("/reading-records/doc-1", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert set(data) == {"record", "lastSynced"}
        record = data["record"]
        assert set(record) == {
            "fileName",
            "currentPage",
            "totalPages",
            "readPages",
            "readingMode",
            "lastModified",
            "deviceId",
        }
        assert record["fileName"] == "Dune.pdf"
        assert record["currentPage"] == 42
        assert record["readPages"] == [1, 2, 3]
        assert record["readingMode"] is True
        assert record["lastModified"].startswith("2026-10-01T12:00:00")

    @pytest.mark.asyncio
    async def test_last_read_alias_accepted(self, client, auth_headers):
        body = {"fileId": "doc-2", "record": {"lastRead": 1790856000000}}

        response = await client.post("/reading-records", json=body, headers=auth_headers)

        assert response.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body, field",
        [
            ({"record": {}}, "fileId"),
            ({"fileId": "doc-1"}, "record"),
            ({"fileId": "", "record": {}}, "fileId"),
            ({"fileId": "doc-1", "record": {"currentPage": 0}}, "record.currentPage"),
            ({"fileId": "doc-1", "record": {"currentPage": "3"}}, "record.currentPage"),
            ({"fileId": "doc-1", "record": {"readingMode": "yes"}}, "record.readingMode"),
            ({"fileId": "doc-1", "record": {"colour": "sepia"}}, "record.colour"),
        ],
    )
    async def test_malformed_body_is_400(self, client, auth_headers, body, field):
        response = await client.post("/reading-records", json=body, headers=auth_headers)

        assert response.status_code == 400
        payload = response.json()
        assert payload["success"] is False
        assert payload["message"].startswith(f"{field}:")

    @pytest.mark.asyncio
    async def test_unparsable_body_is_400(self, client, auth_headers):
        response = await client.post(
            "/reading-records",
            content=b'{"fileId": "doc-1", "record": ',
            headers={**auth_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Request body is not valid JSON"}

    @pytest.mark.asyncio
    async def test_empty_body_is_400(self, client, auth_headers):
        response = await client.post("/reading-records", headers=auth_headers)

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Request body is required"}

    @pytest.mark.asyncio
    async def test_get_missing_is_404_envelope(self, client, auth_headers):
        response = await client.get("/reading-records/unknown", headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Reading record not found"}

    @pytest.mark.asyncio
    async def test_other_user_cannot_read(self, client, auth_headers, other_auth_headers):
        await client.post("/reading-records", json=SYNC_BODY, headers=auth_headers)

        response = await client.get("/reading-records/doc-1", headers=other_auth_headers)

        assert response.status_code == 404


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, client, auth_headers):
        await client.post("/reading-records", json=SYNC_BODY, headers=auth_headers)

        first = await client.delete("/reading-records/doc-1", headers=auth_headers)
        second = await client.delete("/reading-records/doc-1", headers=auth_headers)

        for response in (first, second):
            assert response.status_code == 200
            assert response.json() == {"success": True, "message": "Record deleted"}

        missing = await client.get("/reading-records/doc-1", headers=auth_headers)
        assert missing.status_code == 404


class TestList:

    @pytest.mark.asyncio
    async def test_paginated_listing(self, client, auth_headers):
        for i in range(5):
            body = {
                "fileId": f"doc-{i}",
                "record": {
                    "fileName": f"Book {i}",
                    "totalPages": 4,
                    "readPages": list(range(i % 5)),
                    "lastModified": f"2026-10-0{i + 1}T08:00:00Z",
                },
            }
            await client.post("/reading-records", json=body, headers=auth_headers)

        response = await client.get(
            "/reading-records", params={"limit": 2, "offset": 0}, headers=auth_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 5
        assert data["limit"] == 2
        assert data["offset"] == 0
        assert [r["fileId"] for r in data["records"]] == ["doc-4", "doc-3"]
        assert set(data["records"][0]) == {
            "fileId",
            "fileName",
            "currentPage",
            "totalPages",
            "readProgress",
            "lastRead",
        }
        assert data["records"][0]["readProgress"] == 1.0
        assert data["records"][1]["readProgress"] == 0.75

    @pytest.mark.asyncio
    async def test_unknown_sort_is_400(self, client, auth_headers):
        response = await client.get(
            "/reading-records", params={"sort": "user_id"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_non_integer_limit_is_400(self, client, auth_headers):
        response = await client.get(
            "/reading-records", params={"limit": "lots"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("limit:")


class TestPlumbing:

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path", ["/reading-records", "/reading-records/doc-1", "/auth/login", "/anything"]
    )
    async def test_options_preflight_is_200(self, client, path):
        response = await client.options(path)

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert "Authorization" in response.headers["access-control-allow-headers"]

    @pytest.mark.asyncio
    async def test_allow_origin_on_responses_without_origin_header(self, client, auth_headers):
        ok = await client.get("/reading-records", headers=auth_headers)
        rejected = await client.get("/reading-records")

        for response in (ok, rejected):
            assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_allow_origin_not_duplicated_for_browser_requests(self, client):
        response = await client.get("/nope", headers={"Origin": "https://reader.example"})

        assert response.headers.get_list("access-control-allow-origin") == ["*"]

    @pytest.mark.asyncio
    async def test_unknown_route_uses_envelope(self, client):
        response = await client.get("/nope")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Not Found"}

    @pytest.mark.asyncio
    async def test_wrong_method_is_405(self, client, auth_headers):
        response = await client.put("/reading-records/doc-1", headers=auth_headers)

        assert response.status_code == 405
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_request_id_header(self, client):
        response = await client.get("/nope", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"

    @pytest.mark.asyncio
    async def test_health(self, client, engine):
        with patch("readsync.routes.health.engine", engine):
            response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["identity"] == "available"

    @pytest.mark.asyncio
    async def test_health_degraded_when_identity_down(self, client, engine, identity):
        identity.healthy = False

        with patch("readsync.routes.health.engine", engine):
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
