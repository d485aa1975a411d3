"""Public intake and the admin submissions API."""

import pytest
from httpx import ASGITransport, AsyncClient

from fabricfair.web.app import create_app


@pytest.mark.integration
class TestCreateSubmission:
    async def test_valid_submission(self, client, make_payload) -> None:
        resp = await client.post("/api/submissions", json=make_payload())
        assert resp.status_code == 201
        data = resp.json()
        assert data["success"] is True
        assert data["id"]

    async def test_collections_stored_as_json(self, app, client, make_payload) -> None:
        resp = await client.post("/api/submissions", json=make_payload())
        stored = await app.state.submission_repo.get(resp.json()["id"])
        assert stored.collections == (
            '[{"collection": "Sinope", "cartelas": [3, 1]}, '
            '{"collection": "Magia", "cartelas": [7]}]'
        )
        assert stored.apartment_number == "4"

    async def test_locale_taken_from_referer(self, app, client, make_payload) -> None:
        resp = await client.post(
            "/api/submissions", json=make_payload(), headers={"Referer": "http://test/en"}
        )
        stored = await app.state.submission_repo.get(resp.json()["id"])
        assert stored.locale == "en"

    async def test_validation_failure_shape(self, client, make_payload) -> None:
        resp = await client.post("/api/submissions", json=make_payload(nip="12-34"))
        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "Validation failed"
        assert any(d["path"] == ["nip"] for d in body["details"])

    async def test_collection_without_cartelas(self, client, make_payload) -> None:
        payload = make_payload(collections=[{"collection": "Sinope", "cartelas": []}])
        resp = await client.post("/api/submissions", json=payload)
        assert resp.status_code == 400

    async def test_no_collections(self, client, make_payload) -> None:
        resp = await client.post("/api/submissions", json=make_payload(collections=[]))
        assert resp.status_code == 400

    async def test_invalid_json(self, client) -> None:
        resp = await client.post(
            "/api/submissions", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert resp.status_code == 400

    async def test_blocked_ip_is_rejected_before_validation(self, app, client) -> None:
        for _ in range(5):
            app.state.rate_limiter.record_failure("127.0.0.1")
        resp = await client.post("/api/submissions", json={})
        assert resp.status_code == 429
        assert resp.json()["blocked"] is True


@pytest.mark.integration
class TestSubmissionCaptcha:
    @pytest.fixture()
    async def strict_client(self, settings, engine):
        settings = settings.model_copy(update={"require_challenge_on_submit": True})
        app = create_app(settings=settings, engine=engine)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client

    async def test_captcha_required(self, strict_client, make_payload) -> None:
        resp = await strict_client.post("/api/submissions", json=make_payload())
        assert resp.status_code == 400
        assert resp.json()["error"] == "challenge_required"

    async def test_verified_captcha_is_consumed(self, strict_client, make_payload) -> None:
        issued = await strict_client.get("/api/captcha/verify", params={"sessionId": "f1"})
        code = issued.json()["code"]
        await strict_client.post(
            "/api/captcha/verify", json={"sessionId": "f1", "captchaCode": code}
        )

        resp = await strict_client.post("/api/submissions", json=make_payload(sessionId="f1"))
        assert resp.status_code == 201

        again = await strict_client.post("/api/submissions", json=make_payload(sessionId="f1"))
        assert again.status_code == 400
        assert again.json()["error"] == "challenge_already_used"

    async def test_code_can_be_sent_with_the_form(self, strict_client, make_payload) -> None:
        issued = await strict_client.get("/api/captcha/verify", params={"sessionId": "f2"})
        code = issued.json()["code"]
        payload = make_payload(sessionId="f2", captchaCode=code)
        resp = await strict_client.post("/api/submissions", json=payload)
        assert resp.status_code == 201


@pytest.mark.integration
class TestReadSubmissions:
    async def test_requires_admin(self, client) -> None:
        resp = await client.get("/api/submissions")
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Unauthorized"}

    async def test_list_newest_first(self, authed_client, make_payload) -> None:
        first = await authed_client.post("/api/submissions", json=make_payload(companyName="First"))
        second = await authed_client.post(
            "/api/submissions", json=make_payload(companyName="Second")
        )

        resp = await authed_client.get("/api/submissions")
        assert resp.status_code == 200
        rows = resp.json()
        assert {r["id"] for r in rows} == {first.json()["id"], second.json()["id"]}
        stamps = [r["createdAt"] for r in rows]
        assert stamps == sorted(stamps, reverse=True)
        assert set(rows[0]) == {"id", "companyName", "nip", "email", "phone", "createdAt"}

    async def test_get_by_id(self, authed_client, make_payload) -> None:
        created = await authed_client.post("/api/submissions", json=make_payload())
        resp = await authed_client.get("/api/submissions", params={"id": created.json()["id"]})
        assert resp.status_code == 200
        data = resp.json()
        assert data["companyName"] == "Tkaniny Sp. z o.o."
        assert data["postalCode"] == "00-001"
        assert "Sinope" in data["collections"]

    async def test_get_unknown_id(self, authed_client) -> None:
        resp = await authed_client.get("/api/submissions", params={"id": "missing"})
        assert resp.status_code == 404
