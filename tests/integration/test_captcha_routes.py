import pytest


@pytest.mark.integration
class TestCaptchaRoutes:
    async def test_issue_code(self, client) -> None:
        resp = await client.get("/api/captcha/verify", params={"sessionId": "abc"})
        assert resp.status_code == 200
        data = resp.json()
        assert len(data["code"]) == 6
        assert isinstance(data["expiresAt"], int)

    async def test_issue_requires_session(self, client) -> None:
        resp = await client.get("/api/captcha/verify")
        assert resp.status_code == 400

    async def test_verify_then_mark_used(self, client) -> None:
        code = (await client.get("/api/captcha/verify", params={"sessionId": "abc"})).json()["code"]

        resp = await client.post(
            "/api/captcha/verify", json={"sessionId": "abc", "captchaCode": f"  {code.lower()} "}
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

        final = await client.post(
            "/api/captcha/verify",
            json={"sessionId": "abc", "captchaCode": code, "markAsUsed": True},
        )
        assert final.status_code == 200

        replay = await client.post(
            "/api/captcha/verify",
            json={"sessionId": "abc", "captchaCode": code, "markAsUsed": True},
        )
        assert replay.status_code == 400
        assert replay.json()["error"] == "challenge_already_used"

    async def test_wrong_code(self, client) -> None:
        await client.get("/api/captcha/verify", params={"sessionId": "abc"})
        resp = await client.post(
            "/api/captcha/verify", json={"sessionId": "abc", "captchaCode": "0000OO"}
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid captcha code."

    async def test_missing_fields(self, client) -> None:
        resp = await client.post("/api/captcha/verify", json={"sessionId": "abc"})
        assert resp.status_code == 400
        resp = await client.post("/api/captcha/verify", json={"captchaCode": "ABCDEF"})
        assert resp.status_code == 400

    async def test_malformed_body_is_400(self, client) -> None:
        resp = await client.post(
            "/api/captcha/verify",
            content=b"{broken",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid JSON body"}

    async def test_repeated_failures_block_with_429(self, client) -> None:
        await client.get("/api/captcha/verify", params={"sessionId": "abc"})
        statuses = []
        for _ in range(6):
            resp = await client.post(
                "/api/captcha/verify", json={"sessionId": "abc", "captchaCode": "0000OO"}
            )
            statuses.append(resp.status_code)
        assert statuses == [400, 400, 400, 400, 429, 429]
        body = resp.json()
        assert body["blocked"] is True
        assert 0 < body["remainingTime"] <= 30
