"""Admin panel pages and PDF export."""

import pytest


@pytest.fixture()
async def submission_id(client, make_payload) -> str:
    resp = await client.post("/api/submissions", json=make_payload())
    return resp.json()["id"]


@pytest.mark.integration
class TestAdminPages:
    async def test_panel_redirects_to_login(self, client) -> None:
        resp = await client.get("/admin")
        assert resp.status_code == 302
        assert resp.headers["location"] == "/admin/login?next=/admin"

    async def test_panel_lists_submissions(self, authed_client, submission_id) -> None:
        resp = await authed_client.get("/admin")
        assert resp.status_code == 200
        assert "Tkaniny Sp. z o.o." in resp.text
        assert f"/admin/submissions/{submission_id}" in resp.text

    async def test_detail_page(self, authed_client, submission_id) -> None:
        resp = await authed_client.get(f"/admin/submissions/{submission_id}")
        assert resp.status_code == 200
        assert "Sinope 03" in resp.text
        assert "Polska, 00-001, Warszawa, Marszalkowska, 10, 4" in resp.text

    async def test_detail_page_unknown(self, authed_client) -> None:
        resp = await authed_client.get("/admin/submissions/nope")
        assert resp.status_code == 404


@pytest.mark.integration
class TestExportSingle:
    async def test_requires_admin(self, client, submission_id) -> None:
        resp = await client.get("/api/admin/export-single", params={"id": submission_id})
        assert resp.status_code == 401

    async def test_pdf_download(self, authed_client, submission_id) -> None:
        resp = await authed_client.get("/api/admin/export-single", params={"id": submission_id})
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "application/pdf"
        disposition = resp.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="submission-Tkaniny Sp_ z o_o_-')
        assert "filename*=UTF-8''submission-Tkaniny%20Sp_%20z%20o_o_-" in disposition
        assert resp.content.startswith(b"%PDF")

    async def test_polish_company_name(self, authed_client, client, make_payload) -> None:
        created = await client.post(
            "/api/submissions", json=make_payload(companyName="Łódź Tkaniny")
        )
        resp = await authed_client.get(
            "/api/admin/export-single", params={"id": created.json()["id"]}
        )
        assert resp.status_code == 200
        assert resp.content.startswith(b"%PDF")
        disposition = resp.headers["content-disposition"]
        assert 'filename="submission-Lodz Tkaniny-' in disposition
        assert "filename*=UTF-8''submission-%C5%81%C3%B3d%C5%BA%20Tkaniny-" in disposition

    async def test_missing_id(self, authed_client) -> None:
        resp = await authed_client.get("/api/admin/export-single")
        assert resp.status_code == 400

    async def test_unknown_id(self, authed_client) -> None:
        resp = await authed_client.get("/api/admin/export-single", params={"id": "missing"})
        assert resp.status_code == 404

    async def test_render_failure_is_500(self, authed_client, submission_id, monkeypatch) -> None:
        from fabricfair.exceptions import ReportError

        def fail(*_: object) -> bytes:
            raise ReportError("boom")

        monkeypatch.setattr("fabricfair.web.routes.admin.render_submission_pdf", fail)
        resp = await authed_client.get("/api/admin/export-single", params={"id": submission_id})
        assert resp.status_code == 500
        assert resp.json() == {"detail": "Failed to generate PDF"}
