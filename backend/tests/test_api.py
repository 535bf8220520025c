"""
ClassNotes Backend - API Tests
================================

What:  HTTP-level tests through the full FastAPI app (middleware,
       exception handlers, auth gate, static mounts).
How:   httpx AsyncClient over ASGITransport; one SQLite file database
       and one storage directory per test.
"""

import uuid

import pytest

from classnotes.services.security import JWTTokenSigner


async def create_tree(client, headers):
    """BCA → Sem1 → DB; returns the three response bodies."""
    school_class = (await client.post("/api/classes", json={"name": "BCA"}, headers=headers)).json()
    semester = (
        await client.post(
            "/api/semesters", json={"name": "Sem1", "class_id": school_class["_id"]}, headers=headers
        )
    ).json()
    subject = (
        await client.post(
            "/api/subjects", json={"name": "DB", "semester_id": semester["_id"]}, headers=headers
        )
    ).json()
    return school_class, semester, subject


async def upload(client, headers, subject_id, title="Intro", name="sample.pdf", content=b"%PDF-1.4 test"):
    return await client.post(
        "/api/notes",
        data={"title": title, "subject_id": subject_id},
        files={"file": (name, content, "application/pdf")},
        headers=headers,
    )


class TestEndToEnd:

    @pytest.mark.asyncio
    async def test_register_login_build_tree_and_upload(self, client, sample_pdf_bytes):
        credentials = {"username": "admin", "password": "admin123"}
        response = await client.post("/api/register", json=credentials)
        assert response.status_code == 201
        assert "message" in response.json()

        response = await client.post("/api/login", json=credentials)
        assert response.status_code == 200
        headers = {"Authorization": f"Bearer {response.json()['token']}"}

        _, _, subject = await create_tree(client, headers)
        response = await upload(client, headers, subject["_id"], content=sample_pdf_bytes)
        assert response.status_code == 201

        response = await client.get("/api/notes", headers=headers)
        assert response.status_code == 200
        notes = response.json()
        assert len(notes) == 1
        note = notes[0]
        assert note["title"] == "Intro"
        assert note["original_name"] == "sample.pdf"
        assert note["subject_id"]["name"] == "DB"
        assert note["semester_id"]["name"] == "Sem1"
        assert note["class_id"]["name"] == "BCA"

        file_response = await client.get(note["file_url"])
        assert file_response.status_code == 200
        assert file_response.content == sample_pdf_bytes


class TestAuthRoutes:

    @pytest.mark.asyncio
    async def test_duplicate_registration_conflicts(self, client):
        credentials = {"username": "admin", "password": "admin123"}
        await client.post("/api/register", json=credentials)

        response = await client.post("/api/register", json=credentials)

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"

    @pytest.mark.asyncio
    async def test_login_failures_are_indistinguishable(self, client):
        await client.post("/api/register", json={"username": "admin", "password": "admin123"})

        wrong_password = await client.post("/api/login", json={"username": "admin", "password": "nope"})
        unknown_user = await client.post("/api/login", json={"username": "ghost", "password": "admin123"})

        assert wrong_password.status_code == unknown_user.status_code == 401
        first, second = wrong_password.json(), unknown_user.json()
        first.pop("request_id")
        second.pop("request_id")
        assert first == second

    @pytest.mark.asyncio
    async def test_register_requires_both_fields(self, client):
        response = await client.post("/api/register", json={"username": "admin"})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_missing_token_is_401(self, client):
        response = await client.get("/api/classes")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_from_other_secret_is_403(self, client):
        forged = JWTTokenSigner("some-other-secret-that-is-long-enough-to-sign").issue(uuid.uuid4(), "admin")

        response = await client.get("/api/classes", headers={"Authorization": f"Bearer {forged}"})

        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

    @pytest.mark.asyncio
    async def test_garbage_token_is_403(self, client):
        response = await client.get("/api/notes", headers={"Authorization": "Bearer not.a.token"})
        assert response.status_code == 403


class TestCatalogRoutes:

    @pytest.mark.asyncio
    async def test_semester_list_filtered_and_populated(self, client, auth_headers):
        bca, sem1, _ = await create_tree(client, auth_headers)
        mca = (await client.post("/api/classes", json={"name": "MCA"}, headers=auth_headers)).json()
        await client.post("/api/semesters", json={"name": "Sem9", "class_id": mca["_id"]}, headers=auth_headers)

        response = await client.get("/api/semesters", params={"class_id": bca["_id"]}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == [
            {"_id": sem1["_id"], "name": "Sem1", "class_id": {"_id": bca["_id"], "name": "BCA"}}
        ]

    @pytest.mark.asyncio
    async def test_child_of_missing_parent_is_400(self, client, auth_headers):
        response = await client.post(
            "/api/semesters",
            json={"name": "Sem1", "class_id": str(uuid.uuid4())},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "class_id"

    @pytest.mark.asyncio
    async def test_blank_name_is_400(self, client, auth_headers):
        response = await client.post("/api/classes", json={"name": "   "}, headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_delete_with_children_is_409(self, client, auth_headers):
        bca, sem1, subject = await create_tree(client, auth_headers)
        await upload(client, auth_headers, subject["_id"])

        for path in (
            f"/api/classes/{bca['_id']}",
            f"/api/semesters/{sem1['_id']}",
            f"/api/subjects/{subject['_id']}",
        ):
            response = await client.delete(path, headers=auth_headers)
            assert response.status_code == 409, path

    @pytest.mark.asyncio
    async def test_delete_bottom_up_then_idempotent(self, client, auth_headers):
        bca, sem1, subject = await create_tree(client, auth_headers)

        for path in (
            f"/api/subjects/{subject['_id']}",
            f"/api/semesters/{sem1['_id']}",
            f"/api/classes/{bca['_id']}",
            f"/api/classes/{bca['_id']}",
        ):
            response = await client.delete(path, headers=auth_headers)
            assert response.status_code == 200, path
            assert response.json() == {"deleted": True}

        assert (await client.get("/api/classes", headers=auth_headers)).json() == []


class TestNoteRoutes:

    @pytest.mark.asyncio
    async def test_delete_note_removes_file(self, client, auth_headers):
        _, _, subject = await create_tree(client, auth_headers)
        note = (await upload(client, auth_headers, subject["_id"])).json()
        assert (await client.get(note["file_url"])).status_code == 200

        response = await client.delete(f"/api/notes/{note['_id']}", headers=auth_headers)

        assert response.status_code == 200
        assert (await client.get("/api/notes", headers=auth_headers)).json() == []
        assert (await client.get(note["file_url"])).status_code == 404

    @pytest.mark.asyncio
    async def test_upload_to_unknown_subject_is_400(self, client, auth_headers):
        response = await upload(client, auth_headers, str(uuid.uuid4()))

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "subject_id"

    @pytest.mark.asyncio
    async def test_long_upload_name_is_stored(self, client, auth_headers, sample_pdf_bytes):
        _, _, subject = await create_tree(client, auth_headers)
        original = "a" * 240 + ".pdf"

        response = await upload(client, auth_headers, subject["_id"], name=original, content=sample_pdf_bytes)

        assert response.status_code == 201
        note = response.json()
        assert note["original_name"] == original
        assert note["filename"].endswith(".pdf")
        assert (await client.get(note["file_url"])).content == sample_pdf_bytes

    @pytest.mark.asyncio
    async def test_non_latin_upload_name_keeps_extension(self, client, auth_headers):
        _, _, subject = await create_tree(client, auth_headers)

        response = await upload(client, auth_headers, subject["_id"], name="日本語.pdf")

        assert response.status_code == 201
        note = response.json()
        assert note["original_name"] == "日本語.pdf"
        assert note["file_url"].endswith("-file.pdf")
        file_response = await client.get(note["file_url"])
        assert file_response.headers["content-type"] == "application/pdf"

    @pytest.mark.asyncio
    async def test_overlong_title_is_400(self, client, auth_headers):
        _, _, subject = await create_tree(client, auth_headers)

        response = await upload(client, auth_headers, subject["_id"], title="t" * 301)

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "title"

    @pytest.mark.asyncio
    async def test_uploaded_at_serialized_alike_on_create_and_list(self, client, auth_headers):
        _, _, subject = await create_tree(client, auth_headers)
        created = (await upload(client, auth_headers, subject["_id"])).json()

        listed = (await client.get("/api/notes", headers=auth_headers)).json()[0]

        assert listed["uploaded_at"] == created["uploaded_at"]

    @pytest.mark.asyncio
    async def test_upload_without_file_is_400(self, client, auth_headers):
        _, _, subject = await create_tree(client, auth_headers)

        response = await client.post(
            "/api/notes",
            data={"title": "Intro", "subject_id": subject["_id"]},
            files={},
            headers=auth_headers,
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_notes_filtered_by_subject(self, client, auth_headers):
        _, sem1, subject = await create_tree(client, auth_headers)
        other = (
            await client.post(
                "/api/subjects", json={"name": "OS", "semester_id": sem1["_id"]}, headers=auth_headers
            )
        ).json()
        await upload(client, auth_headers, subject["_id"], title="DB notes")
        await upload(client, auth_headers, other["_id"], title="OS notes")

        response = await client.get("/api/notes", params={"subject_id": other["_id"]}, headers=auth_headers)

        assert [n["title"] for n in response.json()] == ["OS notes"]


class TestUserRoutes:

    @pytest.mark.asyncio
    async def test_user_administration(self, client, auth_headers):
        response = await client.post(
            "/api/users", json={"username": "lecturer", "password": "pw"}, headers=auth_headers
        )
        assert response.status_code == 201
        lecturer = response.json()
        assert set(lecturer) == {"_id", "username"}

        users = (await client.get("/api/users", headers=auth_headers)).json()
        assert [u["username"] for u in users] == ["admin", "lecturer"]

        response = await client.delete(f"/api/users/{lecturer['_id']}", headers=auth_headers)
        assert response.json() == {"deleted": True}
        users = (await client.get("/api/users", headers=auth_headers)).json()
        assert [u["username"] for u in users] == ["admin"]

    @pytest.mark.asyncio
    async def test_users_require_auth(self, client):
        assert (await client.get("/api/users")).status_code == 401


class TestPlatform:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client):
        response = await client.get("/health", headers={"X-Request-ID": "trace-123"})
        assert response.headers["X-Request-ID"] == "trace-123"

    @pytest.mark.asyncio
    async def test_error_body_carries_request_id(self, client):
        response = await client.get("/api/classes", headers={"X-Request-ID": "trace-456"})

        assert response.status_code == 401
        assert response.json()["request_id"] == "trace-456"
