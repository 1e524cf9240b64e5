"""Tests for document, signing and upload endpoints."""

from typing import Any
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from signdesk.api.main import app
from signdesk.api.routes.uploads import get_upload_service
from signdesk.billing.admission import ModeGate
from signdesk.billing.quota_ledger import QuotaLedger
from signdesk.billing.tier_catalog import SubscriptionTier
from signdesk.documents.uploads import UploadService
from signdesk.integrations.storage import InMemoryBlobStorage
from signdesk.models.user import User

DOCUMENTS_URL = "/api/v1/documents"
SIGN_URL = "/api/v1/sign"
UPLOAD_URL = "/api/v1/upload"


def _document_payload(mode: str = "preview", signers: int = 2) -> dict[str, Any]:
    return {
        "title": "Consulting agreement",
        "message": "Please sign",
        "mode": mode,
        "signers": [
            {"name": f"Signer {i}", "email": f"signer{i}@example.com"} for i in range(signers)
        ],
    }


async def _live_used(db_session: AsyncSession, user: User) -> int:
    return (await QuotaLedger(db_session).get_account(user.id)).live_used


class TestCreateDocument:
    @pytest.mark.asyncio
    async def test_free_user_preview_document(
        self,
        client: AsyncClient,
        free_user: User,
        auth_headers,
    ) -> None:
        response = await client.post(
            DOCUMENTS_URL,
            json=_document_payload("preview"),
            headers=auth_headers(free_user),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["mode"] == "preview"
        assert data["status"] == "draft"
        assert len(data["signers"]) == 2
        assert all(s["signed"] is False for s in data["signers"])

    @pytest.mark.asyncio
    async def test_free_user_live_document_requires_upgrade(
        self,
        client: AsyncClient,
        free_user: User,
        auth_headers,
    ) -> None:
        response = await client.post(
            DOCUMENTS_URL,
            json=_document_payload("live"),
            headers=auth_headers(free_user),
        )

        assert response.status_code == 403
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "SD8001"
        assert body["error"]["message"] == "upgrade required"

        listing = await client.get(DOCUMENTS_URL, headers=auth_headers(free_user))
        assert listing.json()["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_pro_user_live_document_consumes_quota(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        pro_user: User,
        auth_headers,
    ) -> None:
        response = await client.post(
            DOCUMENTS_URL,
            json=_document_payload("live"),
            headers=auth_headers(pro_user),
        )

        assert response.status_code == 201
        assert response.json()["mode"] == "live"
        assert await _live_used(db_session, pro_user) == 1

    @pytest.mark.asyncio
    async def test_last_unit_then_quota_exceeded(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        pro_user_last_unit: User,
        auth_headers,
    ) -> None:
        headers = auth_headers(pro_user_last_unit)

        first = await client.post(DOCUMENTS_URL, json=_document_payload("live"), headers=headers)
        assert first.status_code == 201
        assert await _live_used(db_session, pro_user_last_unit) == 30

        second = await client.post(DOCUMENTS_URL, json=_document_payload("live"), headers=headers)
        assert second.status_code == 403
        assert second.json()["error"]["code"] == "SD8002"
        assert second.json()["error"]["message"] == "quota exceeded for this billing cycle"
        assert await _live_used(db_session, pro_user_last_unit) == 30

    @pytest.mark.asyncio
    async def test_preview_document_never_consumes(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        pro_user: User,
        auth_headers,
    ) -> None:
        for _ in range(3):
            response = await client.post(
                DOCUMENTS_URL,
                json=_document_payload("preview"),
                headers=auth_headers(pro_user),
            )
            assert response.status_code == 201

        assert await _live_used(db_session, pro_user) == 0

    @pytest.mark.asyncio
    async def test_invalid_signer_email(
        self,
        client: AsyncClient,
        free_user: User,
        auth_headers,
    ) -> None:
        payload = _document_payload()
        payload["signers"][0]["email"] = "not-an-email"

        response = await client.post(DOCUMENTS_URL, json=payload, headers=auth_headers(free_user))
        assert response.status_code == 400


class TestReadAndUpdateDocuments:
    @pytest.mark.asyncio
    async def test_list_and_filter(
        self,
        client: AsyncClient,
        pro_user: User,
        auth_headers,
    ) -> None:
        headers = auth_headers(pro_user)
        for _ in range(3):
            await client.post(DOCUMENTS_URL, json=_document_payload(), headers=headers)

        response = await client.get(DOCUMENTS_URL, params={"page_size": 2}, headers=headers)
        assert response.status_code == 200
        data = response.json()
        assert len(data["items"]) == 2
        assert data["pagination"]["total"] == 3
        assert data["pagination"]["has_next"] is True

        waiting = await client.get(DOCUMENTS_URL, params={"status": "waiting"}, headers=headers)
        assert waiting.json()["items"] == []

    @pytest.mark.asyncio
    async def test_other_users_document_is_forbidden(
        self,
        client: AsyncClient,
        free_user: User,
        pro_user: User,
        auth_headers,
    ) -> None:
        created = await client.post(
            DOCUMENTS_URL,
            json=_document_payload(),
            headers=auth_headers(pro_user),
        )
        document_id = created.json()["id"]

        response = await client.get(
            f"{DOCUMENTS_URL}/{document_id}",
            headers=auth_headers(free_user),
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_document(
        self,
        client: AsyncClient,
        free_user: User,
        auth_headers,
    ) -> None:
        response = await client.get(f"{DOCUMENTS_URL}/{uuid4()}", headers=auth_headers(free_user))
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "SD5002"

    @pytest.mark.asyncio
    async def test_going_live_consumes_once(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        pro_user: User,
        auth_headers,
    ) -> None:
        headers = auth_headers(pro_user)
        created = await client.post(DOCUMENTS_URL, json=_document_payload(), headers=headers)
        url = f"{DOCUMENTS_URL}/{created.json()['id']}"

        live = await client.put(url, json={"mode": "live"}, headers=headers)
        assert live.status_code == 200
        assert live.json()["mode"] == "live"
        assert await _live_used(db_session, pro_user) == 1

        renamed = await client.put(url, json={"title": "Renamed", "mode": "live"}, headers=headers)
        assert renamed.status_code == 200
        assert renamed.json()["title"] == "Renamed"
        assert await _live_used(db_session, pro_user) == 1

        back = await client.put(url, json={"mode": "preview"}, headers=headers)
        assert back.json()["mode"] == "preview"
        assert await _live_used(db_session, pro_user) == 1

    @pytest.mark.asyncio
    async def test_free_user_cannot_go_live(
        self,
        client: AsyncClient,
        free_user: User,
        auth_headers,
    ) -> None:
        headers = auth_headers(free_user)
        created = await client.post(DOCUMENTS_URL, json=_document_payload(), headers=headers)
        url = f"{DOCUMENTS_URL}/{created.json()['id']}"

        response = await client.put(url, json={"mode": "live"}, headers=headers)
        assert response.status_code == 403

        unchanged = await client.get(url, headers=headers)
        assert unchanged.json()["mode"] == "preview"

    @pytest.mark.asyncio
    async def test_replacing_signers(
        self,
        client: AsyncClient,
        free_user: User,
        auth_headers,
    ) -> None:
        headers = auth_headers(free_user)
        created = await client.post(DOCUMENTS_URL, json=_document_payload(), headers=headers)
        url = f"{DOCUMENTS_URL}/{created.json()['id']}"

        response = await client.put(
            url,
            json={"signers": [{"name": "Only One", "email": "one@example.com"}]},
            headers=headers,
        )
        assert response.status_code == 200
        signers = response.json()["signers"]
        assert [s["email"] for s in signers] == ["one@example.com"]

    @pytest.mark.asyncio
    async def test_delete_document(
        self,
        client: AsyncClient,
        free_user: User,
        auth_headers,
    ) -> None:
        headers = auth_headers(free_user)
        created = await client.post(DOCUMENTS_URL, json=_document_payload(), headers=headers)
        url = f"{DOCUMENTS_URL}/{created.json()['id']}"

        response = await client.delete(url, headers=headers)
        assert response.status_code == 200
        assert response.json()["success"] is True

        assert (await client.get(url, headers=headers)).status_code == 404


class TestSign:
    async def _create(self, client: AsyncClient, headers: dict[str, str]) -> dict[str, Any]:
        response = await client.post(DOCUMENTS_URL, json=_document_payload(), headers=headers)
        return response.json()

    @pytest.mark.asyncio
    async def test_preview_sign_writes_nothing(
        self,
        client: AsyncClient,
        free_user: User,
        auth_headers,
    ) -> None:
        headers = auth_headers(free_user)
        document = await self._create(client, headers)

        response = await client.post(
            SIGN_URL,
            json={
                "document_id": document["id"],
                "signer_id": document["signers"][0]["id"],
                "mode": "preview",
            },
            headers=headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "preview"
        assert data["message"] == "Document signing simulated in PREVIEW mode"
        assert data["document_status"] == "waiting"
        assert data["signed_at"] is None

        stored = await client.get(f"{DOCUMENTS_URL}/{document['id']}", headers=headers)
        assert stored.json()["status"] == "draft"
        assert all(s["signed"] is False for s in stored.json()["signers"])

    @pytest.mark.asyncio
    async def test_live_sign_completes_document(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        pro_user: User,
        auth_headers,
    ) -> None:
        headers = auth_headers(pro_user)
        document = await self._create(client, headers)
        first, second = (s["id"] for s in document["signers"])

        response = await client.post(
            SIGN_URL,
            json={"document_id": document["id"], "signer_id": first, "mode": "live"},
            headers=headers,
        )
        assert response.status_code == 200
        assert response.json()["message"] == "Document signed successfully in LIVE mode"
        assert response.json()["document_status"] == "waiting"
        assert response.json()["signed_at"] is not None

        response = await client.post(
            SIGN_URL,
            json={"document_id": document["id"], "signer_id": second, "mode": "live"},
            headers=headers,
        )
        assert response.json()["document_status"] == "completed"
        assert await _live_used(db_session, pro_user) == 2

    @pytest.mark.asyncio
    async def test_signing_twice_is_rejected_without_charge(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        pro_user: User,
        auth_headers,
    ) -> None:
        headers = auth_headers(pro_user)
        document = await self._create(client, headers)
        body = {
            "document_id": document["id"],
            "signer_id": document["signers"][0]["id"],
            "mode": "live",
        }

        assert (await client.post(SIGN_URL, json=body, headers=headers)).status_code == 200
        again = await client.post(SIGN_URL, json=body, headers=headers)

        assert again.status_code == 400
        assert await _live_used(db_session, pro_user) == 1

    @pytest.mark.asyncio
    async def test_unknown_signer(
        self,
        client: AsyncClient,
        free_user: User,
        auth_headers,
    ) -> None:
        headers = auth_headers(free_user)
        document = await self._create(client, headers)

        response = await client.post(
            SIGN_URL,
            json={"document_id": document["id"], "signer_id": str(uuid4())},
            headers=headers,
        )
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "SD5003"

    @pytest.mark.asyncio
    async def test_free_user_live_sign(
        self,
        client: AsyncClient,
        free_user: User,
        auth_headers,
    ) -> None:
        headers = auth_headers(free_user)
        document = await self._create(client, headers)

        response = await client.post(
            SIGN_URL,
            json={
                "document_id": document["id"],
                "signer_id": document["signers"][0]["id"],
                "mode": "live",
            },
            headers=headers,
        )
        assert response.status_code == 403
        assert response.json()["error"]["message"] == "upgrade required"


class TestUpload:
    @pytest.mark.asyncio
    async def test_preview_upload_stores_nothing(
        self,
        client: AsyncClient,
        free_user: User,
        memory_storage: InMemoryBlobStorage,
        auth_headers,
    ) -> None:
        files = {"file": ("my contract.pdf", b"%PDF-1.7 preview", "application/pdf")}

        first = await client.post(UPLOAD_URL, files=files, headers=auth_headers(free_user))
        second = await client.post(UPLOAD_URL, files=files, headers=auth_headers(free_user))

        assert first.status_code == 200
        data = first.json()
        assert data["mode"] == "preview"
        assert data["file_name"] == "my-contract.pdf"
        assert data["file_url"].startswith("https://preview.storage.example.com/")
        assert data["file_url"] == second.json()["file_url"]
        assert memory_storage.blobs == {}

    @pytest.mark.asyncio
    async def test_live_upload_stores_and_consumes(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        make_user,
        memory_storage: InMemoryBlobStorage,
        auth_headers,
    ) -> None:
        user = await make_user(SubscriptionTier.ENTERPRISE)

        response = await client.post(
            UPLOAD_URL,
            files={"file": ("scan.png", b"\x89PNG data", "image/png")},
            data={"mode": "live"},
            headers=auth_headers(user),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["mode"] == "live"
        assert data["size"] == 9
        assert data["file_url"].startswith(f"https://storage.test/{user.id}/")
        assert len(memory_storage.blobs) == 1
        assert await _live_used(db_session, user) == 1

    @pytest.mark.asyncio
    async def test_live_upload_free_user(
        self,
        client: AsyncClient,
        free_user: User,
        memory_storage: InMemoryBlobStorage,
        auth_headers,
    ) -> None:
        response = await client.post(
            UPLOAD_URL,
            files={"file": ("scan.png", b"data", "image/png")},
            data={"mode": "live"},
            headers=auth_headers(free_user),
        )

        assert response.status_code == 403
        assert memory_storage.blobs == {}

    @pytest.mark.asyncio
    async def test_empty_upload(
        self,
        client: AsyncClient,
        free_user: User,
        auth_headers,
    ) -> None:
        response = await client.post(
            UPLOAD_URL,
            files={"file": ("empty.txt", b"", "text/plain")},
            headers=auth_headers(free_user),
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_oversized_upload_is_rejected(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        pro_user: User,
        memory_storage: InMemoryBlobStorage,
        auth_headers,
    ) -> None:
        app.dependency_overrides[get_upload_service] = lambda: UploadService(
            ModeGate(db_session),
            memory_storage,
            preview_base_url="https://preview.storage.example.com",
            max_bytes=8,
        )

        response = await client.post(
            UPLOAD_URL,
            files={"file": ("scan.png", b"0123456789abcdef", "image/png")},
            data={"mode": "live"},
            headers=auth_headers(pro_user),
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"]["max_bytes"] == 8
        assert memory_storage.blobs == {}
        assert await _live_used(db_session, pro_user) == 0
