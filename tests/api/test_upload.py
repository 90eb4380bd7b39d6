"""Upload endpoint tests."""

import pytest
from httpx import AsyncClient

from tests.conftest import AuthenticatedClient
from vipclub.services.storage import StorageService


@pytest.mark.asyncio
async def test_upload_requires_admin(client: AsyncClient, member_client: AuthenticatedClient, png_content: bytes):
    files = {"file": ("test.png", png_content, "image/png")}
    assert (await client.post("/api/upload", files=files)).status_code == 401
    assert (await member_client.post("/api/upload", files=files)).status_code == 403


@pytest.mark.asyncio
async def test_upload_album_image(
    admin_client: AuthenticatedClient, temp_storage: StorageService, png_content: bytes
):
    response = await admin_client.post(
        "/api/upload",
        files={"file": ("photo.png", png_content, "image/png")},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["url"].startswith("/uploads/member-albums/")
    assert data["url"].endswith(".png")
    assert data["blob_key"].startswith("member-albums/")
    assert data["size"] == len(png_content)
    assert data["mime_type"] == "image/png"
    assert await temp_storage.file_exists(data["blob_key"])


@pytest.mark.asyncio
async def test_upload_cover_image(admin_client: AuthenticatedClient, png_content: bytes):
    response = await admin_client.post(
        "/api/upload",
        params={"bucket": "member-covers"},
        files={"file": ("cover", png_content, "image/jpeg")},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["url"].startswith("/uploads/member-covers/")
    assert data["url"].endswith(".jpg")


@pytest.mark.asyncio
async def test_upload_unknown_bucket(admin_client: AuthenticatedClient, png_content: bytes):
    response = await admin_client.post(
        "/api/upload",
        params={"bucket": "elsewhere"},
        files={"file": ("test.png", png_content, "image/png")},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_upload_rejects_non_image(admin_client: AuthenticatedClient):
    response = await admin_client.post(
        "/api/upload",
        files={"file": ("notes.pdf", b"%PDF-1.4 fake content", "application/pdf")},
    )
    assert response.status_code == 400
    assert "Invalid file type" in response.json()["detail"]


@pytest.mark.asyncio
async def test_upload_too_large(admin_client: AuthenticatedClient, monkeypatch):
    monkeypatch.setattr("vipclub.api.upload.settings.max_image_size_mb", 0)
    response = await admin_client.post(
        "/api/upload",
        files={"file": ("big.png", b"x" * 10, "image/png")},
    )
    assert response.status_code == 400
    assert "File too large" in response.json()["detail"]


@pytest.mark.asyncio
async def test_delete_file(temp_storage: StorageService, png_content: bytes):
    url, key = await temp_storage.upload_file(png_content, "member-covers", "png")
    assert url == f"/uploads/{key}"
    assert await temp_storage.delete_file(key) is True
    assert await temp_storage.delete_file(key) is False


@pytest.mark.asyncio
async def test_upload_extension_follows_content_type(
    admin_client: AuthenticatedClient, temp_storage: StorageService, png_content: bytes
):
    """A misleading filename cannot make the stored file servable as HTML."""
    response = await admin_client.post(
        "/api/upload",
        files={"file": ("evil.html", png_content, "image/png")},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["url"].endswith(".png")
    assert data["blob_key"].endswith(".png")
    assert not data["url"].endswith(".html")
    assert await temp_storage.file_exists(data["blob_key"])
