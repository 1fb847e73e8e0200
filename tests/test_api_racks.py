"""Tests for rack and layout endpoints."""

import io

import pytest
from httpx import AsyncClient


async def _upload_rack(
    client: AsyncClient,
    image_bytes: bytes,
    filename: str = "aisle-3.png",
    **form: str,
):
    files = {"image": (filename, io.BytesIO(image_bytes), "image/png")}
    return await client.post("/api/racks", files=files, data=form)


async def _edit_token(client: AsyncClient, rack_id: str, secret: str = "1234") -> str:
    response = await client.post(f"/api/racks/{rack_id}/layout/edit", json={"secret": secret})
    assert response.status_code == 200
    return response.json()["edit_token"]


class TestRackRegistration:
    """Creating and reading racks."""

    @pytest.mark.asyncio
    async def test_upload_creates_default_grid(self, client: AsyncClient, sample_image_bytes: bytes):
        response = await _upload_rack(client, sample_image_bytes)
        assert response.status_code == 201

        data = response.json()
        assert data["rack_id"] == "aisle-3.png"
        assert len(data["cells"]) == 12
        assert data["image_path"].endswith(".png")

    @pytest.mark.asyncio
    async def test_upload_with_custom_grid(self, client: AsyncClient, sample_image_bytes: bytes):
        response = await _upload_rack(client, sample_image_bytes, rows="2", cols="5")
        assert response.status_code == 201
        assert len(response.json()["cells"]) == 10

    @pytest.mark.asyncio
    async def test_upload_duplicate_conflicts(self, client: AsyncClient, sample_image_bytes: bytes):
        await _upload_rack(client, sample_image_bytes)
        response = await _upload_rack(client, sample_image_bytes)
        assert response.status_code == 409
        assert response.json()["error"] == "DuplicateRack"

    @pytest.mark.asyncio
    async def test_upload_replace(self, client: AsyncClient, sample_image_bytes: bytes):
        await _upload_rack(client, sample_image_bytes)
        response = await _upload_rack(client, sample_image_bytes, rows="1", cols="1", replace="true")
        assert response.status_code == 201
        assert len(response.json()["cells"]) == 1

    @pytest.mark.asyncio
    async def test_upload_invalid_dimension(self, client: AsyncClient, sample_image_bytes: bytes, data_dir):
        response = await _upload_rack(client, sample_image_bytes, rows="0")
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidDimension"

        # The stored image is removed again
        assert list((data_dir / "images").iterdir()) == []
        assert (await client.get("/api/racks")).json() == []

    @pytest.mark.asyncio
    async def test_upload_rejects_non_image(self, client: AsyncClient):
        files = {"image": ("rack.png", io.BytesIO(b"definitely not a png file"), "image/png")}
        response = await client.post("/api/racks", files=files)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_upload_without_usable_filename(self, client: AsyncClient, sample_image_bytes: bytes, data_dir):
        response = await _upload_rack(client, sample_image_bytes, filename="..")
        assert response.status_code == 400
        assert response.json()["error"] == "ValidationError"

        assert not (data_dir / "images").exists() or list((data_dir / "images").iterdir()) == []
        assert (await client.get("/api/racks")).json() == []

    @pytest.mark.asyncio
    async def test_register_existing_image(self, client: AsyncClient, rack_image):
        response = await client.post(
            "/api/racks/register",
            json={"rack_id": "aisle-3.png", "image_path": rack_image.name, "rows": 1, "cols": 2},
        )
        assert response.status_code == 201
        assert [c["id"] for c in response.json()["cells"]] == [0, 1]

    @pytest.mark.asyncio
    async def test_list_and_get(self, client: AsyncClient, sample_image_bytes: bytes):
        await _upload_rack(client, sample_image_bytes, filename="b.png")
        await _upload_rack(client, sample_image_bytes, filename="a.png")

        response = await client.get("/api/racks")
        assert response.status_code == 200
        racks = response.json()
        assert [r["rack_id"] for r in racks] == ["a.png", "b.png"]
        assert racks[0]["cell_count"] == 12

        response = await client.get("/api/racks/a.png")
        assert response.status_code == 200
        assert response.json()["rack_id"] == "a.png"

    @pytest.mark.asyncio
    async def test_get_missing_rack(self, client: AsyncClient):
        response = await client.get("/api/racks/nope.png")
        assert response.status_code == 404
        assert response.json()["error"] == "RackNotFound"

    @pytest.mark.asyncio
    async def test_get_image(self, client: AsyncClient, sample_image_bytes: bytes):
        await _upload_rack(client, sample_image_bytes)
        response = await client.get("/api/racks/aisle-3.png/image")
        assert response.status_code == 200
        assert response.content == sample_image_bytes

    @pytest.mark.asyncio
    async def test_get_missing_image(self, client: AsyncClient):
        await client.post(
            "/api/racks/register",
            json={"rack_id": "ghost.png", "image_path": "ghost.png"},
        )
        response = await client.get("/api/racks/ghost.png/image")
        assert response.status_code == 404
        assert response.json()["error"] == "ImageNotFound"

    @pytest.mark.asyncio
    async def test_hit_test(self, client: AsyncClient, sample_image_bytes: bytes):
        await _upload_rack(client, sample_image_bytes)

        response = await client.get("/api/racks/aisle-3.png/cells/at", params={"x": 0.9, "y": 0.9})
        assert response.status_code == 200
        assert response.json() == {"cell_id": 11}


class TestLayoutEditing:
    """Edit tokens and layout saves."""

    @pytest.mark.asyncio
    async def test_wrong_secret_forbidden(self, client: AsyncClient, sample_image_bytes: bytes):
        await _upload_rack(client, sample_image_bytes)
        response = await client.post(
            "/api/racks/aisle-3.png/layout/edit", json={"secret": "wrong"}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_edit_missing_rack(self, client: AsyncClient):
        response = await client.post("/api/racks/nope.png/layout/edit", json={"secret": "1234"})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_move_preview_and_save(self, client: AsyncClient, sample_image_bytes: bytes):
        created = (await _upload_rack(client, sample_image_bytes, rows="1", cols="2")).json()
        token = await _edit_token(client, "aisle-3.png")
        headers = {"Authorization": f"Bearer {token}"}

        response = await client.post(
            "/api/racks/aisle-3.png/layout/move",
            json={"cells": created["cells"], "move": {"cell_id": 1, "dx": 5.0, "dy": 0.25}},
            headers=headers,
        )
        assert response.status_code == 200
        preview = response.json()
        moved = next(c for c in preview["cells"] if c["id"] == 1)
        assert moved["x"] == pytest.approx(0.5)
        assert moved["y"] == pytest.approx(0.0)
        assert preview["moved"] is False

        cells = created["cells"]
        cells[0] = {**cells[0], "width": 0.25, "height": 0.5, "y": 0.5}
        response = await client.put(
            "/api/racks/aisle-3.png/layout", json={"cells": cells}, headers=headers
        )
        assert response.status_code == 200

        saved = (await client.get("/api/racks/aisle-3.png")).json()["cells"]
        assert saved[0]["y"] == pytest.approx(0.5)
        assert saved[0]["width"] == pytest.approx(0.25)

    @pytest.mark.asyncio
    async def test_save_without_token(self, client: AsyncClient, sample_image_bytes: bytes):
        created = (await _upload_rack(client, sample_image_bytes)).json()
        response = await client.put(
            "/api/racks/aisle-3.png/layout", json={"cells": created["cells"]}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_token_is_rack_scoped(self, client: AsyncClient, sample_image_bytes: bytes):
        await _upload_rack(client, sample_image_bytes, filename="a.png")
        created = (await _upload_rack(client, sample_image_bytes, filename="b.png")).json()
        token = await _edit_token(client, "a.png")

        response = await client.put(
            "/api/racks/b.png/layout",
            json={"cells": created["cells"]},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_save_with_changed_ids(self, client: AsyncClient, sample_image_bytes: bytes):
        created = (await _upload_rack(client, sample_image_bytes)).json()
        token = await _edit_token(client, "aisle-3.png")

        response = await client.put(
            "/api/racks/aisle-3.png/layout",
            json={"cells": created["cells"][:-1]},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "InvalidLayout"

    @pytest.mark.asyncio
    async def test_change_secret(self, client: AsyncClient, sample_image_bytes: bytes):
        await _upload_rack(client, sample_image_bytes)

        response = await client.put(
            "/api/access/secret", json={"current_secret": "wrong", "new_secret": "9999"}
        )
        assert response.status_code == 403

        response = await client.put(
            "/api/access/secret", json={"current_secret": "1234", "new_secret": "9999"}
        )
        assert response.status_code == 204

        denied = await client.post("/api/racks/aisle-3.png/layout/edit", json={"secret": "1234"})
        assert denied.status_code == 403
        assert await _edit_token(client, "aisle-3.png", secret="9999")
