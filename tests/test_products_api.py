"""Tests for the storefront catalog and product administration."""

from pathlib import Path

import pytest

from config import settings
from models.log import Log
from models.product import Product

PNG = ("lamp.png", b"\x89PNG\r\n\x1a\nfake", "image/png")


def upload_path(file_id):
    return Path(settings.UPLOAD_DIR) / file_id


class TestShopCatalog:
    def test_only_active_products_listed(self, client, make_product):
        make_product(product_id="P1", title="Desk Lamp")
        make_product(product_id="P2", title="Old Lamp", is_active=False)

        body = client.get("/shop/products").json()

        assert body["total"] == 1
        assert [p["id"] for p in body["items"]] == ["P1"]
        assert body["items"][0]["imageFileIds"] == ["lamp.jpg"]

    def test_search_and_sort(self, client, make_product):
        make_product(product_id="P1", title="Desk Lamp", price=50.0)
        make_product(product_id="P2", title="Floor Lamp", price=80.0)
        make_product(product_id="P3", title="Rug", price=20.0)

        body = client.get("/shop/products", params={"q": "lamp", "sort_by": "price", "order": "asc"}).json()

        assert [p["id"] for p in body["items"]] == ["P1", "P2"]

    def test_paging(self, client, make_product):
        for i in range(5):
            make_product(product_id=f"P{i}", title=f"Item {i}", price=float(i))

        body = client.get(
            "/shop/products", params={"page": 2, "page_size": 2, "sort_by": "price", "order": "asc"},
        ).json()

        assert body["total"] == 5
        assert body["page"] == 2
        assert body["pageSize"] == 2
        assert [p["id"] for p in body["items"]] == ["P2", "P3"]

    def test_product_detail(self, client, make_product):
        make_product(product_id="P1")
        make_product(product_id="P2", is_active=False)

        assert client.get("/shop/products/P1").json()["title"] == "Desk Lamp"
        assert client.get("/shop/products/P2").status_code == 404
        assert client.get("/shop/products/P404").status_code == 404


class TestAdminProducts:
    def test_requires_token(self, client):
        assert client.get("/admin/products").status_code == 401
        assert client.post("/admin/products", data={"title": "x", "price": "1"}).status_code == 401

    def test_create(self, client, db, admin_headers):
        response = client.post(
            "/admin/products",
            data={"title": " Desk Lamp ", "price": "19.90", "description": "Brass"},
            files=[("images", PNG)],
            headers=admin_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["title"] == "Desk Lamp"
        assert body["price"] == 19.9
        assert body["isActive"] is True
        (file_id,) = body["imageFileIds"]
        assert file_id.endswith(".png")
        assert upload_path(file_id).exists()
        assert db.query(Log).filter(Log.action == "PRODUCT_CREATE").count() == 1

    def test_create_without_image(self, client, admin_headers):
        response = client.post(
            "/admin/products", data={"title": "Desk Lamp", "price": "10"}, headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Upload at least 1 image"

    @pytest.mark.parametrize("price,detail", [
        ("abc", "Price must be a valid number"),
        ("-1", "Price must be >= 0"),
        ("inf", "Price must be a valid number"),
    ])
    def test_create_with_bad_price(self, client, admin_headers, price, detail):
        response = client.post(
            "/admin/products",
            data={"title": "Desk Lamp", "price": price},
            files=[("images", PNG)],
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["detail"] == detail

    def test_create_rejects_non_images(self, client, admin_headers):
        response = client.post(
            "/admin/products",
            data={"title": "Desk Lamp", "price": "10"},
            files=[("images", ("notes.txt", b"hello", "text/plain"))],
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_mixed_upload_stores_nothing(self, client, db, admin_headers):
        before = set(Path(settings.UPLOAD_DIR).iterdir())

        response = client.post(
            "/admin/products",
            data={"title": "Desk Lamp", "price": "10"},
            files=[("images", PNG), ("images", ("notes.txt", b"hello", "text/plain"))],
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert set(Path(settings.UPLOAD_DIR).iterdir()) == before
        assert db.query(Product).count() == 0

    def test_replaced_images_are_removed_from_disk(self, client, admin_headers):
        created = client.post(
            "/admin/products",
            data={"title": "Desk Lamp", "price": "10"},
            files=[("images", PNG), ("images", PNG)],
            headers=admin_headers,
        ).json()
        old_ids = created["imageFileIds"]

        body = client.patch(
            f"/admin/products/{created['id']}",
            data={"image_mode": "replace"},
            files=[("images", PNG)],
            headers=admin_headers,
        ).json()

        (new_id,) = body["imageFileIds"]
        assert upload_path(new_id).exists()
        assert not any(upload_path(i).exists() for i in old_ids)

    def test_images_dropped_from_existing_list_are_removed(self, client, db, admin_headers):
        created = client.post(
            "/admin/products",
            data={"title": "Desk Lamp", "price": "10"},
            files=[("images", PNG), ("images", PNG)],
            headers=admin_headers,
        ).json()
        kept, dropped = created["imageFileIds"]

        body = client.patch(
            f"/admin/products/{created['id']}",
            data={"existing_image_ids": f'["{kept}"]'},
            headers=admin_headers,
        ).json()

        assert body["imageFileIds"] == [kept]
        assert upload_path(kept).exists()
        assert not upload_path(dropped).exists()
        entry = db.query(Log).filter(Log.action == "PRODUCT_EDIT").one()
        assert entry.meta["removed_images"] == [dropped]

    def test_edit_without_image_changes_keeps_files(self, client, admin_headers):
        created = client.post(
            "/admin/products",
            data={"title": "Desk Lamp", "price": "10"},
            files=[("images", PNG)],
            headers=admin_headers,
        ).json()

        client.patch(f"/admin/products/{created['id']}", data={"price": "12"}, headers=admin_headers)

        assert upload_path(created["imageFileIds"][0]).exists()

    def test_edit_fields_and_append_images(self, client, admin_headers, make_product):
        make_product(product_id="P1", images=["old.jpg"])

        response = client.patch(
            "/admin/products/P1",
            data={"price": "45", "is_active": "false"},
            files=[("images", PNG)],
            headers=admin_headers,
        )

        body = response.json()
        assert body["price"] == 45.0
        assert body["isActive"] is False
        assert body["title"] == "Desk Lamp"
        assert body["imageFileIds"][0] == "old.jpg"
        assert len(body["imageFileIds"]) == 2

    def test_edit_replace_images(self, client, admin_headers, make_product):
        make_product(product_id="P1", images=["old.jpg", "older.jpg"])

        body = client.patch(
            "/admin/products/P1",
            data={"image_mode": "replace"},
            files=[("images", PNG)],
            headers=admin_headers,
        ).json()

        assert len(body["imageFileIds"]) == 1
        assert "old.jpg" not in body["imageFileIds"]

    def test_edit_keeps_listed_existing_images(self, client, admin_headers, make_product):
        make_product(product_id="P1", images=["a.jpg", "b.jpg", "c.jpg"])

        body = client.patch(
            "/admin/products/P1",
            data={"existing_image_ids": '["c.jpg", "a.jpg"]'},
            headers=admin_headers,
        ).json()

        assert body["imageFileIds"] == ["c.jpg", "a.jpg"]

    def test_edit_unknown_product(self, client, admin_headers):
        response = client.patch("/admin/products/P404", data={"title": "x"}, headers=admin_headers)
        assert response.status_code == 404

    def test_delete_with_images(self, client, db, admin_headers):
        created = client.post(
            "/admin/products",
            data={"title": "Desk Lamp", "price": "10"},
            files=[("images", PNG)],
            headers=admin_headers,
        ).json()
        (file_id,) = created["imageFileIds"]

        response = client.delete(
            f"/admin/products/{created['id']}", params={"delete_images": "true"}, headers=admin_headers,
        )

        assert response.json() == {"ok": True, "id": created["id"], "failedImageIds": []}
        assert not upload_path(file_id).exists()
        assert db.query(Product).count() == 0

    def test_delete_keeps_images_by_default(self, client, admin_headers):
        created = client.post(
            "/admin/products",
            data={"title": "Desk Lamp", "price": "10"},
            files=[("images", PNG)],
            headers=admin_headers,
        ).json()

        client.delete(f"/admin/products/{created['id']}", headers=admin_headers)

        assert upload_path(created["imageFileIds"][0]).exists()

    def test_admin_listing_includes_inactive(self, client, admin_headers, make_product):
        make_product(product_id="P1")
        make_product(product_id="P2", is_active=False)

        body = client.get("/admin/products", headers=admin_headers).json()

        assert body["ok"] is True
        assert sorted(p["id"] for p in body["products"]) == ["P1", "P2"]

