from __future__ import annotations

import io
from pathlib import Path

import pytest
from fastapi import UploadFile

from schoolshelf.api.v1.books import import_books
from schoolshelf.core.enums import Role
from schoolshelf.core.exceptions import ValidationError
from schoolshelf.services.catalog_service import CSV_MAX_BYTES

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32


def test_borrow_last_copy_then_conflict(client, auth_header, make_tenant, make_membership, make_book):
    tenant = make_tenant()
    first = make_membership(tenant)
    second = make_membership(tenant)
    book = make_book(tenant, quantity=1)

    borrowed = client.post(f"/api/loans/{book.id}", headers=auth_header(first.identity_ref))
    assert borrowed.status_code == 201
    assert borrowed.json()["book"]["available"] == 0

    blocked = client.post(f"/api/loans/{book.id}", headers=auth_header(second.identity_ref))
    assert blocked.status_code == 409
    assert blocked.json()["error_code"] == "CONFLICT"

    detail = client.get(f"/api/books/{book.id}", headers=auth_header(second.identity_ref)).json()
    assert detail["available"] == 0

    returned = client.post(f"/api/loans/{borrowed.json()['id']}/return", headers=auth_header(first.identity_ref))
    assert returned.status_code == 200
    assert returned.json()["status"] == "RETURNED"
    assert client.get("/api/loans/my", headers=auth_header(first.identity_ref)).json()[0]["status"] == "RETURNED"


def test_admin_catalog_crud_and_search(client, auth_header, make_tenant, make_membership):
    tenant = make_tenant()
    admin = make_membership(tenant, role=Role.ADMIN)
    headers = auth_header(admin.identity_ref)

    category = client.post("/api/categories", json={"name": "Science", "slug": "science"}, headers=headers)
    assert category.status_code == 201
    book = client.post(
        "/api/books",
        json={"title": "Cosmos", "author": "Carl Sagan", "quantity": 2, "category_id": category.json()["id"]},
        headers=headers,
    )
    assert book.status_code == 201
    assert book.json()["available"] == 2

    found = client.get("/api/books/search", params={"q": "sagan", "limit": 5}, headers=headers).json()
    assert found["pagination"]["total"] == 1
    assert found["books"][0]["category"]["slug"] == "science"

    updated = client.put(f"/api/books/{book.json()['id']}", json={"quantity": 4}, headers=headers)
    assert updated.json()["available"] == 4
    assert client.delete(f"/api/categories/{category.json()['id']}", headers=headers).status_code == 409
    assert client.delete(f"/api/books/{book.json()['id']}", headers=headers).status_code == 200


def test_member_cannot_create_books(client, auth_header, make_tenant, make_membership):
    tenant = make_tenant()
    member = make_membership(tenant)
    response = client.post("/api/books", json={"title": "T", "author": "A"}, headers=auth_header(member.identity_ref))
    assert response.status_code == 403


def test_tenant_isolation_for_books(client, auth_header, make_tenant, make_membership, make_book):
    north = make_tenant()
    south = make_tenant(slug="south-high", name="South High")
    member = make_membership(north)
    foreign = make_book(south)
    headers = auth_header(member.identity_ref, school_id=south.id)

    assert client.get(f"/api/books/{foreign.id}", headers=headers).status_code == 404
    assert client.get("/api/books", headers=headers).json() == []


def test_developer_selects_school_by_header(client, auth_header, make_tenant, make_membership, make_book):
    north = make_tenant()
    south = make_tenant(slug="south-high", name="South High")
    make_book(north, title="North Book")
    make_book(south, title="South Book")
    developer = make_membership(None, role=Role.DEVELOPER)

    scoped = client.get("/api/books", headers=auth_header(developer.identity_ref, school_id=south.id)).json()
    assert [book["title"] for book in scoped] == ["South Book"]

    everything = client.get("/api/books", headers=auth_header(developer.identity_ref)).json()
    assert {book["title"] for book in everything} == {"North Book", "South Book"}

    unknown = client.get("/api/books", headers=auth_header(developer.identity_ref, school_id="nope"))
    assert unknown.status_code == 400
    assert unknown.json()["error_code"] == "VALIDATION"

    needs_school = client.post("/api/books", json={"title": "T", "author": "A"}, headers=auth_header(developer.identity_ref))
    assert needs_school.status_code == 400


def test_favorites_toggle(client, auth_header, make_tenant, make_membership, make_book):
    tenant = make_tenant()
    member = make_membership(tenant)
    book = make_book(tenant)
    headers = auth_header(member.identity_ref)

    assert client.post(f"/api/favorites/{book.id}", headers=headers).json()["is_favorite"] is True
    assert client.get(f"/api/favorites/{book.id}", headers=headers).json()["is_favorite"] is True
    assert [item["book_id"] for item in client.get("/api/favorites", headers=headers).json()] == [book.id]
    assert client.post(f"/api/favorites/{book.id}", headers=headers).json()["is_favorite"] is False


def test_upload_accepts_png_and_rejects_disguised_jpeg(client, auth_header, make_tenant, make_membership, settings):
    tenant = make_tenant()
    admin = make_membership(tenant, role=Role.ADMIN)
    headers = auth_header(admin.identity_ref)

    accepted = client.post("/api/upload", files={"file": ("cover.png", PNG_BYTES, "image/png")}, headers=headers)
    assert accepted.status_code == 201
    assert accepted.json()["url"].startswith("/uploads/")

    rejected = client.post("/api/upload", files={"file": ("cover.png", JPEG_BYTES, "image/png")}, headers=headers)
    assert rejected.status_code == 400
    assert rejected.json()["error_code"] == "VALIDATION"

    stored = sorted(path.name for path in Path(settings.UPLOAD_DIR).iterdir())
    assert stored == [accepted.json()["filename"]]


def test_book_csv_import(client, auth_header, make_tenant, make_membership):
    tenant = make_tenant()
    admin = make_membership(tenant, role=Role.ADMIN)
    content = "title,author,quantity\nDune,Frank Herbert,2\nEmma,Jane Austen,1\n".encode("utf-8")
    response = client.post(
        "/api/books/import",
        files={"file": ("books.csv", content, "text/csv")},
        headers=auth_header(admin.identity_ref),
    )
    assert response.status_code == 200
    assert response.json() == {"success": 2, "failed": 0, "errors": []}


def test_book_csv_import_rejects_oversized_file(client, auth_header, make_tenant, make_membership):
    tenant = make_tenant()
    admin = make_membership(tenant, role=Role.ADMIN)
    headers = auth_header(admin.identity_ref)
    content = b"title,author\n" + b"Dune,Frank Herbert\n" * (CSV_MAX_BYTES // 19 + 10)

    response = client.post("/api/books/import", files={"file": ("books.csv", content, "text/csv")}, headers=headers)
    assert response.status_code == 400
    assert "too large" in response.json()["detail"]
    assert client.get("/api/books", headers=headers).json() == []


def test_book_csv_import_reads_at_most_one_byte_past_the_cap():
    class RecordingFile(io.BytesIO):
        def __init__(self, data: bytes) -> None:
            super().__init__(data)
            self.requested: list[int] = []

        def read(self, size: int = -1) -> bytes:
            self.requested.append(size)
            return super().read(size)

    source = RecordingFile(b"x" * (CSV_MAX_BYTES * 2))
    with pytest.raises(ValidationError):
        import_books(file=UploadFile(source, filename="books.csv"), caller=None, db=None)
    assert source.requested == [CSV_MAX_BYTES + 1]
