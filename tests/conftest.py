from __future__ import annotations

from dataclasses import replace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from schoolshelf.auth.identity import VerifiedIdentity, issue_identity_token
from schoolshelf.core.config import get_config
from schoolshelf.core.dependencies import get_db_session, get_settings
from schoolshelf.core.enums import MembershipStatus, Role
from schoolshelf.database.db import build_engine
from schoolshelf.main import create_app
from schoolshelf.models import Base, Book, Membership, Tenant


@pytest.fixture
def isolated_session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'schoolshelf_test.db'}")
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def db(isolated_session_factory):
    session = isolated_session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_tenant(db):
    def _make(slug: str = "north-high", name: str = "North High", is_active: bool = True) -> Tenant:
        tenant = Tenant(slug=slug, name=name, is_active=is_active)
        db.add(tenant)
        db.commit()
        db.refresh(tenant)
        return tenant

    return _make


@pytest.fixture
def make_membership(db):
    counter = {"n": 0}

    def _make(
        tenant: Tenant | None,
        role: Role = Role.MEMBER,
        status: MembershipStatus = MembershipStatus.APPROVED,
        identity_ref: str | None = None,
        email: str | None = None,
        is_main_admin: bool = False,
    ) -> Membership:
        counter["n"] += 1
        n = counter["n"]
        membership = Membership(
            identity_ref=identity_ref or f"uid-{n}",
            email=email or f"user{n}@example.com",
            name=f"User {n}",
            tenant_id=tenant.id if tenant is not None else None,
            role=role,
            status=status,
            is_main_admin=is_main_admin,
            class_name="9" if role is Role.MEMBER else None,
            section="A" if role is Role.MEMBER else None,
            student_number=str(1000 + n) if role is Role.MEMBER else None,
        )
        db.add(membership)
        db.commit()
        db.refresh(membership)
        return membership

    return _make


@pytest.fixture
def make_book(db):
    def _make(tenant: Tenant, title: str = "Dune", author: str = "Frank Herbert", quantity: int = 1) -> Book:
        book = Book(tenant_id=tenant.id, title=title, author=author, quantity=quantity, available=quantity)
        db.add(book)
        db.commit()
        db.refresh(book)
        return book

    return _make


@pytest.fixture
def make_identity():
    def _make(uid: str = "uid-new", email: str | None = "new@example.com") -> VerifiedIdentity:
        return VerifiedIdentity(uid=uid, email=email, claims={"sub": uid, "email": email})

    return _make


@pytest.fixture
def auth_header():
    cfg = get_config()

    def _header(uid: str, email: str | None = None, school_id: str | None = None) -> dict[str, str]:
        token = issue_identity_token(
            uid=uid,
            email=email,
            secret=cfg.IDENTITY_TOKEN_SECRET,
            issuer=cfg.IDENTITY_TOKEN_ISSUER,
        )
        headers = {"Authorization": f"Bearer {token}"}
        if school_id:
            headers["X-School-Id"] = school_id
        return headers

    return _header


@pytest.fixture
def settings(tmp_path):
    return replace(get_config(), UPLOAD_DIR=str(tmp_path / "uploads"))


@pytest.fixture
def client(isolated_session_factory, settings):
    app = create_app()

    def _override_db():
        session = isolated_session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = _override_db
    app.dependency_overrides[get_settings] = lambda: settings
    return TestClient(app)
