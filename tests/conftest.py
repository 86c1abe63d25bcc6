import os
import tempfile
from collections.abc import Generator
from decimal import Decimal
from typing import Callable, Dict, List, Optional
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789-abcdefghijklmnop")
os.environ["ENVIRONMENT"] = "development"
os.environ["RATE_LIMIT_ENABLED"] = "false"

import app.models  # noqa: E402,F401
from app.core.security import create_access_token, hash_password  # noqa: E402
from app.db.base_class import Base  # noqa: E402
from app.db.session import enable_sqlite_foreign_keys, get_db  # noqa: E402
from app.main import app  # noqa: E402
from app.models.invoice import Invoice, InvoiceItem, InvoiceStatus  # noqa: E402
from app.models.product import Product  # noqa: E402
from app.models.user import User, UserRole  # noqa: E402

DEFAULT_PASSWORD = "StrongPass1"


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    db_file = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
    db_file.close()

    engine = create_engine(
        f"sqlite:///{db_file.name}",
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        os.unlink(db_file.name)


@pytest.fixture()
def client(db_session: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.state.limiter.reset()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture()
def create_user(db_session: Session) -> Callable[..., User]:
    def _create(
        role: UserRole = UserRole.CLIENT,
        email: Optional[str] = None,
        password: str = DEFAULT_PASSWORD,
        name: Optional[str] = None,
        is_active: bool = True,
        phone: Optional[str] = None,
    ) -> User:
        user = User(
            name=name or f"{role.value.title()} User",
            email=email or f"{role.value}-{uuid4().hex[:8]}@example.com",
            password_hash=hash_password(password),
            phone=phone,
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create


@pytest.fixture()
def create_product(db_session: Session) -> Callable[..., Product]:
    def _create(name: Optional[str] = None, unit_price="10.00", description: Optional[str] = None) -> Product:
        product = Product(
            name=name or f"Product {uuid4().hex[:8]}",
            description=description,
            unit_price=Decimal(str(unit_price)),
        )
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product

    return _create


@pytest.fixture()
def create_invoice(db_session: Session) -> Callable[..., Invoice]:
    def _create(
        seller: User,
        client: User,
        products: List[Product],
        status: InvoiceStatus = InvoiceStatus.DRAFT,
    ) -> Invoice:
        invoice = Invoice(
            seller_id=seller.id,
            client_id=client.id,
            status=status,
            items=[
                InvoiceItem(product_id=product.id, quantity=1, total_price=product.unit_price)
                for product in products
            ],
        )
        db_session.add(invoice)
        db_session.commit()
        db_session.refresh(invoice)
        return invoice

    return _create


@pytest.fixture()
def auth_headers() -> Callable[[User], Dict[str, str]]:
    def _headers(user: User) -> Dict[str, str]:
        token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture()
def admin(create_user) -> User:
    return create_user(UserRole.ADMIN, email="admin@example.com", name="Admin")


@pytest.fixture()
def seller(create_user) -> User:
    return create_user(UserRole.SELLER, email="seller@example.com", name="Seller")


@pytest.fixture()
def client_user(create_user) -> User:
    return create_user(UserRole.CLIENT, email="client@example.com", name="Client")


@pytest.fixture()
def admin_headers(admin, auth_headers) -> Dict[str, str]:
    return auth_headers(admin)


@pytest.fixture()
def seller_headers(seller, auth_headers) -> Dict[str, str]:
    return auth_headers(seller)


@pytest.fixture()
def client_headers(client_user, auth_headers) -> Dict[str, str]:
    return auth_headers(client_user)
