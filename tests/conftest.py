import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from models import Category, Product, ProductImage
from utils.security import create_access_token

@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="sqlite://",
        base_url="http://testserver",
        upload_dir=str(tmp_path / "uploads"),
        max_upload_size=1024,
        secret_key="test-secret",
        log_level="WARNING",
    )

@pytest.fixture
def app(settings):
    return create_app(settings)

@pytest.fixture
def client(app):
    # Le context manager déclenche le lifespan (création des tables)
    with TestClient(app) as client:
        yield client

@pytest.fixture
def db(app, client):
    session = app.state.session_factory()
    yield session
    session.close()

@pytest.fixture
def admin_headers(settings):
    token = create_access_token({"sub": "admin@stylestore.test", "role": "admin"}, settings)
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def customer_headers(settings):
    token = create_access_token({"sub": "alice@stylestore.test", "role": "customer"}, settings)
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def seeded(db):
    """Men(1) > [Shirts(2) > Formal(5), Shoes(3)], Women(4)."""
    db.add_all([
        Category(id=1, name="Men", slug="men"),
        Category(id=2, name="Shirts", slug="men-shirts", parent_id=1),
        Category(id=3, name="Shoes", slug="men-shoes", parent_id=1),
        Category(id=4, name="Women", slug="women"),
        Category(id=5, name="Formal", slug="men-shirts-formal", parent_id=2),
    ])
    db.commit()
    db.add_all([
        Product(id=10, name="Oxford jacket", slug="oxford-jacket", description="Wool jacket for men",
                price=2000, inventory=3, category_id=1, featured=True,
                images=[ProductImage(url="http://cdn.test/10-a.jpg", position=0),
                        ProductImage(url="http://cdn.test/10-b.jpg", position=1)]),
        Product(id=11, name="Linen shirt", slug="linen-shirt", description="Light linen shirt",
                price=3000, inventory=5, category_id=2),
        Product(id=12, name="Running shoe", slug="running-shoe", description="Lightweight running shoe",
                price=999, inventory=8, category_id=3),
        Product(id=13, name="Silk dress", slug="silk-dress", description="Evening silk dress",
                price=5000, inventory=1, category_id=4, featured=True),
        Product(id=14, name="Tuxedo shirt", slug="tuxedo-shirt", description="Formal shirt with pleats",
                price=5001, inventory=2, category_id=5),
    ])
    db.commit()
    return db
