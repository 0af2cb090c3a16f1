import unittest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db.init import Base, get_db
from models import app_setting, field, inquiry, user  # noqa: F401
from models.field import FieldCreate
from models.inquiry import InquiryPayload
from utils.security import create_access_token
import routers.fields as fields_router
import routers.inquiries as inquiries_router

ADMIN = {"sub": "admin@example.com", "role": "admin", "uid": 1}
STAFF = {"sub": "staff@example.com", "role": "user", "uid": 2}


class DatabaseTestCase(unittest.TestCase):
    """Fresh in-memory database per test; route functions are called directly."""

    def setUp(self):
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=self.engine)
        self.db = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def make_field(self, name, field_type="text", label=None, **extra) -> int:
        data = FieldCreate(
            field_name=name,
            field_type=field_type,
            field_label=label or name.replace("_", " ").title(),
            **extra,
        )
        return fields_router.create(data=data, db=self.db)["id"]

    def make_inquiry(self, name="Jane Doe", email="jane@example.com", custom_fields=None, **extra) -> int:
        data = InquiryPayload(client_name=name, client_email=email, customFields=custom_fields, **extra)
        return inquiries_router.create(data=data, db=self.db, payload=STAFF)["id"]

    def list_inquiries(self, **filters):
        return inquiries_router.get_all(db=self.db, payload=STAFF, **filters)


class ApiTestCase(DatabaseTestCase):
    """Same database, exercised over HTTP with the session dependency overridden."""

    def setUp(self):
        super().setUp()
        from main import app

        app.dependency_overrides[get_db] = lambda: self.db
        self.addCleanup(app.dependency_overrides.clear)
        self.client = TestClient(app)

    def headers(self, payload=ADMIN):
        return {"Authorization": f"Bearer {create_access_token(payload)}"}
