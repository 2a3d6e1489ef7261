import re
import unittest

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from etce_auth.db import Base, SessionLocal, engine, get_db
from etce_auth.main import app
from etce_auth.models import Job

OTP_IN_HTML = re.compile(r"<h1>(\d{6})</h1>")

TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class DatabaseTestCase(unittest.TestCase):
    """Fresh in-memory schema per test."""

    def setUp(self):
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        self.db = SessionLocal()

    def tearDown(self):
        self.db.close()
        Base.metadata.drop_all(bind=engine)


class ApiTestCase(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        app.dependency_overrides[get_db] = override_get_db
        self.addCleanup(app.dependency_overrides.pop, get_db, None)
        self.client = TestClient(app, raise_server_exceptions=False)

    def signup(self, role="student", name="A", email="a@x.com", password="pw1"):
        return self.client.post(
            f"/api/{role}/signup",
            json={"name": name, "email": email, "password": password},
        )

    def verify(self, role="student", email="a@x.com", otp="000000"):
        return self.client.post(f"/api/{role}/verify-otp", json={"email": email, "otp": otp})

    def login(self, role="student", email="a@x.com", password="pw1"):
        return self.client.post(f"/api/{role}/login", json={"email": email, "password": password})

    def issued_otp(self, email="a@x.com"):
        """The code from the most recent OTP mail queued for ``email``."""
        self.db.expire_all()
        jobs = self.db.query(Job).order_by(Job.id.desc()).all()
        for job in jobs:
            if job.arguments.get("to_email") == email:
                return OTP_IN_HTML.search(job.arguments["html"]).group(1)
        raise AssertionError(f"no OTP mail queued for {email}")
