"""
Shared test fixtures for the Notebook Grader.
Everything runs against the in-memory store and a fake asset fetcher.
Zero network calls.
"""
import io
import time

import jwt
import pytest
import requests
from PIL import Image

from backend.app import create_app
from backend.config import Config
from backend.rubric_config import default_rubric
from backend.services.certificate_generator import CertificateRenderer
from backend.services.grading_service import GradingEngine
from backend.services.submission_store import InMemorySubmissionStore

JWT_SECRET = "test-jwt-secret"


def make_png(width=400, height=200, color=(20, 40, 120)):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def _unreachable(url):
    raise requests.ConnectionError(f"unreachable: {url}")


@pytest.fixture
def rubric():
    return default_rubric()


@pytest.fixture
def engine(rubric):
    return GradingEngine(rubric)


@pytest.fixture
def all_scores(rubric):
    """Complete selection with every category at its maximum."""
    return {name: 3 for name in rubric.category_names}


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def renderer(png_bytes):
    """Renderer whose logo and signature always load."""
    return CertificateRenderer(
        logo_url="https://assets.test/logo.png",
        signature_url="https://assets.test/signature.png",
        fetcher=lambda url: png_bytes,
        page_compression=0,
        invariant=1,
    )


@pytest.fixture
def offline_renderer():
    """Renderer whose asset fetches always fail."""
    return CertificateRenderer(
        logo_url="https://assets.test/logo.png",
        signature_url="https://assets.test/signature.png",
        fetcher=_unreachable,
        page_compression=0,
        invariant=1,
    )


@pytest.fixture
def store():
    return InMemorySubmissionStore()


@pytest.fixture
def app_config():
    cfg = Config()
    cfg.update({"jwt_secret": JWT_SECRET})
    return cfg


@pytest.fixture
def app(app_config, store, engine, offline_renderer):
    app = create_app(cfg=app_config, store=store, engine=engine, renderer=offline_renderer)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_headers():
    """Build Authorization headers for a user id."""
    def _make(user_id, email=None):
        payload = {
            "sub": user_id,
            "email": email or f"{user_id}@uni.test",
            "aud": "authenticated",
            "exp": int(time.time()) + 3600,
        }
        token = jwt.encode(payload, JWT_SECRET, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture
def student_headers(store, make_headers):
    store.set_role("student-1", "student")
    return make_headers("student-1", "ada@uni.test")


@pytest.fixture
def other_student_headers(store, make_headers):
    store.set_role("student-2", "student")
    return make_headers("student-2")


@pytest.fixture
def grader_headers(store, make_headers):
    store.set_role("grader-1", "grader")
    return make_headers("grader-1")


@pytest.fixture
def submission(store):
    """A freshly submitted notebook owned by student-1."""
    return store.create({
        "studentId": "student-1",
        "studentEmail": "ada@uni.test",
        "assignmentTitle": "Lab 1: Light Curves",
        "notebookLink": "https://colab.research.google.com/drive/abc",
        "fullNameForCertificate": "Ada Lovelace",
        "status": "submitted",
        "submittedAt": "2026-03-01T10:00:00+00:00",
        "grade": None,
        "feedback": None,
        "certificateEligible": False,
        "gradedAt": None,
        "gradedBy": None,
    })
