import hashlib
import hmac
import json
import time
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from learnify.core.config import Settings
from learnify.core.database import Database
from learnify.core.exceptions import ExternalServiceError
from learnify.utils.media_store import MediaStore
from learnify.utils.payment import CheckoutSession, PaymentGateway
from main import create_app

API = "/api/v1"
WEBHOOK_SECRET = "whsec_test_secret"


def sign_payload(payload: bytes, secret: str, timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header the way Stripe signs webhook bodies."""
    timestamp = timestamp or int(time.time())
    digest = hmac.new(
        secret.encode("utf-8"), f"{timestamp}.".encode("utf-8") + payload, hashlib.sha256
    ).hexdigest()
    return f"t={timestamp},v1={digest}"


class FakePaymentGateway(PaymentGateway):
    """Skips the Stripe API call; signature checking is the real one."""

    def __init__(self):
        super().__init__(
            secret_key="sk_test",
            webhook_secret=WEBHOOK_SECRET,
            success_url="http://client.test/course-progress/{course_id}",
            cancel_url="http://client.test/course-detail/{course_id}",
        )
        self.fail = False
        self.sessions: List[dict] = []

    def create_checkout_session(self, course, user, purchase):
        if self.fail:
            raise ExternalServiceError("Error while creating checkout session")
        session = CheckoutSession(
            id=f"cs_test_{purchase.id}",
            url=f"https://checkout.test/pay/cs_test_{purchase.id}",
        )
        self.sessions.append(
            {"id": session.id, "course_id": course.id, "user_id": user.id, "amount": purchase.amount}
        )
        return session


class FakeMailSender:
    def __init__(self):
        self.outbox: List[dict] = []
        self.fail = False

    async def send(self, to, subject, html):
        if self.fail:
            raise ExternalServiceError("Error sending email")
        self.outbox.append({"to": to, "subject": subject, "html": html})
        return {"message": f"Email '{subject}' sent to {to}"}


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url="sqlite://",
        production=False,
        debug=False,
        password_hash_rounds=4,
        rate_limit_enabled=False,
        jwt_secret="test-secret",
        redis_url=None,
        upload_dir=str(tmp_path / "storage"),
        log_file=str(tmp_path / "logs" / "app.log"),
        stripe_webhook_secret=WEBHOOK_SECRET,
        app_url="http://testserver",
    )


@pytest.fixture
def database(settings):
    db = Database(settings)
    yield db
    db.dispose()


@pytest.fixture
def media_store(settings):
    return MediaStore.from_settings(settings)


@pytest.fixture
def payment_gateway():
    return FakePaymentGateway()


@pytest.fixture
def mail_sender():
    return FakeMailSender()


@pytest.fixture
def app(settings, database, media_store, payment_gateway, mail_sender):
    return create_app(
        settings,
        database=database,
        media_store=media_store,
        payment_gateway=payment_gateway,
        mail_sender=mail_sender,
    )


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session(database):
    session = database.SessionLocal()
    yield session
    session.close()


# ==================== Helpers ====================


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def signup(client, name, email, role="student", password="password123"):
    response = client.post(
        f"{API}/users/signup",
        json={"name": name, "email": email, "password": password, "role": role},
    )
    assert response.status_code == 201, response.text
    client.cookies.clear()
    data = response.json()["data"]
    return {"token": data["accessToken"], "headers": auth(data["accessToken"]), "user": data["user"]}


def create_course(client, headers, **overrides):
    body = {"title": "Python Basics", "category": "Programming", "price": 49.99}
    body.update(overrides)
    response = client.post(f"{API}/courses", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def add_lecture(client, headers, course_id, title, is_preview=False):
    response = client.post(
        f"{API}/courses/{course_id}/lectures",
        data={"title": title, "isPreview": "true" if is_preview else "false"},
        files={"video": (f"{title}.mp4", b"fake video bytes", "video/mp4")},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


def send_webhook(client, event_type, session_id, metadata=None, secret=WEBHOOK_SECRET):
    payload = json.dumps(
        {
            "id": "evt_test",
            "type": event_type,
            "data": {"object": {"id": session_id, "metadata": metadata or {}}},
        }
    ).encode()
    return client.post(
        f"{API}/payments/webhook",
        content=payload,
        headers={"Stripe-Signature": sign_payload(payload, secret), "Content-Type": "application/json"},
    )


def purchase(client, headers, course_id):
    """Checkout then confirm through a signed webhook; returns the checkout data."""
    response = client.post(
        f"{API}/payments/create-checkout-session", json={"courseId": course_id}, headers=headers
    )
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert send_webhook(client, "checkout.session.completed", data["sessionId"]).status_code == 200
    return data


@pytest.fixture
def instructor(client):
    return signup(client, "Ada Instructor", "ada@example.com", role="instructor")


@pytest.fixture
def student(client):
    return signup(client, "Sam Student", "sam@example.com")


@pytest.fixture
def other_student(client):
    return signup(client, "Kim Student", "kim@example.com")


@pytest.fixture
def course_with_lectures(client, instructor):
    """Course with lectures 1 (preview), 2 and 3."""
    course = create_course(client, instructor["headers"])
    lectures = [
        add_lecture(client, instructor["headers"], course["id"], "Intro", is_preview=True),
        add_lecture(client, instructor["headers"], course["id"], "Variables"),
        add_lecture(client, instructor["headers"], course["id"], "Functions"),
    ]
    return course, lectures
