import os

# config é lido no import; precisa vir antes de qualquer import de commanda
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["INNGEST_INTERNAL_SECRET"] = "internal-secret"
os.environ["JOB_DISPATCHER"] = "local"
os.environ["UAZAPI_API_URL"] = "https://uazapi.test"
os.environ["UAZAPI_ADMIN_TOKEN"] = "admin-token"
os.environ["N8N_WEBHOOK_URL"] = "https://n8n.test/webhook/commanda"
os.environ["APP_URL"] = "https://app.test"
os.environ["N8N_ORDER_STATUS_WEBHOOK_URL"] = ""

import pytest  # noqa: E402

from tests.fixtures_data import build_session  # noqa: E402


@pytest.fixture
def db():
    session = build_session()
    try:
        yield session
    finally:
        session.close()
