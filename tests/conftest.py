import pytest
from typing import Callable, Generator
from unittest.mock import MagicMock

import httpx
from fastapi.testclient import TestClient

from storefront import config
from storefront.app_setup.factory import create_app

SERVICE_KEY = "test-service-key"
SUPABASE_URL = "https://sb.example.test"
PAYMENT_API_URL = "https://pay.example.test"
XENDIT_BASE_URL = "https://xendit.example.test"
TURNSTILE_URL = "https://turnstile.example.test/siteverify"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)

# Configuration de test: secrets factices, aucune maintenance, pas de Redis
@pytest.fixture(autouse=True)
def _test_config(monkeypatch):
    monkeypatch.delenv("RATE_LIMIT_DISABLED", raising=False)
    monkeypatch.delenv("USE_FAKE_REDIS_FOR_TESTS", raising=False)
    monkeypatch.setattr(config, "SERVICE_API_KEY", SERVICE_KEY)
    monkeypatch.setattr(config, "SUPABASE_URL", SUPABASE_URL)
    monkeypatch.setattr(config, "SUPABASE_SERVICE_ROLE_KEY", "service-role-key")
    monkeypatch.setattr(config, "PAYMENT_API_URL", PAYMENT_API_URL)
    monkeypatch.setattr(config, "XENDIT_BASE_URL", XENDIT_BASE_URL)
    monkeypatch.setattr(config, "XENDIT_SECRET_KEY", "xnd_development_test")
    monkeypatch.setattr(config, "XENDIT_WEBHOOK_TOKEN", "")
    monkeypatch.setattr(config, "TURNSTILE_SECRET", "turnstile-secret")
    monkeypatch.setattr(config, "TURNSTILE_VERIFY_URL", TURNSTILE_URL)
    monkeypatch.setattr(config, "PAYMENT_RETURN_URL", "")
    monkeypatch.setattr(config, "MAINTENANCE_AUTH", False)
    monkeypatch.setattr(config, "MAINTENANCE_PRODUCT", False)
    monkeypatch.setattr(config, "COOKIE_SECURE", False)
    monkeypatch.setattr(config, "RATE_LIMIT_REDIS_URL", "")

# Mock database dependency for all tests
@pytest.fixture(autouse=True)
def mock_db_dependency(monkeypatch):
    """Aucun test ne doit joindre Supabase: les clients sont remplacés par des MagicMock."""
    monkeypatch.setattr("storefront.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: MagicMock())

@pytest.fixture()
def app():
    # Une app par test: compteurs de rate limiting et métriques neufs
    return create_app()

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture()
def upstream(app) -> Callable:
    """
    Installe un amont simulé: upstream(handler) remplace app.state.http_client
    par un httpx.AsyncClient(MockTransport). Retourne la liste des requêtes reçues.
    """
    def _install(handler):
        calls = []

        def _recording(request: httpx.Request):
            calls.append(request)
            return handler(request)

        app.state.http_client = httpx.AsyncClient(transport=httpx.MockTransport(_recording))
        return calls

    return _install
