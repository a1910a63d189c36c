"""Tests for Firestore client construction failures."""

import firebase_admin
import pytest
from google.auth import exceptions as google_auth_exceptions

from transit_civic.config import firebase as firebase_config
from transit_civic.core.settings import Settings

pytestmark = pytest.mark.unit


def _settings(**overrides) -> Settings:
    return Settings(USE_MOCK_DB=False, **overrides)


class TestCreateFirestoreClient:

    def test_missing_default_credentials(self, monkeypatch):
        def no_credentials():
            raise google_auth_exceptions.DefaultCredentialsError("Your default credentials were not found.")

        monkeypatch.setattr(firebase_admin, "_apps", {"[DEFAULT]": object()})
        monkeypatch.setattr(firebase_config.firestore, "client", no_credentials)

        with pytest.raises(RuntimeError, match="No credentials found"):
            firebase_config.create_firestore_client(_settings())

    def test_missing_credentials_file(self, monkeypatch, tmp_path):
        monkeypatch.setattr(firebase_admin, "_apps", {})

        with pytest.raises(RuntimeError, match="Credentials file not found"):
            firebase_config.create_firestore_client(_settings(FIREBASE_CREDENTIALS_PATH=str(tmp_path / "absent.json")))

    def test_credentials_file_missing_fields(self, monkeypatch, tmp_path):
        cred_file = tmp_path / "service-account.json"
        cred_file.write_text('{"type": "service_account"}')
        monkeypatch.setattr(firebase_admin, "_apps", {})

        with pytest.raises(RuntimeError, match="Invalid credentials file"):
            firebase_config.create_firestore_client(_settings(FIREBASE_CREDENTIALS_PATH=str(cred_file)))
