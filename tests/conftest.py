"""Pytest configuration and fixtures for test suite."""

import os
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Set test environment BEFORE any other imports
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("S3_BUCKET_NAME", "test-bucket")

# Make the top-level modules importable without installing the project
root_path = Path(__file__).parent.parent
if str(root_path) not in sys.path:
    sys.path.insert(0, str(root_path))


CLEAN_CARD_LINES = [
    "Jane Doe",
    "Senior Engineer",
    "Acme Solutions Inc",
    "jane.doe@acme.com",
    "555-123-4567",
    "www.acme.com",
    "123 Main St, Suite 400",
]

# 1x1 transparent PNG
PNG_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


@pytest.fixture
def clean_card_lines():
    return list(CLEAN_CARD_LINES)


@pytest.fixture
def png_data_url():
    return f"data:image/png;base64,{PNG_BASE64}"


@pytest.fixture
def flask_app():
    import app as app_module
    app_module.app.config["TESTING"] = True
    return app_module


@pytest.fixture
def client(flask_app):
    return flask_app.app.test_client()


@pytest.fixture
def mock_model(monkeypatch):
    """Replace the vision model with a mock whose reply text can be set per test."""
    import app as app_module

    model = MagicMock()
    model.generate_content.return_value = MagicMock(text="{}")
    monkeypatch.setattr(app_module, "get_model", lambda: model)
    return model


@pytest.fixture
def mock_s3_client(monkeypatch):
    """Replace the S3 client with a mock."""
    import app as app_module

    s3 = MagicMock()
    monkeypatch.setattr(app_module, "get_s3_client", lambda: s3)
    return s3
