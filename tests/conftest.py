import pytest

from config import Config
from tests.fixtures.mock_clients import FlexibleModelClient
from tests.fixtures.responses import H1_2025_CSV, H2_2024_CSV, GEMINI_OK_RESPONSE


@pytest.fixture
def reference_files(tmp_path):
    """Two reference datasets written to a temp directory."""
    h1 = tmp_path / "cge_hh_h12025.csv"
    h2 = tmp_path / "cge_hh_h22024.csv"
    h1.write_text(H1_2025_CSV, encoding="utf-8")
    h2.write_text(H2_2024_CSV, encoding="utf-8")
    return [str(h1), str(h2)]


@pytest.fixture
def config(reference_files):
    """Standard Config for testing."""
    return Config(api_key="test-key", reference_files=reference_files)


@pytest.fixture
def model_client():
    """Model client that answers 'OK' once."""
    return FlexibleModelClient(responses=[GEMINI_OK_RESPONSE])


@pytest.fixture
def configured_app(config, model_client):
    """Pre-configured app with the mocked model client."""
    from fastapi.testclient import TestClient
    from main import create_app

    app = create_app(config, client=model_client)

    with TestClient(app) as client:
        yield client
