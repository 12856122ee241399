"""Tests for the HTTP surface in server.py."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from document_record import DocumentRecord
from format_converter import ConversionError, OutputFormat
from server import app, download_filename


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture
def record() -> DocumentRecord:
    return DocumentRecord(
        title="Served Page",
        source_url="https://example.com/page",
        content="<h2>Heading</h2><p>Served paragraph.</p>",
    )


class TestHealth:
    """Tests for the health endpoint."""

    def test_health(self, client: TestClient) -> None:
        """Test that the health endpoint responds with ok."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.text == "ok"


class TestExtractEndpoint:
    """Tests for GET /{url}."""

    def test_markdown_default(self, client: TestClient, record: DocumentRecord) -> None:
        """Test that markdown is returned by default."""
        with patch("server.retrieve", new_callable=AsyncMock, return_value=record) as mock:
            response = client.get("/https://example.com/page")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/markdown")
        assert "# Served Page" in response.text
        assert "## Heading" in response.text
        assert response.headers["x-content-simulated"] == "false"
        mock.assert_awaited_once_with("https://example.com/page")

    def test_pdf_download(self, client: TestClient, record: DocumentRecord) -> None:
        """Test that the paginated document is served as a PDF attachment."""
        with patch("server.retrieve", new_callable=AsyncMock, return_value=record):
            response = client.get(
                "/https://example.com/page", params={"format": "paginated-document"}
            )

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")
        assert 'filename="example.com.pdf"' in response.headers["content-disposition"]

    def test_plain_text(self, client: TestClient, record: DocumentRecord) -> None:
        """Test the plain text format."""
        with patch("server.retrieve", new_callable=AsyncMock, return_value=record):
            response = client.get(
                "/https://example.com/page", params={"format": "plain-text"}
            )
        assert response.text == "Heading\nServed paragraph."

    def test_invalid_url(self, client: TestClient) -> None:
        """Test that a URL without http(s) scheme returns 400."""
        with patch("server.retrieve", new_callable=AsyncMock) as mock:
            response = client.get("/example.com")
        assert response.status_code == 400
        assert "Invalid URL scheme" in response.json()["detail"]
        mock.assert_not_awaited()

    def test_unknown_format(self, client: TestClient) -> None:
        """Test that an unknown format returns 400."""
        with patch("server.retrieve", new_callable=AsyncMock) as mock:
            response = client.get("/https://example.com/", params={"format": "epub"})
        assert response.status_code == 400
        assert "markdown" in response.json()["detail"]
        mock.assert_not_awaited()

    def test_conversion_error(self, client: TestClient, record: DocumentRecord) -> None:
        """Test that conversion failures return a retryable 500."""
        with (
            patch("server.retrieve", new_callable=AsyncMock, return_value=record),
            patch(
                "server.render",
                side_effect=ConversionError("Failed to generate markdown: boom"),
            ),
        ):
            response = client.get("/https://example.com/page")
        assert response.status_code == 500
        assert "try again" in response.json()["detail"]

    def test_simulated_flag(self, client: TestClient) -> None:
        """Test that simulated records are flagged in a header."""
        simulated = DocumentRecord(
            title="Content from example.com",
            source_url="https://example.com/",
            content="<p>placeholder</p>",
            simulated=True,
        )
        with patch("server.retrieve", new_callable=AsyncMock, return_value=simulated):
            response = client.get("/https://example.com/")
        assert response.status_code == 200
        assert response.headers["x-content-simulated"] == "true"


def test_download_filename() -> None:
    """Test that filenames are derived from the URL host."""
    assert download_filename("https://www.example.com/a/b", OutputFormat.STYLED_FRAGMENT) == "www.example.com.doc"
