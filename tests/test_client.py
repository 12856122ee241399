"""Unit tests for the console client."""

from unittest.mock import MagicMock, patch

import pytest
import requests
from rich.console import Console

from client import fetch_content, main, show_stats


def _response(text: str, simulated: bool = False) -> MagicMock:
    response = MagicMock()
    response.text = text
    response.headers = {"X-Content-Simulated": "true" if simulated else "false"}
    return response


class TestFetchContent:
    """Tests for fetch_content."""

    def test_requests_format(self) -> None:
        """Test that the page URL is appended to the server URL."""
        with patch("client.requests.get", return_value=_response("# Title")) as mock_get:
            assert fetch_content("https://example.com/a", "plain-text") == "# Title"

        args, kwargs = mock_get.call_args
        assert args[0].endswith("/https://example.com/a")
        assert kwargs["params"] == {"format": "plain-text"}

    def test_connection_error_exits(self) -> None:
        """Test that an unreachable server exits with status 1."""
        with patch(
            "client.requests.get",
            side_effect=requests.exceptions.ConnectionError("refused"),
        ):
            with pytest.raises(SystemExit) as exc_info:
                fetch_content("https://example.com/")
        assert exc_info.value.code == 1

    def test_http_error_exits(self) -> None:
        """Test that an error status exits with status 1."""
        response = _response("")
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("400")
        with patch("client.requests.get", return_value=response):
            with pytest.raises(SystemExit):
                fetch_content("example.com")


class TestDisplay:
    """Tests for console output."""

    def test_show_stats(self) -> None:
        """Test that statistics follow the text."""
        console = Console(record=True, width=100)
        show_stats("one two three", console)
        output = console.export_text()
        assert "one two three" in output
        assert "Words" in output
        assert "1 min" in output

    def test_main_text_mode(self) -> None:
        """Test that --format text asks for plain text."""
        with (
            patch("client.fetch_content", return_value="some text") as mock_fetch,
            patch("client.show_stats") as mock_stats,
        ):
            main(["https://example.com/", "--format", "text"])
        mock_fetch.assert_called_once_with("https://example.com/", "plain-text")
        mock_stats.assert_called_once()

    def test_main_markdown_mode(self) -> None:
        """Test that markdown is rendered by default."""
        with (
            patch("client.fetch_content", return_value="# Heading") as mock_fetch,
            patch("client.show_markdown") as mock_show,
        ):
            main(["https://example.com/"])
        mock_fetch.assert_called_once_with("https://example.com/", "markdown")
        mock_show.assert_called_once()
