import argparse
import logging
import os
import sys

import requests
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from format_converter import stats

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Configuration from environment variables with defaults
SERVER_URL = os.getenv("SERVER_URL", "http://127.0.0.1:8000")
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "120"))

FORMATS = {
    "markdown": "markdown",
    "text": "plain-text",
}


def fetch_content(page_url: str, fmt: str = "markdown") -> str:
    """
    Asks the server to extract a page and returns the rendered payload.

    Args:
        page_url: The page to extract, e.g. https://example.com/blog/post
        fmt: Server format value (markdown or plain-text)

    Returns:
        The response body, or an empty string if the server sent nothing
    """
    url = f"{SERVER_URL}/{page_url}"

    logger.info("Sending request to %s", url)

    try:
        response = requests.get(url, params={"format": fmt}, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
    except requests.exceptions.Timeout:
        logger.error("Request timed out after %d seconds", REQUEST_TIMEOUT)
        print(f"Error: Request timed out after {REQUEST_TIMEOUT} seconds")
        sys.exit(1)
    except requests.exceptions.ConnectionError:
        logger.error("Failed to connect to server at %s", SERVER_URL)
        print(f"Error: Could not connect to server at {SERVER_URL}")
        print("Make sure the server is running: python server.py")
        sys.exit(1)
    except requests.exceptions.HTTPError as e:
        logger.error("HTTP error: %s", e)
        print(f"Error: Server returned error - {e}")
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        logger.error("Request failed: %s", e)
        print(f"Error: Request failed - {e}")
        sys.exit(1)

    if response.headers.get("X-Content-Simulated") == "true":
        logger.warning("Server could not reach %s; showing simulated content", page_url)

    content = response.text
    logger.info("Received response of length: %d", len(content))
    return content


def show_markdown(content: str, console: Console) -> None:
    console.print(Markdown(content))


def show_stats(content: str, console: Console) -> None:
    """Print plain text followed by word, character and reading-time counts."""
    console.print(content)

    result = stats(content)
    table = Table(title="Content statistics")
    table.add_column("Words", justify="right")
    table.add_column("Characters", justify="right")
    table.add_column("Reading time", justify="right")
    table.add_row(
        str(result.word_count),
        str(result.char_count),
        f"{result.reading_time_minutes} min",
    )
    console.print(table)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Extract the main content of a web page")
    parser.add_argument("url", help="http(s) URL of the page to extract")
    parser.add_argument(
        "--format",
        choices=sorted(FORMATS),
        default="markdown",
        help="markdown (rendered) or text (with statistics)",
    )
    args = parser.parse_args(argv)

    content = fetch_content(args.url, FORMATS[args.format])
    if not content:
        logger.warning("Server returned empty response")
        print("Warning: Server returned empty response")
        return

    console = Console()
    if args.format == "text":
        show_stats(content, console)
    else:
        show_markdown(content, console)


if __name__ == "__main__":
    main()
