# Import necessary libraries
import logging
import os
import re
from urllib.parse import urlparse

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query
from starlette.responses import PlainTextResponse, Response

from format_converter import ConversionError, OutputFormat, render
from url_fetcher import URLValidationError, retrieve, validate_url

# Load environment variables from .env file
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Configuration from environment variables with defaults
SERVER_HOST = os.getenv("SERVER_HOST", "0.0.0.0")  # nosec B104
SERVER_PORT = int(os.getenv("SERVER_PORT", "8000"))

FILENAME_PATTERN = re.compile(r"[^A-Za-z0-9.-]+")

app = FastAPI(title="Page Extractor")


def download_filename(url: str, fmt: OutputFormat) -> str:
    """Build an attachment filename from the URL host, e.g. example.com.pdf."""
    host = urlparse(url).hostname or "content"
    return f"{FILENAME_PATTERN.sub('-', host)}.{fmt.extension}"


@app.get("/health")
async def health() -> PlainTextResponse:
    """Liveness check."""
    return PlainTextResponse("ok")


@app.get("/{url:path}")
async def extract_and_convert(
    url: str,
    format: str = Query(OutputFormat.MARKDOWN.value),
) -> Response:
    """Fetch a URL, extract its main content and return it in one format.

    Example: GET /https://example.com?format=paginated-document

    Args:
        url: The full URL to extract
        format: One of the OutputFormat values (default markdown)

    Returns:
        Response carrying the rendered payload with the format's media type

    Raises:
        HTTPException: 400 for an invalid URL or format, 500 when rendering fails
    """
    try:
        url = validate_url(url)
    except URLValidationError as e:
        logger.warning("URL validation failed: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    try:
        output_format = OutputFormat(format)
    except ValueError:
        logger.warning("Unknown output format requested: %s", format)
        allowed = ", ".join(f.value for f in OutputFormat)
        raise HTTPException(
            status_code=400,
            detail=f"Unknown format '{format}'. Expected one of: {allowed}",
        )

    logger.info("GET request for URL: %s (format=%s)", url, output_format.value)

    # retrieve() never raises; failures come back as simulated content
    record = await retrieve(url)
    if record.simulated:
        logger.warning("Serving simulated content for %s", url)

    try:
        payload = render(record, output_format)
    except ConversionError as e:
        logger.error("Conversion failed for %s: %s", url, e)
        raise HTTPException(
            status_code=500,
            detail=f"{e}. Please try again.",
        )

    headers = {"X-Content-Simulated": "true" if record.simulated else "false"}
    if output_format in (OutputFormat.PAGINATED_DOCUMENT, OutputFormat.STYLED_FRAGMENT):
        filename = download_filename(url, output_format)
        headers["Content-Disposition"] = f'attachment; filename="{filename}"'

    return Response(
        content=payload,
        media_type=output_format.media_type,
        headers=headers,
    )


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting page extractor server on port %d", SERVER_PORT)
    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)
