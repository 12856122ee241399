"""URL retrieval pipeline with ordered fallback strategies.

This module fetches a page through a fixed, ordered list of strategies:
a direct request, several third-party relays, and finally a text-extraction
relay. The first strategy whose payload passes validation wins. When every
strategy fails, a labelled placeholder record is returned instead, so
retrieve() never raises to its caller.
"""

import logging
import os
from contextlib import nullcontext
from dataclasses import dataclass
from urllib.parse import quote, urlparse

import httpx

from document_record import DocumentRecord
from html_extractor import parse_html
from simulated_content import synthesize
from text_parser import parse_text

logger = logging.getLogger(__name__)

# Configuration from environment variables
RETRIEVAL_TIMEOUT = float(os.getenv("RETRIEVAL_TIMEOUT", "30"))
RETRIEVAL_USER_AGENT = os.getenv(
    "RETRIEVAL_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)
INCLUDE_IMAGES = os.getenv("INCLUDE_IMAGES", "true").lower() == "true"

MARKUP = "markup"
TEXT = "text"

SUCCESS = "success"
FAILURE = "failure"

MARKUP_MARKERS = ("<html", "<body", "<title>")
RELAY_PROVISIONAL_LENGTH = 500
TEXT_RELAY_MIN_LENGTH = 100

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


class URLFetchError(Exception):
    """Base exception for URL fetching errors."""

    pass


class URLValidationError(URLFetchError):
    """Raised when URL validation fails."""

    pass


class FetchError(URLFetchError):
    """Raised when a single retrieval strategy fails."""

    pass


def validate_url(url: str) -> str:
    """Validate URL format and scheme.

    Callers run this before retrieve(); the pipeline itself assumes a
    valid http(s) URL.

    Args:
        url: URL string to validate

    Returns:
        The URL, stripped of surrounding whitespace

    Raises:
        URLValidationError: If URL is invalid or uses disallowed scheme
    """
    url = (url or "").strip()
    if not url:
        raise URLValidationError("URL cannot be empty")

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError as e:
        logger.error("Failed to parse URL: %s", e)
        raise URLValidationError(f"Invalid URL format: {e}") from e

    if parsed.scheme not in ("http", "https"):
        raise URLValidationError(
            f"Invalid URL scheme '{parsed.scheme}'. Only http and https are allowed."
        )

    if not hostname:
        raise URLValidationError("URL must contain a hostname")

    return url


@dataclass
class RetrievalAttempt:
    """Outcome of invoking one strategy for one URL."""

    strategy_id: str
    ordinal: int
    outcome: str
    error: Exception | None = None


class FetchStrategy:
    """One way of obtaining a page payload.

    Subclasses set name/kind/headers and may override request_url(),
    unwrap() and accept(). fetch() raises FetchError on any transport or
    HTTP failure.
    """

    name = "base"
    kind = MARKUP
    headers: dict[str, str] = {}

    def request_url(self, url: str) -> str:
        return url

    async def fetch(self, client: httpx.AsyncClient, url: str) -> str:
        target = self.request_url(url)
        logger.debug("Strategy %s requesting %s", self.name, target)

        try:
            response = await client.get(target, headers=self.headers)
        except httpx.TimeoutException as e:
            raise FetchError(
                f"{self.name} timed out after {RETRIEVAL_TIMEOUT}s"
            ) from e
        except httpx.RequestError as e:
            raise FetchError(f"{self.name} request failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise FetchError(
                f"HTTP {response.status_code}: {response.reason_phrase}"
            )

        return self.unwrap(response)

    def unwrap(self, response: httpx.Response) -> str:
        return response.text

    def accept(self, payload: str) -> bool:
        return bool(payload and payload.strip())

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class DirectStrategy(FetchStrategy):
    """Request the page itself with a browser-like header set."""

    name = "direct"
    headers = {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "User-Agent": RETRIEVAL_USER_AGENT,
        "Accept-Language": "en-US,en;q=0.9",
        "DNT": "1",
        "Upgrade-Insecure-Requests": "1",
    }


class RelayStrategy(FetchStrategy):
    """Request the page through a third-party content relay.

    Args:
        name: Identifier used in logs and attempts.
        template: Relay URL with a {url} placeholder.
        encode: Whether to percent-encode the target URL into the template.
    """

    headers = {
        "Accept": "application/json, text/plain, text/html, */*",
        "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    }

    def __init__(self, name: str, template: str, encode: bool = True) -> None:
        self.name = name
        self.template = template
        self.encode = encode

    def request_url(self, url: str) -> str:
        target = quote(url, safe=_URI_COMPONENT_SAFE) if self.encode else url
        return self.template.format(url=target)

    def accept(self, payload: str) -> bool:
        """Accept recognizable markup, or long non-markup payloads provisionally."""
        if not payload:
            return False
        if any(marker in payload for marker in MARKUP_MARKERS):
            return True
        if len(payload) > RELAY_PROVISIONAL_LENGTH:
            logger.info(
                "Relay %s returned non-standard HTML (%d chars), accepting provisionally",
                self.name,
                len(payload),
            )
            return True
        return False


class JSONRelayStrategy(RelayStrategy):
    """Relay that wraps the page in a JSON envelope."""

    def __init__(self, name: str, template: str, field: str = "contents") -> None:
        super().__init__(name, template, encode=True)
        self.field = field

    def unwrap(self, response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(f"{self.name} returned invalid JSON: {e}") from e

        contents = data.get(self.field) if isinstance(data, dict) else None
        if not isinstance(contents, str):
            raise FetchError(f"{self.name} response has no '{self.field}' text")
        return contents


class TextRelayStrategy(FetchStrategy):
    """Relay that returns extracted plain text instead of markup."""

    name = "jina-reader"
    kind = TEXT
    headers = {
        "Accept": "text/plain, */*",
        "User-Agent": "Mozilla/5.0 (compatible; ContentExtractor/1.0)",
    }

    def request_url(self, url: str) -> str:
        bare = url.split("://", 1)[-1]
        return f"https://r.jina.ai/http://{bare}"

    def accept(self, payload: str) -> bool:
        return bool(payload) and len(payload.strip()) > TEXT_RELAY_MIN_LENGTH


DEFAULT_STRATEGIES: tuple[FetchStrategy, ...] = (
    DirectStrategy(),
    JSONRelayStrategy("allorigins", "https://api.allorigins.win/get?url={url}"),
    RelayStrategy("corsproxy", "https://corsproxy.io/?{url}"),
    RelayStrategy("codetabs", "https://api.codetabs.com/v1/proxy?quest={url}"),
    RelayStrategy(
        "cors-anywhere", "https://cors-anywhere.herokuapp.com/{url}", encode=False
    ),
    RelayStrategy(
        "thingproxy", "https://thingproxy.freeboard.io/fetch/{url}", encode=False
    ),
    TextRelayStrategy(),
)


def _build_record(
    strategy: FetchStrategy, payload: str, url: str, include_images: bool
) -> DocumentRecord:
    if strategy.kind == TEXT:
        return parse_text(payload, url)
    return parse_html(payload, url, include_images=include_images)


async def _run_strategies(
    client: httpx.AsyncClient,
    url: str,
    strategies: tuple[FetchStrategy, ...] | list[FetchStrategy],
    include_images: bool,
) -> DocumentRecord:
    attempts: list[RetrievalAttempt] = []
    last_error: Exception | None = None

    for ordinal, strategy in enumerate(strategies, start=1):
        try:
            payload = await strategy.fetch(client, url)
        except Exception as e:
            logger.warning(
                "Strategy %d (%s) failed for %s: %s", ordinal, strategy.name, url, e
            )
            attempts.append(RetrievalAttempt(strategy.name, ordinal, FAILURE, e))
            last_error = e
            continue

        if not strategy.accept(payload):
            logger.warning(
                "Strategy %d (%s) returned an unusable payload (%d chars)",
                ordinal,
                strategy.name,
                len(payload or ""),
            )
            attempts.append(RetrievalAttempt(strategy.name, ordinal, FAILURE))
            continue

        attempts.append(RetrievalAttempt(strategy.name, ordinal, SUCCESS))
        logger.info(
            "Retrieved %s via strategy %d (%s), %d chars",
            url,
            ordinal,
            strategy.name,
            len(payload),
        )

        record = _build_record(strategy, payload, url, include_images)
        if not record.has_content:
            logger.warning("No content found in %s, using simulated content", url)
            return synthesize(url)
        return record

    logger.warning(
        "All %d retrieval strategies failed for %s, using simulated content",
        len(attempts),
        url,
    )
    return synthesize(url, last_error)


async def retrieve(
    url: str,
    *,
    strategies: tuple[FetchStrategy, ...] | list[FetchStrategy] | None = None,
    include_images: bool | None = None,
    client: httpx.AsyncClient | None = None,
) -> DocumentRecord:
    """Retrieve a page and extract its main content.

    Strategies run strictly one after another; a strategy is never retried
    and later strategies are not started once one succeeds.

    Args:
        url: A validated http(s) URL.
        strategies: Ordered strategies to try (defaults to DEFAULT_STRATEGIES).
        include_images: Whether to collect image metadata (defaults to the
            INCLUDE_IMAGES setting).
        client: Optional shared HTTP client; one is created when omitted.

    Returns:
        The extracted DocumentRecord, or a simulated record when retrieval
        fails. Never raises for retrieval or parsing failures.
    """
    if strategies is None:
        strategies = DEFAULT_STRATEGIES
    if include_images is None:
        include_images = INCLUDE_IMAGES

    logger.info("Retrieving URL: %s", url)

    try:
        if client is not None:
            http = nullcontext(client)
        else:
            http = httpx.AsyncClient(
                timeout=RETRIEVAL_TIMEOUT,
                follow_redirects=True,
                max_redirects=5,
            )
        async with http as active_client:
            return await _run_strategies(
                active_client, url, strategies, include_images
            )
    except Exception as e:
        logger.exception("Retrieval pipeline failed for %s: %s", url, e)
        return synthesize(url, e)
