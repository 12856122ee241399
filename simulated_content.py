"""Placeholder content for pages that could not be retrieved.

When every retrieval strategy fails, the pipeline substitutes a synthetic
DocumentRecord instead of raising. The placeholder is picked from four fixed
templates by looking at the URL path, and is always labelled as simulated so
it cannot be mistaken for the real page.
"""

import html
import logging
from datetime import datetime, timezone
from urllib.parse import urlparse

from document_record import DocumentRecord

logger = logging.getLogger(__name__)

SIMULATED_NOTICE_CLASS = "simulated-notice"
EXTRACTION_WARNING_CLASS = "extraction-warning"

CATEGORY_RULES = (
    ("blog", ("/blog", "/article")),
    ("product", ("/product", "/shop")),
    ("news", ("/news", "/press")),
)

BLOG_TEMPLATE = """
<h1>Latest Blog Post from {domain}</h1>
<p><strong>Published:</strong> {date}</p>
<p>This placeholder stands in for the blog post at {url}.</p>
<h2>Understanding Web Content Extraction</h2>
<p>Content extraction pulls the meaningful part of a web page out of its
navigation, advertising and layout markup so it can be read or exported on
its own.</p>
<h3>Key Features</h3>
<ul>
<li>Main content detection</li>
<li>Export to PDF, Word and Markdown</li>
<li>Word count and reading time statistics</li>
</ul>
<h2>How Extraction Works</h2>
<ol>
<li>URL validation</li>
<li>Content fetching, directly or through relays</li>
<li>HTML parsing and content identification</li>
<li>Cleaning and formatting of the extracted content</li>
<li>Export to the requested format</li>
</ol>
{warning}
<p class="{notice_class}"><em>Note: This is simulated content for demonstration purposes. The actual post from the specified URL would appear here.</em></p>
"""

PRODUCT_TEMPLATE = """
<h1>Product Information from {domain}</h1>
<div class="product-details">
<p><strong>Category:</strong> Web Development Tools</p>
<p><strong>Availability:</strong> In Stock</p>
</div>
<h2>Product Description</h2>
<p>This placeholder stands in for the product page at {url}.</p>
<h3>Highlights</h3>
<ul>
<li>Fast extraction</li>
<li>Multiple export formats</li>
<li>Works with most page layouts</li>
</ul>
<h2>Specifications</h2>
<table>
<tr><td><strong>Version</strong></td><td>2.0</td></tr>
<tr><td><strong>Platforms</strong></td><td>Web, Desktop</td></tr>
<tr><td><strong>Formats</strong></td><td>PDF, Word, Markdown, Text</td></tr>
</table>
{warning}
<p class="{notice_class}"><em>This is simulated content. Actual product details would be extracted from the specified URL.</em></p>
"""

NEWS_TEMPLATE = """
<h1>Breaking News from {domain}</h1>
<p><strong>Published:</strong> {timestamp}</p>
<p><strong>Category:</strong> Technology</p>
<div class="news-content">
<h2>Web Content Extraction Tool Launches</h2>
<p><strong>{domain}</strong> reports on a tool for extracting and formatting
web content, accessible at {url}.</p>
<h3>Key Points</h3>
<ul>
<li><strong>Content detection:</strong> finds the main article on a page</li>
<li><strong>Multi-format export:</strong> PDF, Word and Markdown</li>
<li><strong>Statistics:</strong> word count and reading time</li>
</ul>
<blockquote><p>"Extraction turns cluttered pages into readable documents," said an analyst.</p></blockquote>
{warning}
<p class="{notice_class}"><em>This is simulated content standing in for a news article. Actual news content would be extracted from the specified URL.</em></p>
</div>
"""

GENERAL_TEMPLATE = """
<h1>Content from {domain}</h1>
<p><strong>URL:</strong> {url}</p>
<p><strong>Extracted:</strong> {timestamp}</p>
<h2>About This Page</h2>
<p>This placeholder stands in for the page at {domain}.</p>
<h2>Export Options</h2>
<ol>
<li><strong>PDF:</strong> paginated document with tables and headings</li>
<li><strong>Word:</strong> styled document for editing</li>
<li><strong>Markdown:</strong> for documentation</li>
<li><strong>Plain text:</strong> for quick reuse</li>
</ol>
{warning}
<p class="{notice_class}"><em>Note: This is simulated content for demonstration purposes. The actual content from {url} would be displayed here.</em></p>
"""

TEMPLATES = {
    "blog": BLOG_TEMPLATE,
    "product": PRODUCT_TEMPLATE,
    "news": NEWS_TEMPLATE,
    "general": GENERAL_TEMPLATE,
}

GENERIC_REASONS = {
    "blog": "CORS restrictions",
    "product": "access restrictions",
    "news": "content access restrictions",
    "general": "CORS restrictions or security policies",
}

WARNING_TEMPLATE = """
<div class="{warning_class}">
<h3>⚠️ Content Extraction Failed</h3>
<p><strong>Reason:</strong> {reason}</p>
<p><strong>What happened:</strong> The website blocked direct access, or the
content could not be retrieved through the available proxy services (a CORS
or relay limitation).</p>
<p>This is demonstration content showing what the extraction would look like.</p>
</div>
"""


def classify_path(path: str) -> str:
    """Map a URL path to a template category."""
    for category, markers in CATEGORY_RULES:
        if any(marker in path for marker in markers):
            return category
    return "general"


def _warning_block(category: str, error: BaseException | None) -> str:
    if error is None:
        return ""
    reason = str(error).strip() or GENERIC_REASONS[category]
    return WARNING_TEMPLATE.format(
        warning_class=EXTRACTION_WARNING_CLASS,
        reason=html.escape(reason),
    )


def synthesize(
    url: str,
    error: BaseException | None = None,
    now: datetime | None = None,
) -> DocumentRecord:
    """Generate a labelled placeholder record for an unreachable URL.

    Args:
        url: The URL that could not be retrieved.
        error: The last retrieval error, quoted in a warning block if given.
        now: Creation time; defaults to the current UTC time.

    Returns:
        A complete DocumentRecord marked as simulated, with no images.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    try:
        parsed = urlparse(url)
        domain = parsed.hostname or url
        path = parsed.path
    except ValueError:
        domain, path = url, ""
    category = classify_path(path)

    content = TEMPLATES[category].format(
        domain=html.escape(domain),
        url=html.escape(url),
        date=now.strftime("%Y-%m-%d"),
        timestamp=now.strftime("%Y-%m-%d %H:%M:%S %Z").strip(),
        warning=_warning_block(category, error),
        notice_class=SIMULATED_NOTICE_CLASS,
    ).strip()

    logger.info(
        "Generated simulated %s content for %s (error: %s)", category, url, error
    )
    return DocumentRecord(
        title=f"Content from {domain}",
        source_url=url,
        content=content,
        extracted_at=now,
        simulated=True,
    )
