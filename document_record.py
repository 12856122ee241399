"""Value types shared by the extraction and conversion modules.

A DocumentRecord is the single artifact handed from the extraction core to
its callers. Records are immutable: callers replace the whole record on each
extraction instead of patching fields.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone

NO_TITLE = "No title found"
AUTO_SIZE = "auto"


@dataclass(frozen=True)
class ImageInfo:
    """Metadata for one image found in the extracted content."""

    src: str
    alt: str = ""
    width: int | str = AUTO_SIZE
    height: int | str = AUTO_SIZE

    def to_dict(self) -> dict:
        return {
            "src": self.src,
            "alt": self.alt,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True)
class DocumentRecord:
    """Normalized result of extracting one URL.

    Attributes:
        title: Page title, never empty (NO_TITLE when the page has none).
        source_url: The URL the caller asked for.
        content: Serialized, normalized markup fragment.
        images: Image metadata in document order.
        extracted_at: Creation time (UTC).
        simulated: True when the content is synthetic placeholder content.
    """

    title: str
    source_url: str
    content: str
    images: tuple[ImageInfo, ...] = ()
    extracted_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    simulated: bool = False

    def __post_init__(self) -> None:
        if not self.title or not self.title.strip():
            object.__setattr__(self, "title", NO_TITLE)
        if not isinstance(self.images, tuple):
            object.__setattr__(self, "images", tuple(self.images))

    @property
    def has_content(self) -> bool:
        return bool(self.content and self.content.strip())

    @property
    def extracted_label(self) -> str:
        """Human-readable extraction time used in exported documents."""
        return self.extracted_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "url": self.source_url,
            "content": self.content,
            "images": [image.to_dict() for image in self.images],
            "timestamp": self.extracted_at.isoformat(),
            "simulated": self.simulated,
        }


@dataclass(frozen=True)
class ContentStats:
    """Basic reading statistics for a block of plain text."""

    word_count: int
    char_count: int
    reading_time_minutes: int

    def to_dict(self) -> dict:
        return {
            "wordCount": self.word_count,
            "charCount": self.char_count,
            "readingTimeMinutes": self.reading_time_minutes,
        }
