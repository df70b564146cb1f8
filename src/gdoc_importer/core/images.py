"""Image references found in a document's HTML export."""

from dataclasses import dataclass

from bs4 import BeautifulSoup
from loguru import logger


@dataclass(frozen=True)
class ImageRef:
    """An image referenced by a document."""

    url: str
    alt: str | None = None
    inline_object_id: str | None = None


def extract_image_refs(html: str) -> list[ImageRef]:
    """Collect ``<img>`` references from exported HTML, in document order.

    Embedded ``data:`` images are skipped; they have no fetchable URL.
    """
    soup = BeautifulSoup(html, "html.parser")
    refs: list[ImageRef] = []
    for img in soup.find_all("img"):
        src = img.get("src")
        if not src or src.startswith("data:"):
            continue
        alt = img.get("alt") or None
        refs.append(ImageRef(url=src, alt=alt, inline_object_id=img.get("data-inline-object-id")))
    logger.debug("Found {} image reference(s) in HTML export", len(refs))
    return refs
