"""
Source document and video intake for carousel generation.

PDFs travel to the model as inline data so it can read charts and layout,
plain text and markdown are appended to the topic, and YouTube links found in
the topic are passed as file references.
"""
import base64
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiofiles
import structlog

from carouselai.core.exceptions import ValidationError

logger = structlog.get_logger(__name__)

SUPPORTED_EXTENSIONS = {"pdf", "txt", "md"}

YOUTUBE_URL_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.)?(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/shorts/)[a-zA-Z0-9_-]{11}"
)


@dataclass
class UploadedDocument:
    """Document attached to a carousel generation request."""
    name: str
    type: str
    content: str = ""
    base64: Optional[str] = None
    mime_type: Optional[str] = None
    size: int = 0

    @property
    def is_pdf(self) -> bool:
        return self.type == "pdf" and bool(self.base64)


def process_document(name: str, data: bytes) -> UploadedDocument:
    """Build an ``UploadedDocument`` from raw upload bytes."""
    extension = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    if extension not in SUPPORTED_EXTENSIONS:
        raise ValidationError(f"Unsupported file type: {extension}", field="document")

    if extension == "pdf":
        document = UploadedDocument(
            name=name,
            type="pdf",
            base64=base64.b64encode(data).decode("ascii"),
            mime_type="application/pdf",
            size=len(data),
        )
    else:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError("Failed to read text file", field="document") from e
        document = UploadedDocument(name=name, type=extension, content=text, size=len(data))

    logger.info("document_processed", name=name, type=document.type, size=document.size)
    return document


async def load_document(path: str) -> UploadedDocument:
    """Read a document from disk."""
    async with aiofiles.open(path, "rb") as f:
        data = await f.read()
    return process_document(os.path.basename(path), data)


def extract_youtube_urls(text: str) -> List[str]:
    return YOUTUBE_URL_PATTERN.findall(text or "")


def normalize_youtube_url(url: str) -> str:
    if not url.startswith("http"):
        return f"https://{url}"
    return url


def effective_topic(topic: str, document: Optional[UploadedDocument]) -> str:
    """Topic text with any plain-text document content appended."""
    if document is None or not document.content:
        return topic
    if topic:
        return f"{topic}\n\n--- Document Content ---\n{document.content}"
    return document.content


def build_input_parts(topic: str, document: Optional[UploadedDocument]) -> List[Dict[str, Any]]:
    """Multimodal parts sent ahead of the prompt.

    A PDF wins over video links; with neither the prompt goes alone.
    """
    if document is not None and document.is_pdf:
        return [
            {
                "inline_data": {
                    "mime_type": document.mime_type,
                    "data": base64.b64decode(document.base64),
                }
            }
        ]

    urls = extract_youtube_urls(topic)
    return [{"file_data": {"file_uri": normalize_youtube_url(url)}} for url in urls]
