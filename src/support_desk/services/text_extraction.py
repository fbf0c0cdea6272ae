"""Text extraction for knowledge base uploads.

Dispatches on the MIME type: images go to a vision model, PDFs to the
document model, plain text is decoded as-is and other text formats are
converted to markdown.
"""

from support_desk.errors import InternalError
from support_desk.interfaces.llm import LLMInterface
from support_desk.logging import get_logger
from support_desk.models.llm import ModelTier, PromptMessage, PromptPart
from support_desk.services.prompts import (
    HTML_TO_MARKDOWN_INSTRUCTION,
    HTML_TO_MARKDOWN_SYSTEM_PROMPT,
    IMAGE_SYSTEM_PROMPT,
    PDF_INSTRUCTION,
    PDF_SYSTEM_PROMPT,
)

__all__ = [
    "SUPPORTED_IMAGE_TYPES",
    "TextExtractor",
]

logger = get_logger(__name__)

SUPPORTED_IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/webp", "image/gif"})


class TextExtractor:
    """Turns uploaded bytes into indexable text.

    Example:
        extractor = TextExtractor(llm)
        text = await extractor.extract(data, "application/pdf", "manual.pdf")
    """

    def __init__(self, llm: LLMInterface) -> None:
        self._llm = llm

    @staticmethod
    def kind_of(mime_type: str) -> str | None:
        """Extraction route for a MIME type, None when unsupported."""
        lowered = mime_type.lower()
        if lowered in SUPPORTED_IMAGE_TYPES:
            return "image"
        if "pdf" in lowered:
            return "pdf"
        if "text" in lowered:
            return "text"
        return None

    def supports(self, mime_type: str) -> bool:
        return self.kind_of(mime_type) is not None

    async def extract(
        self,
        data: bytes,
        mime_type: str,
        filename: str,
        url: str | None = None,
    ) -> str:
        """Extract text from a file.

        Args:
            data: Raw file bytes
            mime_type: Resolved MIME type
            filename: Original filename, forwarded to the document model
            url: Retrieval URL of the stored blob, if any

        Returns:
            Extracted text

        Raises:
            InternalError: If the MIME type is not supported
        """
        lowered = mime_type.lower()
        kind = self.kind_of(lowered)

        if kind == "image":
            text = await self._extract_image(data, lowered, url)
        elif kind == "pdf":
            text = await self._extract_pdf(data, lowered, filename, url)
        elif kind == "text":
            text = await self._extract_text(data, lowered)
        else:
            logger.warning("text_extraction_unsupported", mime_type=mime_type, filename=filename)
            raise InternalError("Unsupported MIME type")

        logger.debug("text_extracted", kind=kind, filename=filename, chars=len(text))
        return text

    async def _extract_image(self, data: bytes, mime_type: str, url: str | None) -> str:
        message = PromptMessage(
            role="user",
            parts=[PromptPart(type="image", data=data, url=url, mime_type=mime_type)],
        )
        return await self._llm.generate(IMAGE_SYSTEM_PROMPT, [message], tier=ModelTier.FAST)

    async def _extract_pdf(
        self,
        data: bytes,
        mime_type: str,
        filename: str,
        url: str | None,
    ) -> str:
        message = PromptMessage(
            role="user",
            parts=[
                PromptPart(
                    type="file",
                    data=data,
                    url=url,
                    mime_type=mime_type,
                    filename=filename,
                ),
                PromptPart.of_text(PDF_INSTRUCTION),
            ],
        )
        return await self._llm.generate(PDF_SYSTEM_PROMPT, [message], tier=ModelTier.DOCUMENT)

    async def _extract_text(self, data: bytes, mime_type: str) -> str:
        text = data.decode("utf-8", errors="replace")
        if mime_type == "text/plain":
            return text

        message = PromptMessage(
            role="user",
            parts=[PromptPart.of_text(text), PromptPart.of_text(HTML_TO_MARKDOWN_INSTRUCTION)],
        )
        return await self._llm.generate(
            HTML_TO_MARKDOWN_SYSTEM_PROMPT, [message], tier=ModelTier.FAST
        )
