"""
The Villagers Backend — Upload Encoding Service
=================================================

What:  Validates an uploaded image and turns it into an inline data URL.
How:   Size check, then the real type is read from the file's header bytes
       with python-magic, then `data:<mime>;base64,<payload>`.
Who:   ContentService for photo (required image) and food (optional image).

Storage Model:
    Images are NOT written to disk or object storage. The data URL string is
    stored in the content row's `image_url` column and served back as-is,
    so an <img src> works without any file endpoint.

Type Detection:
    The multipart content type and the filename are client-supplied and are
    never trusted. libmagic matches the leading bytes against known file
    signatures (PNG starts with 89 50 4E 47, JPEG with FF D8 FF), and the
    detected type is the one embedded in the data URL.
"""

import base64
import logging
from typing import Optional

import magic

from villagers.config import settings
from villagers.exceptions import ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
ALLOWED_MIME_TYPES = {
    "image/png",
    "image/jpeg",
    "image/webp",
    "image/gif",
}


class UploadService:
    """Validation and data-URL encoding for uploaded images."""

    def __init__(self, max_size: Optional[int] = None):
        self.max_size = max_size or settings.max_upload_size

    def detect_mime_type(self, content: bytes, filename: Optional[str] = None) -> str:
        """
        Determine the MIME type from the file content itself.

        Args:
            content:  Raw bytes of the upload
            filename: Original filename (for error messaging only)

        Raises:
            ValidationError if the detected type is not an allowed image type.
        """
        mime_type = magic.from_buffer(content, mime=True)

        if mime_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                message=(
                    f"File content type '{mime_type}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_MIME_TYPES))}"
                ),
                field="image",
                context={"detected_mime": mime_type, "filename": filename},
            )
        return mime_type

    def validate_size(self, content: bytes) -> None:
        if not content:
            raise ValidationError(message="Uploaded file is empty", field="image")

        if len(content) > self.max_size:
            max_mb = self.max_size / (1024 * 1024)
            raise ValidationError(
                message=f"File is too large ({len(content) / (1024 * 1024):.1f}MB). Maximum is {max_mb:.0f}MB.",
                field="image",
                context={"max_size": self.max_size, "actual_size": len(content)},
            )

    def to_data_url(
        self,
        filename: Optional[str],
        content: bytes,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Validate and encode an upload.

        `content_type` is the client's claim; it is only compared against the
        detected type for logging.

        Returns:
            "data:<detected mime>;base64,<payload>"

        Raises:
            ValidationError: empty, too large, or not an allowed image type.
        """
        self.validate_size(content)
        mime_type = self.detect_mime_type(content, filename)

        declared = (content_type or "").split(";")[0].strip().lower()
        if declared and declared != mime_type:
            logger.info("Upload %s declared as %s but detected as %s", filename, declared, mime_type)

        encoded = base64.b64encode(content).decode("ascii")
        logger.debug("Encoded upload %s (%s, %d bytes)", filename or "<unnamed>", mime_type, len(content))
        return f"data:{mime_type};base64,{encoded}"


# ── Singleton Instance ────────────────────────────────────────────────────
upload_service = UploadService()
