# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""HTTP client for the syllabus extraction service.

The extraction service reads an uploaded document and returns structured
syllabus data. This client only posts the file reference and validates
the JSON that comes back.
"""

import logging

import httpx
from pydantic import ValidationError

from src.core.config.settings import ExtractionSettings, get_settings
from src.domains.syllabus.errors import ExtractionError, ExtractionTimeoutError
from src.models.extraction import ExtractedSyllabus

logger = logging.getLogger(__name__)


class ExtractionClient:
    """Client for the extraction service.

    Attributes:
        settings: Extraction service settings.

    Example:
        client = ExtractionClient()
        extracted = await client.extract("uploads/u1/syllabus.pdf", "America/Chicago")
        items = extracted.to_staging_items()
    """

    def __init__(
        self,
        settings: ExtractionSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the extraction client.

        Args:
            settings: Extraction settings; defaults to application settings.
            transport: Optional transport, used to stub the service in tests.
        """
        self.settings = settings or get_settings().extraction
        self._transport = transport

    def _handle_response(self, response: httpx.Response) -> ExtractedSyllabus:
        """Validate a response and parse the extracted document."""
        if response.status_code != 200:
            try:
                body = response.json()
            except ValueError:
                body = None
            detail = body.get("detail", response.text) if isinstance(body, dict) else response.text
            raise ExtractionError(
                f"Extraction service returned {response.status_code}: {detail}"
            )

        try:
            return ExtractedSyllabus.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ExtractionError(f"Extraction service returned invalid data: {e}") from e

    async def extract(self, source_file_ref: str, timezone: str) -> ExtractedSyllabus:
        """Extract structured syllabus data from an uploaded file.

        Args:
            source_file_ref: Reference to the uploaded file.
            timezone: IANA timezone used to resolve relative dates.

        Returns:
            The extracted syllabus.

        Raises:
            ExtractionTimeoutError: If the service does not answer in time.
            ExtractionError: On transport errors or unusable responses.
        """
        request_body = {
            "source_file_ref": source_file_ref,
            "timezone": timezone,
            "model": self.settings.model,
        }

        logger.info("Requesting extraction: source=%s", source_file_ref)
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.timeout,
                headers={"Content-Type": "application/json", **self.settings.auth_headers},
                transport=self._transport,
            ) as client:
                response = await client.post(self.settings.extract_url, json=request_body)
        except httpx.TimeoutException as e:
            logger.warning("Extraction timed out: source=%s", source_file_ref)
            raise ExtractionTimeoutError(
                f"Extraction timed out after {self.settings.timeout:g}s"
            ) from e
        except httpx.HTTPError as e:
            logger.warning("Extraction request failed: source=%s, error=%s", source_file_ref, e)
            raise ExtractionError(f"Extraction request failed: {e}") from e

        extracted = self._handle_response(response)
        logger.info(
            "Extraction finished: source=%s, has_course=%s, assignments=%d",
            source_file_ref,
            extracted.course is not None,
            len(extracted.assignments),
        )
        return extracted
