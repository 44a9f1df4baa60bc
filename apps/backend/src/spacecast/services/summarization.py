"""Gemini-backed audio summarization."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from spacecast.errors import SummarizationError
from spacecast.prompts import PROMPTS
from spacecast.services.file_upload import DEFAULT_BASE_URL, UploadedFile

logger = logging.getLogger(__name__)

_PROMPT_PREVIEW_CHARS = 100


class GeminiSummarizer:
    """Generates a text summary for an uploaded audio file."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        prompts: dict[str, str] | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 600.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("Google API key is required")
        self._api_key = api_key
        self.model = model
        self.prompts = dict(prompts or PROMPTS)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def resolve_prompt(
        self,
        prompt_type: str | None = None,
        custom_prompt: str | None = None,
    ) -> str:
        """Pick the prompt: custom text, then a known type, then the default."""
        if custom_prompt:
            return custom_prompt
        if prompt_type and prompt_type in self.prompts:
            return self.prompts[prompt_type]
        return self.prompts["default"]

    def available_prompts(self) -> dict[str, str]:
        """Prompt names mapped to a short preview of each template."""
        return {
            name: text[:_PROMPT_PREVIEW_CHARS] + "..."
            for name, text in self.prompts.items()
        }

    async def summarize(
        self,
        file_ref: UploadedFile,
        prompt_type: str | None = None,
        custom_prompt: str | None = None,
    ) -> str:
        """Summarize an uploaded file.

        Args:
            file_ref: Gemini file reference (URI and MIME type).
            prompt_type: Name of a predefined prompt.
            custom_prompt: Free-form prompt, takes precedence over the type.

        Returns:
            The generated summary text.

        Raises:
            SummarizationError: If the request fails or yields no text.
        """
        prompt = self.resolve_prompt(prompt_type, custom_prompt)
        payload = {
            "contents": [
                {
                    "parts": [
                        {"text": prompt},
                        {"file_data": {"mime_type": file_ref.mime_type, "file_uri": file_ref.uri}},
                    ]
                }
            ]
        }

        logger.info("Generating summary for %s with %s", file_ref.uri, self.model)
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers={"x-goog-api-key": self._api_key},
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/v1beta/models/{self.model}:generateContent",
                    json=payload,
                )
            except httpx.RequestError as e:
                raise SummarizationError(f"Failed to connect to Gemini API: {e}") from e

        if response.status_code != 200:
            raise SummarizationError(f"Gemini API returned error: {response.text}")

        text = self._extract_text(response.json())
        logger.info("Summary generated successfully.")
        return text

    @staticmethod
    def _extract_text(data: dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates:
            reason = (data.get("promptFeedback") or {}).get("blockReason")
            if reason:
                raise SummarizationError(f"Prompt was blocked: {reason}")
            raise SummarizationError("Gemini API returned no candidates")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        if not text:
            raise SummarizationError("Gemini API returned an empty summary")
        return text
