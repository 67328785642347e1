"""
Analysis Engine - Vision Provider.

============================================================
PURPOSE
============================================================
Outbound seam to the vision-capable analysis model.

VisionProvider.analyze(prompt, attachments) -> raw text.
Every failure surfaces as a typed ProviderError:

- ProviderAuthError       missing key, rejected credentials,
                          rejected request
- ProviderTransientError  timeout, connection, rate limit, 5xx
- ProviderResponseError   answer without any text, or any other
                          SDK error (e.g. a response that fails
                          validation)

The orchestrator converts all of them into a fallback analysis.

============================================================
"""

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import anthropic

from core.config import ProviderSettings
from core.exceptions import (
    ProviderAuthError,
    ProviderError,
    ProviderResponseError,
    ProviderTransientError,
)


logger = logging.getLogger(__name__)


MEDIA_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".pdf": "application/pdf",
}


# =============================================================
# ATTACHMENTS
# =============================================================

@dataclass(frozen=True)
class Attachment:
    """One screenshot forwarded to the provider."""

    label: str
    """Timeframe label the screenshot belongs to."""

    media_type: str
    data: bytes

    @property
    def is_document(self) -> bool:
        return self.media_type == "application/pdf"

    def to_content_block(self) -> Dict[str, Any]:
        return {
            "type": "document" if self.is_document else "image",
            "source": {
                "type": "base64",
                "media_type": self.media_type,
                "data": base64.standard_b64encode(self.data).decode("ascii"),
            },
        }


def load_attachment(
    path: Union[str, Path],
    label: str,
    max_bytes: int = 20 * 1024 * 1024,
) -> Attachment:
    """
    Read a stored screenshot for forwarding.

    Raises:
        ProviderError: File missing, empty, too large or of an
            unsupported type
    """
    path = Path(path)
    media_type = MEDIA_TYPES.get(path.suffix.lower())
    if media_type is None:
        raise ProviderError(f"Unsupported attachment type: {path.suffix}", provider="attachment")

    try:
        size = path.stat().st_size
        if size == 0:
            raise ProviderError(f"Attachment is empty: {path.name}", provider="attachment")
        if size > max_bytes:
            raise ProviderError(
                f"Attachment {path.name} is {size} bytes, limit {max_bytes}",
                provider="attachment",
            )
        data = path.read_bytes()
    except OSError as e:
        raise ProviderError(f"Attachment not readable: {path.name}", provider="attachment", cause=e) from e

    return Attachment(label=label, media_type=media_type, data=data)


# =============================================================
# PROVIDER INTERFACE
# =============================================================

class VisionProvider(ABC):
    """Vision-capable analysis model."""

    name: str = "provider"

    @abstractmethod
    def analyze(self, prompt: str, attachments: Sequence[Attachment]) -> str:
        """
        Send prompt and attachments, return the raw text answer.

        Raises:
            ProviderError: Any failure to obtain an answer
        """


class AnthropicVisionProvider(VisionProvider):
    """
    Vision provider backed by the Anthropic Messages API.

    Without an API key every call raises ProviderAuthError so the
    pipeline keeps working in fallback mode.
    """

    name = "anthropic"

    def __init__(self, settings: Optional[ProviderSettings] = None, client: Any = None):
        self.settings = settings or ProviderSettings()
        self._client = client

        if self._client is None and self.settings.api_key:
            self._client = anthropic.Anthropic(
                api_key=self.settings.api_key,
                timeout=self.settings.timeout_seconds,
            )

    @property
    def configured(self) -> bool:
        return self._client is not None

    def _build_content(self, prompt: str, attachments: Sequence[Attachment]) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = []
        for attachment in attachments:
            content.append({"type": "text", "text": f"Timeframe: {attachment.label}"})
            content.append(attachment.to_content_block())
        content.append({"type": "text", "text": prompt})
        return content

    def analyze(self, prompt: str, attachments: Sequence[Attachment]) -> str:
        if self._client is None:
            raise ProviderAuthError("ANTHROPIC_API_KEY not configured", provider=self.name)

        logger.info(
            f"Requesting analysis from {self.settings.model} "
            f"with {len(attachments)} attachment(s)"
        )

        try:
            response = self._client.messages.create(
                model=self.settings.model,
                max_tokens=self.settings.max_tokens,
                messages=[{"role": "user", "content": self._build_content(prompt, attachments)}],
            )
        except (anthropic.AuthenticationError, anthropic.PermissionDeniedError) as e:
            raise ProviderAuthError(f"Provider rejected credentials: {e}", provider=self.name, cause=e) from e
        except anthropic.RateLimitError as e:
            raise ProviderTransientError(
                "Provider rate limit reached", provider=self.name, status_code=429, cause=e,
            ) from e
        except anthropic.APIStatusError as e:
            if e.status_code >= 500:
                raise ProviderTransientError(
                    f"Provider server error: {e}", provider=self.name,
                    status_code=e.status_code, cause=e,
                ) from e
            raise ProviderAuthError(
                f"Provider rejected request ({e.status_code}): {e}", provider=self.name, cause=e,
            ) from e
        except anthropic.APIConnectionError as e:
            # Includes APITimeoutError
            raise ProviderTransientError(f"Provider unreachable: {e}", provider=self.name, cause=e) from e
        except anthropic.APIError as e:
            # Malformed or unexpected response bodies
            raise ProviderResponseError(f"Provider response unusable: {e}", provider=self.name, cause=e) from e

        text = "".join(
            getattr(block, "text", "")
            for block in (response.content or [])
            if getattr(block, "type", None) == "text"
        )
        if not text.strip():
            raise ProviderResponseError("Provider returned no text content")

        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                f"Provider usage: input={getattr(usage, 'input_tokens', '?')} "
                f"output={getattr(usage, 'output_tokens', '?')}"
            )
        return text


__all__ = [
    "Attachment",
    "MEDIA_TYPES",
    "VisionProvider",
    "AnthropicVisionProvider",
    "load_attachment",
]
