"""
clipscribe.email - Turn a transcript into an email draft.

A chat model (any litellm provider) reads the joined transcript and answers
with a JSON object holding a title, preview line, key points, description
and sender name. The answer is parsed leniently and validated into an
EmailDraft.
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from clipscribe.exceptions import LLMError, LLMResponseError

logger = logging.getLogger(__name__)

EMAIL_PROMPT = """Convert the following video transcription into a professional email.

Extract the key points, create a compelling title, write one short line of
preview text and describe the video's content in a few readable paragraphs.
{company_hint}
Respond with a single JSON object and nothing else:
{{
  "videoTitle": "title of the video",
  "previewText": "preview line shown by the mail client",
  "keyPoints": ["first key point", "second key point"],
  "description": "well-formatted description of the video content",
  "companyName": "company or sender name"
}}

Transcription:
{transcript}
"""


class EmailDraft(BaseModel):
    """Structured email generated from a transcript."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    video_title: str = Field(alias="videoTitle", min_length=1)
    key_points: list[str] = Field(alias="keyPoints")
    description: str
    preview_text: str | None = Field(default=None, alias="previewText")
    company_name: str | None = Field(default=None, alias="companyName")


class CompletionClient:
    """Minimal litellm chat-completion wrapper with retries."""

    def __init__(
        self,
        model: str = "gpt-4o",
        api_base: str | None = None,
        timeout: int = 120,
        max_retries: int = 3,
        retry_delay: float = 2.0,
    ) -> None:
        self.model = model
        self.api_base = api_base
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    def complete(self, prompt: str, max_tokens: int = 2048, temperature: float = 0.3) -> str:
        """Send a single-message prompt and return the reply text.

        Raises:
            LLMResponseError: If the reply has no content
            LLMError: If every attempt fails
        """
        try:
            import litellm
        except ImportError as e:
            raise LLMError("litellm not installed. Install with: pip install litellm") from e

        litellm.telemetry = False

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
            "timeout": self.timeout,
        }
        if self.api_base:
            kwargs["api_base"] = self.api_base

        last_error: Exception | None = None
        for attempt in range(self.max_retries):
            try:
                response = litellm.completion(**kwargs)
            except Exception as e:
                last_error = e
                logger.warning(
                    "Completion attempt %d/%d failed: %s", attempt + 1, self.max_retries, e
                )
                if attempt < self.max_retries - 1:
                    time.sleep(self.retry_delay)
                continue
            return _message_content(response)

        raise LLMError(
            f"LLM request failed after {self.max_retries} attempt(s): {last_error}"
        ) from last_error


def _message_content(response: Any) -> str:
    choices = getattr(response, "choices", None)
    if not choices:
        raise LLMResponseError("Empty response from LLM")
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    if not content:
        raise LLMResponseError("No content in LLM message")
    return content


def parse_llm_json(response: str) -> dict[str, Any]:
    """Pull the JSON object out of a model reply.

    Tolerates markdown code fences, prose around the object and trailing
    commas.

    Raises:
        LLMResponseError: If no object can be parsed
    """
    text = re.sub(r"```(?:json)?", "", response).strip()

    match = re.search(r"\{[\s\S]*\}", text)
    if not match:
        raise LLMResponseError("No JSON object found in response")
    text = match.group(0)

    for candidate in (text, re.sub(r",(\s*[}\]])", r"\1", text)):
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    raise LLMResponseError(
        f"Failed to parse LLM response as JSON.\n\nResponse (first 500 chars):\n{text[:500]}"
    )


def build_email_prompt(transcript: str, company_name: str | None = None) -> str:
    company_hint = f"\nThe email is sent by {company_name}.\n" if company_name else ""
    return EMAIL_PROMPT.format(company_hint=company_hint, transcript=transcript)


def generate_email(
    transcript: str,
    client: CompletionClient,
    company_name: str | None = None,
) -> EmailDraft:
    """Ask the model for an email draft of ``transcript``.

    Args:
        transcript: Joined transcript text
        client: Completion client to send the prompt through
        company_name: Sender name; fills ``company_name`` when the model
            leaves it out

    Raises:
        ValueError: If the transcript is empty
        LLMError: If the model call fails or its reply is not a valid draft
    """
    if not transcript.strip():
        raise ValueError("Transcription text is required")

    logger.debug("Requesting email draft for %d character(s) of transcript", len(transcript))
    data = parse_llm_json(client.complete(build_email_prompt(transcript, company_name)))
    if company_name and not data.get("companyName"):
        data["companyName"] = company_name

    try:
        return EmailDraft.model_validate(data)
    except ValidationError as e:
        raise LLMResponseError(f"Email response failed validation: {e}") from e


def create_client_from_config(config: Any) -> CompletionClient:
    """Create a completion client from ClipscribeConfig."""
    return CompletionClient(model=config.email_model, api_base=config.email_api_base)
