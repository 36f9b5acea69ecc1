from groq import Groq
import logging
import json
from typing import Any, Optional

from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from sponsorwatch.core.errors import AiRequestError, MissingCredentialsError
from sponsorwatch.core.result import Err, Ok, Result
from sponsorwatch.schemas.enrichment import (
    CommentClassification,
    CommentResponse,
    SponsorExtraction,
    SponsorResponse,
)
from sponsorwatch.services.prompts import format_comment_prompt, format_sponsor_prompt

logger = logging.getLogger(__name__)

NO_SPONSOR_NAME = "no sponsor"


def sanitize_sponsor(raw: SponsorResponse, no_sponsor_key: str) -> SponsorExtraction:
    """
    Normalize a model answer and collapse every "no sponsor" shape into one value.

    The channel's bare link (with or without scheme) is what the model returns
    when a description only carries the creator's own links.
    """
    name = (raw.sponsor_name or "").strip().lower()
    key = (raw.sponsor_key or "").strip().lower()
    normalized_no_sponsor_key = no_sponsor_key.strip().lower()
    no_sponsor_host = normalized_no_sponsor_key.removeprefix("https://").removeprefix("http://")

    if (
        not raw.has_sponsor
        or not name
        or not key
        or name == NO_SPONSOR_NAME
        or key == normalized_no_sponsor_key
        or key == no_sponsor_host
    ):
        return SponsorExtraction(
            has_sponsor=False,
            sponsor_name=NO_SPONSOR_NAME,
            sponsor_key=normalized_no_sponsor_key,
        )

    return SponsorExtraction(has_sponsor=True, sponsor_name=name, sponsor_key=key)


class Intelligence:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "llama-3.3-70b-versatile",
        client: Any = None,
        attempts: int = 3,
        base_delay: float = 0.2,
    ):
        api_key = (api_key or "").strip() or None
        self.client = client or (Groq(api_key=api_key) if api_key else None)
        self.model = model
        self.attempts = max(1, attempts)
        self.base_delay = max(0.0, base_delay)

    def _complete_json(self, system: str, user: str) -> dict:
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user}
                ],
                temperature=0,
                stream=False,
                response_format={"type": "json_object"}
            )
            response_text = completion.choices[0].message.content or ""
            result = json.loads(response_text)
        except Exception as e:
            raise AiRequestError(f"Groq request failed: {e}") from e

        if not isinstance(result, dict):
            raise AiRequestError("Groq response was not a JSON object")
        return result

    def _call(self, system: str, user: str, schema):
        def attempt():
            payload = self._complete_json(system, user)
            try:
                return schema.model_validate(payload)
            except ValidationError as e:
                raise AiRequestError(f"Groq response did not match schema: {e.error_count()} errors") from e

        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.base_delay, min=0, max=5),
            retry=retry_if_exception_type(AiRequestError),
            reraise=True,
        )
        return retrying(attempt)

    def extract_sponsor(self, title: str, description: str, sponsor_prompt: str, no_sponsor_key: str) -> Result[SponsorExtraction]:
        if self.client is None:
            return Err(MissingCredentialsError("GROQ_API_KEY is required"))

        system, user = format_sponsor_prompt(title, description, sponsor_prompt)
        try:
            raw = self._call(system, user, SponsorResponse)
        except AiRequestError as e:
            logger.warning(f"[intelligence] Sponsor extraction failed: {e}")
            return Err(e)

        return Ok(sanitize_sponsor(raw, no_sponsor_key))

    def classify_comment(self, video_title: str, video_description: str, comment_author: str, comment_text: str) -> Result[CommentClassification]:
        if self.client is None:
            return Err(MissingCredentialsError("GROQ_API_KEY is required"))

        system, user = format_comment_prompt(video_title, video_description, comment_author, comment_text)
        try:
            raw = self._call(system, user, CommentResponse)
        except AiRequestError as e:
            return Err(e)

        return Ok(CommentClassification(
            is_editing_mistake=raw.is_editing_mistake,
            is_sponsor_mention=raw.is_sponsor_mention,
            is_question=raw.is_question,
            is_positive_comment=raw.is_positive_comment,
        ))
