"""Content generation for individual reports."""
import asyncio
import logging
from typing import Any, Dict, Optional

import anthropic
from bs4 import BeautifulSoup

from pipeline.models import GeneratedArtifact, ReportSpec
from pipeline.templates import SYSTEM_PROMPT, build_user_prompt, get_company_name, render_report
from shared.config import settings
from shared.exceptions import ArtifactGenerationError, ConfigurationError
from shared.utils import estimate_page_count, get_utc_now

logger = logging.getLogger(__name__)


class ContentGenerator:
    """Produces one report artifact from a report spec and submission data."""

    model_name: Optional[str] = None

    async def generate(self, spec: ReportSpec, submission: Dict[str, Any]) -> GeneratedArtifact:
        raise NotImplementedError


class AnthropicContentGenerator(ContentGenerator):
    """Generates report bodies with the Anthropic Messages API."""

    def __init__(
        self,
        client: Optional[anthropic.AsyncAnthropic] = None,
        model: str = None,
        max_tokens: int = None,
        timeout: float = None,
        chars_per_page: int = None
    ):
        self.model_name = model or settings.anthropic_model
        self.max_tokens = max_tokens or settings.anthropic_max_tokens
        self.timeout = timeout or settings.generation_timeout
        self.chars_per_page = chars_per_page or settings.chars_per_page

        if client is None:
            if not settings.anthropic_api_key:
                raise ConfigurationError("ANTHROPIC_API_KEY is not set")
            client = anthropic.AsyncAnthropic(
                api_key=settings.anthropic_api_key,
                timeout=self.timeout
            )
        self.client = client

    async def generate(self, spec: ReportSpec, submission: Dict[str, Any]) -> GeneratedArtifact:
        """
        Generate one report.

        Every failure (API error, timeout, empty or non-text response) is
        raised as ArtifactGenerationError for this report only.
        """
        prompt = build_user_prompt(spec, submission)

        try:
            response = await asyncio.wait_for(
                self.client.messages.create(
                    model=self.model_name,
                    max_tokens=self.max_tokens,
                    system=SYSTEM_PROMPT,
                    messages=[{"role": "user", "content": prompt}]
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise ArtifactGenerationError(
                spec.report_type, f"Timeout after {self.timeout} seconds", e
            ) from e
        except anthropic.AnthropicError as e:
            raise ArtifactGenerationError(spec.report_type, f"Generation failed: {e}", e) from e

        text = self._extract_text(spec, response)
        body = self._normalize_body(text)
        if not body:
            raise ArtifactGenerationError(spec.report_type, "Generated content is empty")

        html_content = render_report(spec, get_company_name(submission), body)
        usage = getattr(response, "usage", None)
        tokens_used = (usage.input_tokens + usage.output_tokens) if usage else 0

        return GeneratedArtifact(
            report_type=spec.report_type,
            title=spec.title,
            content=html_content,
            generated_at=get_utc_now(),
            page_count=estimate_page_count(html_content, self.chars_per_page),
            sections=spec.sections,
            tokens_used=tokens_used
        )

    def _extract_text(self, spec: ReportSpec, response: Any) -> str:
        """Pull the text block out of a Messages API response."""
        blocks = getattr(response, "content", None) or []
        if not blocks or getattr(blocks[0], "type", None) != "text":
            raise ArtifactGenerationError(spec.report_type, "Unexpected response format from model")
        return blocks[0].text

    def _normalize_body(self, text: str) -> str:
        """
        Reduce model output to inner body markup.

        Strips markdown code fences, and when the model ignored instructions
        and returned a whole document, keeps only what is inside <body>.
        """
        content = text.strip()

        if content.startswith("```"):
            content = content.split("\n", 1)[1] if "\n" in content else content[3:]
        if content.endswith("```"):
            content = content.rsplit("```", 1)[0]
        content = content.strip()

        lowered = content[:200].lower()
        if lowered.startswith("<!doctype") or lowered.startswith("<html"):
            soup = BeautifulSoup(content, "html.parser")
            body = soup.find("body")
            if body is not None:
                content = body.decode_contents().strip()

        return content
