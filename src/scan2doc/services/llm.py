"""AI service adapters over an OpenAI-compatible chat API.

One ``AsyncOpenAI`` client backs the layout analysis, ranking and
summary collaborators. Any OpenAI-compatible server works, including
a local Ollama instance at ``<ollama_host>/v1``.
"""

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from openai import AsyncOpenAI, AuthenticationError

from scan2doc.config import Settings, settings
from scan2doc.errors import AnalysisError, ConfigurationError, ReorderHintInvalid
from scan2doc.models import PageAnalysis, PageDescriptor
from scan2doc.pipeline.stage_analyze import parse_analysis

log = logging.getLogger(__name__)

BLOCK_TYPES = [
    "heading",
    "subheading",
    "author",
    "paragraph",
    "image_description",
    "table_crop",
    "formula_crop",
    "image_crop",
]

LAYOUT_SYSTEM_PROMPT = f"""You digitize scanned document pages. Analyse the page image.

Do not transcribe complex tables or mathematical formulas. Return them,
and any diagram or photo, as a block of type 'table_crop', 'formula_crop'
or 'image_crop' with a "boundingBox" [ymin, xmin, ymax, xmax] on a
0-1000 scale. For 'image_crop' put a short description in "text".

Extract headings, author lines and paragraphs as text blocks.
If the target language is not 'Original', translate every text block,
including titles, journal names and author names on cover pages.
Report the printed page number if one is visible.

Respond with a JSON object:
{{"pageNumber": int or null,
  "hasContinuingSentence": bool,
  "blocks": [{{"type": one of {BLOCK_TYPES}, "text": str, "boundingBox": [int, int, int, int]}}]}}
"""

RANKING_PROMPT = """These are scanned pages of one document (an article or journal), possibly
out of order. Put them in reading order using:
1. Detected page numbers, where present and plausible.
2. Continuity: the last sentence of a page should lead into the first
   sentence of the next.

Pages:
{pages}

Respond with a JSON object {{"order": [tempId, ...]}} listing every tempId
exactly once in reading order, for example {{"order": [2, 0, 1, 3]}}.
"""

SUMMARY_PROMPT = """You are an experienced analyst and editor. Write a detailed executive
summary of the article below.

Requirements:
- Language: {language}, regardless of the language of the source.
- Plain text only. Do not use Markdown (no asterisks, no # headings).
- Four to five substantial paragraphs separated by a blank line, covering:
  context and goals; methodology; key results; conclusions and practical value.

Text:
{text}
"""


def build_client(config: Optional[Settings] = None) -> AsyncOpenAI:
    """Create the shared client.

    Raises:
        ConfigurationError: If the endpoint or API key is missing.
    """
    config = config or settings
    config.require_ai_credentials()
    return AsyncOpenAI(
        base_url=config.ai_base_url,
        api_key=config.ai_api_key,
        timeout=config.request_timeout_seconds,
    )


async def _complete(client: AsyncOpenAI, **kwargs) -> str:
    """Run one chat completion and return its text content."""
    try:
        response = await client.chat.completions.create(**kwargs)
    except AuthenticationError as exc:
        raise ConfigurationError(f"AI service rejected the credentials: {exc}") from exc
    if not response.choices:
        return ""
    return response.choices[0].message.content or ""


class OpenAILayoutAnalyzer:
    """Layout analysis collaborator backed by a vision chat model."""

    def __init__(self, client: AsyncOpenAI, model: Optional[str] = None):
        self.client = client
        self.model = model or settings.layout_model

    async def analyze(self, image: bytes, mime_type: str, language: str) -> PageAnalysis:
        """Analyse one page image.

        Raises:
            AnalysisError: If the response is empty or not valid JSON.
        """
        data_url = f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"
        content = await _complete(
            self.client,
            model=self.model,
            messages=[
                {"role": "system", "content": LAYOUT_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "image_url", "image_url": {"url": data_url}},
                        {
                            "type": "text",
                            "text": (
                                f"Analyze this page. Target Language: {language}. "
                                "Translate everything if the language is not Original."
                            ),
                        },
                    ],
                },
            ],
            response_format={"type": "json_object"},
        )
        if not content:
            raise AnalysisError("No response text from the analysis service")
        try:
            raw = json.loads(content)
        except ValueError as exc:
            raise AnalysisError(f"Analysis response is not JSON: {exc}") from exc
        return parse_analysis(raw)


def _extract_order(raw: Any) -> Any:
    """Accept either a bare list or an object wrapping it."""
    if isinstance(raw, dict):
        for key in ("order", "tempIds", "pages"):
            if key in raw:
                return raw[key]
        raise ReorderHintInvalid(f"No order list in ranking response keys {sorted(raw)}")
    return raw


class OpenAIPageRanker:
    """Reading-order collaborator backed by a text chat model."""

    def __init__(self, client: AsyncOpenAI, model: Optional[str] = None):
        self.client = client
        self.model = model or settings.ranking_model

    async def rank(self, descriptors: list[PageDescriptor]) -> list[int]:
        """Ask for a reading order. The caller validates the permutation."""
        pages = json.dumps([d.to_request() for d in descriptors], ensure_ascii=False, indent=2)
        content = await _complete(
            self.client,
            model=self.model,
            messages=[{"role": "user", "content": RANKING_PROMPT.format(pages=pages)}],
            response_format={"type": "json_object"},
        )
        try:
            raw = json.loads(content)
        except ValueError as exc:
            raise ReorderHintInvalid(f"Ranking response is not JSON: {exc}") from exc
        return _extract_order(raw)


class OpenAISummarizer:
    """Summary collaborator backed by a text chat model."""

    def __init__(self, client: AsyncOpenAI, model: Optional[str] = None):
        self.client = client
        self.model = model or settings.summary_model

    async def summarize(self, text: str, language: str) -> str:
        return await _complete(
            self.client,
            model=self.model,
            messages=[
                {"role": "user", "content": SUMMARY_PROMPT.format(language=language, text=text)}
            ],
        )


@dataclass
class AIServices:
    """The three AI collaborators sharing one client."""

    analyzer: OpenAILayoutAnalyzer
    ranker: OpenAIPageRanker
    summarizer: OpenAISummarizer


def build_services(config: Optional[Settings] = None) -> AIServices:
    """Build every AI collaborator from settings.

    Raises:
        ConfigurationError: If the endpoint or API key is missing.
    """
    config = config or settings
    client = build_client(config)
    log.info("Using AI endpoint %s", config.ai_base_url)
    return AIServices(
        analyzer=OpenAILayoutAnalyzer(client, config.layout_model),
        ranker=OpenAIPageRanker(client, config.ranking_model),
        summarizer=OpenAISummarizer(client, config.summary_model),
    )
