"""Tests for the OpenAI-compatible service adapters."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import AuthenticationError

from conftest import run
from scan2doc.config import Settings
from scan2doc.errors import AnalysisError, ConfigurationError, ReorderHintInvalid
from scan2doc.models import BlockType, PageDescriptor
from scan2doc.services.llm import (
    OpenAILayoutAnalyzer,
    OpenAIPageRanker,
    OpenAISummarizer,
    build_client,
    build_services,
)


def mock_client(content):
    """Client whose chat completion returns the given message content."""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=response)
    return client


def auth_error() -> AuthenticationError:
    request = httpx.Request("POST", "http://localhost/v1/chat/completions")
    return AuthenticationError(
        "Invalid API key", response=httpx.Response(401, request=request), body=None
    )


class TestLayoutAnalyzer:
    """Tests for OpenAILayoutAnalyzer."""

    def test_parses_response(self):
        content = json.dumps(
            {
                "pageNumber": 3,
                "hasContinuingSentence": False,
                "blocks": [
                    {"type": "heading", "text": "Title"},
                    {"type": "formula_crop", "text": "Eq. 1", "boundingBox": [10, 10, 90, 90]},
                ],
            }
        )
        client = mock_client(content)
        analysis = run(OpenAILayoutAnalyzer(client, "vision").analyze(b"img", "image/png", "Original"))

        assert analysis.page_number == 3
        assert analysis.blocks[1].block_type == BlockType.FORMULA_CROP

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "vision"
        assert kwargs["response_format"] == {"type": "json_object"}
        image_part, text_part = kwargs["messages"][1]["content"]
        assert image_part["image_url"]["url"] == "data:image/png;base64,aW1n"
        assert "Target Language: Original" in text_part["text"]

    @pytest.mark.parametrize("content", [None, "", "not json", "[1, 2]"])
    def test_bad_response(self, content):
        analyzer = OpenAILayoutAnalyzer(mock_client(content), "vision")
        with pytest.raises(AnalysisError):
            run(analyzer.analyze(b"img", "image/png", "Original"))

    def test_authentication_is_configuration_error(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=auth_error())
        with pytest.raises(ConfigurationError):
            run(OpenAILayoutAnalyzer(client, "vision").analyze(b"img", "image/png", "Original"))


class TestPageRanker:
    """Tests for OpenAIPageRanker."""

    @pytest.fixture
    def descriptors(self):
        return [
            PageDescriptor(temp_id=0, file_name="a.jpg", detected_page_num=2),
            PageDescriptor(temp_id=1, file_name="b.jpg", detected_page_num=1),
        ]

    @pytest.mark.parametrize("content", ['{"order": [1, 0]}', '{"tempIds": [1, 0]}', "[1, 0]"])
    def test_order_extracted(self, descriptors, content):
        assert run(OpenAIPageRanker(mock_client(content), "m").rank(descriptors)) == [1, 0]

    def test_request_uses_wire_keys(self, descriptors):
        client = mock_client('{"order": [1, 0]}')
        run(OpenAIPageRanker(client, "m").rank(descriptors))

        prompt = client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert '"tempId": 1' in prompt
        assert '"detectedPageNum": 2' in prompt

    @pytest.mark.parametrize("content", ["nope", '{"result": [1, 0]}'])
    def test_invalid_response(self, descriptors, content):
        with pytest.raises(ReorderHintInvalid):
            run(OpenAIPageRanker(mock_client(content), "m").rank(descriptors))


class TestSummarizer:
    """Tests for OpenAISummarizer."""

    def test_prompt_contains_language_and_text(self):
        client = mock_client("A summary.")
        summary = run(OpenAISummarizer(client, "m").summarize("Body text", "English"))

        assert summary == "A summary."
        prompt = client.chat.completions.create.call_args.kwargs["messages"][0]["content"]
        assert "Language: English" in prompt
        assert prompt.rstrip().endswith("Body text")

    def test_empty_choices(self):
        client = mock_client("x")
        client.chat.completions.create.return_value.choices = []
        assert run(OpenAISummarizer(client, "m").summarize("Body", "English")) == ""


class TestBuildServices:
    """Tests for client construction."""

    def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            build_client(Settings(_env_file=None, ai_api_key=None))

    def test_services_share_client(self):
        config = Settings(_env_file=None, ai_api_key="test-key", summary_model="summarizer")
        services = build_services(config)

        assert services.analyzer.client is services.ranker.client is services.summarizer.client
        assert services.summarizer.model == "summarizer"
