"""Tests for the vision assessment client."""

import json
import os
from unittest.mock import AsyncMock, Mock, patch

import anthropic
import httpx
import pytest

from design_compare.ai.prompts.vision import DESIGN_LABEL, IMPLEMENTATION_LABEL
from design_compare.models.vision import VisionResult
from design_compare.vision.assessor import (
    PARSE_FAILURE_SUMMARY,
    compare_with_vision,
    parse_vision_response,
)

GOOD_RESPONSE = {
    "pass": True,
    "confidence": 0.9,
    "issues": [
        {"category": "spacing", "severity": "minor", "description": "2px extra padding", "region": "header"}
    ],
    "summary": "Implementation closely matches the design",
}


def _text_block(text: str) -> Mock:
    block = Mock()
    block.type = "text"
    block.text = text
    return block


def _mock_anthropic(mock_anthropic_class, content: list) -> Mock:
    response = Mock()
    response.content = content
    response.stop_reason = "end_turn"
    mock_client = Mock()
    mock_client.messages.create = AsyncMock(return_value=response)
    mock_anthropic_class.return_value = mock_client
    return mock_client


def _assert_sentinel(result: VisionResult) -> None:
    assert isinstance(result, VisionResult)
    assert result.passed is False
    assert result.confidence == 0
    assert result.issues == []
    assert result.summary


@pytest.fixture(autouse=True)
def _debug_dir(tmp_path):
    with patch("design_compare.ai.client._debug_dir", tmp_path / "debug"):
        yield


@pytest.fixture
def screenshot_pair(solid_png):
    return (
        solid_png("design.png", 4, 4, (255, 255, 255, 255)),
        solid_png("storybook.png", 4, 4, (250, 250, 250, 255)),
    )


class TestCompareWithVision:

    @pytest.mark.asyncio
    @patch("anthropic.AsyncAnthropic")
    async def test_well_formed_response(self, mock_anthropic_class, screenshot_pair):
        mock_client = _mock_anthropic(mock_anthropic_class, [_text_block(json.dumps(GOOD_RESPONSE))])

        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "test-key"}):
            result = await compare_with_vision(*screenshot_pair, model="claude-test")

        assert result.passed is True
        assert result.confidence == 0.9
        assert len(result.issues) == 1
        assert result.issues[0].category == "spacing"
        assert result.issues[0].region == "header"

        kwargs = mock_client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        content = kwargs["messages"][0]["content"]
        assert [c["type"] for c in content] == ["text", "image", "text", "image", "text"]
        assert content[0]["text"] == DESIGN_LABEL
        assert content[2]["text"] == IMPLEMENTATION_LABEL
        assert content[1]["source"]["media_type"] == "image/png"
        assert content[1]["source"]["type"] == "base64"

    @pytest.mark.asyncio
    @patch("anthropic.AsyncAnthropic")
    async def test_skips_non_text_blocks(self, mock_anthropic_class, screenshot_pair):
        other = Mock()
        other.type = "thinking"
        _mock_anthropic(mock_anthropic_class, [other, _text_block(json.dumps(GOOD_RESPONSE))])

        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "test-key"}):
            result = await compare_with_vision(*screenshot_pair)

        assert result.passed is True

    @pytest.mark.asyncio
    @patch("anthropic.AsyncAnthropic")
    async def test_unparsable_output_returns_sentinel(self, mock_anthropic_class, screenshot_pair):
        _mock_anthropic(mock_anthropic_class, [_text_block("Looks good to me!")])

        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "test-key"}):
            result = await compare_with_vision(*screenshot_pair)

        _assert_sentinel(result)
        assert result.summary == PARSE_FAILURE_SUMMARY

    @pytest.mark.asyncio
    @patch("anthropic.AsyncAnthropic")
    async def test_no_text_block_returns_sentinel(self, mock_anthropic_class, screenshot_pair):
        _mock_anthropic(mock_anthropic_class, [])

        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "test-key"}):
            result = await compare_with_vision(*screenshot_pair)

        _assert_sentinel(result)
        assert "No text response" in result.summary

    @pytest.mark.asyncio
    @patch("anthropic.AsyncAnthropic")
    async def test_transport_error_returns_sentinel(self, mock_anthropic_class, screenshot_pair):
        mock_client = Mock()
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        mock_client.messages.create = AsyncMock(side_effect=anthropic.APIConnectionError(request=request))
        mock_anthropic_class.return_value = mock_client

        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "test-key"}):
            result = await compare_with_vision(*screenshot_pair)

        _assert_sentinel(result)
        assert result.summary.startswith("Vision comparison failed")

    @pytest.mark.asyncio
    @patch("anthropic.AsyncAnthropic")
    async def test_unexpected_error_returns_sentinel(self, mock_anthropic_class, screenshot_pair):
        mock_client = Mock()
        mock_client.messages.create = AsyncMock(side_effect=RuntimeError("boom"))
        mock_anthropic_class.return_value = mock_client

        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "test-key"}):
            result = await compare_with_vision(*screenshot_pair)

        _assert_sentinel(result)
        assert "boom" in result.summary

    @pytest.mark.asyncio
    async def test_missing_api_key_returns_sentinel(self, screenshot_pair):
        with patch.dict(os.environ, {}, clear=True):
            result = await compare_with_vision(*screenshot_pair)

        _assert_sentinel(result)
        assert "ANTHROPIC_API_KEY" in result.summary

    @pytest.mark.asyncio
    async def test_missing_image_returns_sentinel(self, tmp_path):
        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "test-key"}):
            result = await compare_with_vision(tmp_path / "nope.png", tmp_path / "nope2.png")

        _assert_sentinel(result)


class TestParseVisionResponse:

    def test_fenced_json_is_parse_failure(self):
        text = "```json\n" + json.dumps(GOOD_RESPONSE) + "\n```"
        result = parse_vision_response(text)
        _assert_sentinel(result)
        assert result.summary == PARSE_FAILURE_SUMMARY

    def test_schema_violation_is_parse_failure(self):
        bad = dict(GOOD_RESPONSE, issues=[{"category": "vibes", "severity": "minor", "description": "x"}])
        result = parse_vision_response(json.dumps(bad))
        _assert_sentinel(result)
        assert result.summary == PARSE_FAILURE_SUMMARY

    def test_confidence_out_of_range_is_parse_failure(self):
        bad = dict(GOOD_RESPONSE, confidence=1.7)
        _assert_sentinel(parse_vision_response(json.dumps(bad)))

    def test_missing_pass_is_parse_failure(self):
        bad = {k: v for k, v in GOOD_RESPONSE.items() if k != "pass"}
        _assert_sentinel(parse_vision_response(json.dumps(bad)))

    def test_json_array_is_parse_failure(self):
        _assert_sentinel(parse_vision_response("[1, 2, 3]"))

    def test_pass_with_major_issue_is_downgraded(self):
        contradictory = dict(
            GOOD_RESPONSE,
            issues=[{"category": "layout", "severity": "major", "description": "Nav wraps"}],
        )
        result = parse_vision_response(json.dumps(contradictory))
        assert result.passed is False
        assert result.confidence == 0.9
        assert len(result.issues) == 1

    def test_minor_issues_may_pass(self):
        assert parse_vision_response(json.dumps(GOOD_RESPONSE)).passed is True
