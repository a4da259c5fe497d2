"""Tests for the AI client wrapper."""

import base64
import os
from unittest.mock import AsyncMock, Mock, patch

import pytest

from design_compare.ai.client import AIClient, _get_debug_dir, encode_image, set_debug_dir


class TestAIClientInit:

    def test_init_requires_api_key(self):
        """AIClient raises when the API key is missing."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(EnvironmentError, match="ANTHROPIC_API_KEY"):
                AIClient()

    @patch("anthropic.AsyncAnthropic")
    def test_init_with_api_key(self, mock_anthropic):
        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "test-key"}):
            client = AIClient(model="claude-test", max_tokens=512)
            assert client.model == "claude-test"
            assert client.max_tokens == 512
            assert client.call_count == 0
            mock_anthropic.assert_called_once_with(api_key="test-key")


class TestCompleteWithImages:

    @pytest.mark.asyncio
    @patch("anthropic.AsyncAnthropic")
    async def test_returns_first_text_block(self, mock_anthropic_class, tmp_path):
        first, second = Mock(), Mock()
        first.type = second.type = "text"
        first.text, second.text = "first", "second"
        response = Mock(content=[first, second], stop_reason="end_turn")
        mock_client = Mock()
        mock_client.messages.create = AsyncMock(return_value=response)
        mock_anthropic_class.return_value = mock_client

        with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "test-key"}):
            client = AIClient()
            with patch.object(client, "_save_exchange_log"):
                text = await client.complete_with_images("rubric", [("A:", "aaaa"), ("B:", "bbbb")])

        assert text == "first"
        assert client.call_count == 1
        content = mock_client.messages.create.call_args.kwargs["messages"][0]["content"]
        assert content[-1] == {"type": "text", "text": "rubric"}
        assert content[1]["source"]["data"] == "aaaa"
        assert content[3]["source"]["data"] == "bbbb"

    @pytest.mark.asyncio
    @patch("anthropic.AsyncAnthropic")
    async def test_writes_exchange_log(self, mock_anthropic_class, tmp_path):
        block = Mock()
        block.type = "text"
        block.text = '{"ok": true}'
        mock_client = Mock()
        mock_client.messages.create = AsyncMock(return_value=Mock(content=[block], stop_reason="end_turn"))
        mock_anthropic_class.return_value = mock_client

        with patch("design_compare.ai.client._debug_dir", tmp_path / "debug"):
            with patch.dict(os.environ, {"ANTHROPIC_API_KEY": "test-key"}):
                await AIClient().complete_with_images("rubric", [("A:", "aaaa")])

            logs = list((tmp_path / "debug").glob("ai_call_*.log"))
        assert len(logs) == 1
        body = logs[0].read_text()
        assert "[IMAGE ATTACHED] A:" in body
        assert '{"ok": true}' in body
        assert "aaaa" not in body


class TestParseJsonResponse:

    def test_plain_object(self):
        assert AIClient.parse_json_response('{"a": 1}') == {"a": 1}

    def test_surrounding_whitespace_allowed(self):
        assert AIClient.parse_json_response('\n  {"a": 1}\n') == {"a": 1}

    def test_code_fences_rejected(self):
        with pytest.raises(ValueError, match="invalid JSON"):
            AIClient.parse_json_response('```json\n{"a": 1}\n```')

    def test_invalid_json_raises_value_error(self):
        with pytest.raises(ValueError, match="invalid JSON"):
            AIClient.parse_json_response("{a: 1,}")

    def test_non_object_raises_value_error(self):
        with pytest.raises(ValueError, match="expected an object"):
            AIClient.parse_json_response('"just a string"')


class TestHelpers:

    def test_encode_image_roundtrips_bytes(self, tmp_path):
        path = tmp_path / "x.png"
        path.write_bytes(b"\x89PNG raw")
        assert base64.b64decode(encode_image(path)) == b"\x89PNG raw"

    def test_set_debug_dir_creates_directory(self, tmp_path):
        target = tmp_path / "dbg"
        with patch("design_compare.ai.client._debug_dir", None):
            set_debug_dir(target)
            assert _get_debug_dir() == target
        assert target.is_dir()
