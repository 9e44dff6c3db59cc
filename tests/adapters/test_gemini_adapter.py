# tests/adapters/test_gemini_adapter.py
import pytest
from unittest.mock import patch, AsyncMock, MagicMock

from lexiflow.adapters.llm.gemini_adapter import GeminiAdapter


@pytest.mark.asyncio
class TestGeminiAdapter:

    async def test_without_key_every_call_fails(self):
        adapter = GeminiAdapter(api_key="your_gemini_api_key_here")

        assert adapter.enabled is False
        with pytest.raises(ConnectionError):
            await adapter.run("gemini-2.0-flash", "hello")

    async def test_json_mode_sets_mime_type(self):
        """
        Scenario: A structured answer is requested.
        Expected: The generation config asks for JSON and the text is returned.
        """
        with patch("lexiflow.adapters.llm.gemini_adapter.genai") as mock_genai:
            model = mock_genai.GenerativeModel.return_value
            model.generate_content_async = AsyncMock(return_value=MagicMock(text='{"origin": "Latin"}'))
            adapter = GeminiAdapter(api_key="key")

            text = await adapter.run("gemini-2.0-flash", "aqua", system="etymologist", json_mode=True)

            assert text == '{"origin": "Latin"}'
            mock_genai.configure.assert_called_once_with(api_key="key")
            mock_genai.GenerativeModel.assert_called_once_with("gemini-2.0-flash", system_instruction="etymologist")
            config = model.generate_content_async.await_args.kwargs["generation_config"]
            assert config["response_mime_type"] == "application/json"

    async def test_models_are_reused(self):
        with patch("lexiflow.adapters.llm.gemini_adapter.genai") as mock_genai:
            mock_genai.GenerativeModel.return_value.generate_content_async = AsyncMock(
                return_value=MagicMock(text="hola")
            )
            adapter = GeminiAdapter(api_key="key")

            await adapter.run("m", "a", system="s")
            await adapter.run("m", "b", system="s")

            mock_genai.GenerativeModel.assert_called_once()

    async def test_quota_error_becomes_connection_error(self):
        with patch("lexiflow.adapters.llm.gemini_adapter.genai") as mock_genai:
            mock_genai.GenerativeModel.return_value.generate_content_async = AsyncMock(
                side_effect=RuntimeError("429 Resource exhausted")
            )
            adapter = GeminiAdapter(api_key="key")

            with pytest.raises(ConnectionError):
                await adapter.run("m", "hello")
