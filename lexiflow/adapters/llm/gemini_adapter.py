# lexiflow/adapters/llm/gemini_adapter.py
from typing import Dict, Optional

import google.generativeai as genai
import structlog

from lexiflow.shared.resilience import get_circuit_breaker

logger = structlog.get_logger()


class GeminiAdapter:
    """
    Driven Adapter for Google Gemini.

    One GenerativeModel is kept per (model id, system instruction) pair.
    Without an API key the adapter stays constructible but every call raises,
    which the inference cascade treats as a failed attempt.
    """

    def __init__(self, api_key: Optional[str] = None, temperature: float = 0.2, max_output_tokens: int = 800):
        self.api_key = api_key if api_key and api_key != "your_gemini_api_key_here" else None
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._models: Dict[tuple, genai.GenerativeModel] = {}

        if self.api_key:
            genai.configure(api_key=self.api_key)
        else:
            logger.warning("llm_init_skipped", reason="no GOOGLE_API_KEY configured")

    @property
    def enabled(self) -> bool:
        return self.api_key is not None

    def _model(self, model_id: str, system: Optional[str]) -> genai.GenerativeModel:
        key = (model_id, system)
        if key not in self._models:
            self._models[key] = genai.GenerativeModel(model_id, system_instruction=system)
        return self._models[key]

    async def run(
        self,
        model_id: str,
        prompt: str,
        *,
        system: Optional[str] = None,
        json_mode: bool = False,
    ) -> str:
        if not self.enabled:
            raise ConnectionError("AI inference is disabled: no Google API key configured.")

        generation_config = {
            "temperature": self.temperature,
            "max_output_tokens": self.max_output_tokens,
        }
        if json_mode:
            generation_config["response_mime_type"] = "application/json"

        model = self._model(model_id, system)

        try:
            response = await get_circuit_breaker(f"gemini:{model_id}").a_call(
                model.generate_content_async, prompt, generation_config=generation_config
            )
        except Exception as e:
            if "429" in str(e):
                raise ConnectionError(f"Gemini quota exceeded for model {model_id}.") from e
            raise

        return response.text or ""
