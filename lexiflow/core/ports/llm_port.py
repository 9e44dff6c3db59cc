# lexiflow/core/ports/llm_port.py
from typing import Protocol, Optional


class ILanguageModel(Protocol):
    """
    Port for the AI inference binding.
    Adapters (like GeminiAdapter) must implement this.
    """

    async def run(
        self,
        model_id: str,
        prompt: str,
        *,
        system: Optional[str] = None,
        json_mode: bool = False,
    ) -> str:
        """
        Runs one completion against `model_id`.

        With `json_mode` the backend is asked for a JSON document; callers
        still strip incidental code fences before parsing.
        Raises on transport or quota errors.
        """
        ...
