import logging

from typing import Dict, List, Optional

from ..config import Config
from .llm import LLMClient, LLMCompletionResponse


LOGGER = logging.getLogger(__name__)


class Agent:
    """
    A single-shot text completion bound to a system prompt.

    Each call sends exactly one user prompt; anything the model should remember
    between calls has to be part of that prompt. The agent keeps no history.
    """

    def __init__(
        self, config: Config, system_prompt: str = "", llm: Optional[LLMClient] = None
    ):
        self.config = config
        self.system_prompt = system_prompt
        self.llm = llm if llm is not None else LLMClient(config.provider_configs)

    def _build_messages(self, prompt: str) -> List[Dict]:
        messages = []
        if self.system_prompt:
            messages.append(LLMClient.format_system_message(self.system_prompt))
        messages.append(LLMClient.format_user_message(prompt))
        return messages

    def run(self, prompt: str, **kwargs) -> LLMCompletionResponse:
        """
        Sends the prompt to the configured model and returns the raw completion.
        Provider errors are propagated.
        """
        LOGGER.debug("Querying %s (%d prompt chars)", self.config.model_id, len(prompt))
        return self.llm.completion(
            model=self.config.model_id,
            messages=self._build_messages(prompt),
            **kwargs,
        )

    def ask(self, prompt: str, **kwargs) -> Optional[str]:
        """
        Returns the text of the model reply, or None when the model could not be
        reached or answered with no text. There are no retries.
        """
        try:
            response = self.run(prompt, **kwargs)
        except Exception as e:
            LOGGER.warning("Model request to %s failed: %s", self.config.model_id, e)
            LOGGER.debug("Model request failure details", exc_info=True)
            return None

        return response.content or None
