from dataclasses import dataclass
import aisuite

from typing import Dict, List, Optional


@dataclass
class LLMCompletionResponse:
    """Wraps the full assistant message from the LLM API."""

    assistant_message: Dict

    @property
    def content(self) -> Optional[str]:
        """The text content of the message, if any."""
        return self.assistant_message.get("content")


class LLMClient:
    """
    A wrapper for the LLM client to abstract away the specific provider library.
    This allows for easier swapping of LLM providers in the future.
    """

    def __init__(self, provider_configs: Dict):
        """
        Initializes the LLM client.

        Args:
            provider_configs: A dictionary containing configuration for the LLM provider.
        """
        self.client = aisuite.Client(provider_configs)

    @staticmethod
    def format_system_message(content: str) -> Dict:
        return {"role": "system", "content": content}

    @staticmethod
    def format_user_message(content: str) -> Dict:
        return {"role": "user", "content": content}

    def completion(
        self, model: str, messages: List[Dict], **kwargs
    ) -> LLMCompletionResponse:
        response = self.client.chat.completions.create(
            model=model, messages=messages, **kwargs
        )

        message = response.choices[0].message
        # The message object from aisuite/openai can be converted to a dict.
        # We exclude unset values to keep the payload clean.
        if hasattr(message, "model_dump"):
            message_dict = message.model_dump(exclude_unset=True)
        else:
            message_dict = {"role": "assistant", "content": getattr(message, "content", None)}
        return LLMCompletionResponse(assistant_message=message_dict)
