"""
VoiceSnap Backend — Abstract Generation Transport
===================================================

What:  Abstract base class for the upstream text generation boundary.
How:   Concrete transports inherit from GenerationTransport and implement
       create_message() and health_check().
Who:   Passed into InvocationClient at construction; the client never imports
       a concrete provider.

Envelope contract:
    create_message() returns a mapping shaped like

        {"content": [{"type": "text", "text": "..."}, {"type": "other"}, ...]}

    Extra keys anywhere in the envelope are allowed and ignored. Failures are
    raised as exceptions carrying an optional numeric status (`status_code`,
    `code` or `status`) and a message; InvocationClient classifies them.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping


class GenerationTransport(ABC):
    """
    Interface to an external generative text service.

    Contract:
        - One call to create_message() is one physical upstream attempt.
          Retries belong to InvocationClient, not to the transport.
        - The transport enforces its own per-call timeout.
        - Raw SDK exceptions propagate unchanged so they can be classified.

    Implementations:
        - GeminiTransport: Google Gemini via google-generativeai
        - Test doubles: AsyncMock(spec=GenerationTransport)
    """

    @abstractmethod
    async def create_message(
        self,
        model: str,
        max_tokens: int,
        messages: List[Dict[str, str]],
    ) -> Mapping[str, Any]:
        """
        Send one generation request upstream.

        Args:
            model:       Model identifier understood by the provider.
            max_tokens:  Maximum number of output tokens.
            messages:    Exactly one message: [{"role": "user", "content": prompt}].

        Returns:
            The response envelope described in the module docstring.

        Raises:
            Any provider or transport exception, unmodified.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the upstream service is reachable and operational.

        Returns: True if reachable, False otherwise. Never raises.
        """
        ...
