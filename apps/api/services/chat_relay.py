"""
Chat relay to the hosted language model.

Opens a streaming Messages call and forwards each text delta as soon as it
arrives. No buffering, no retries. Opening the stream is separate from
reading it so the router can still answer with a JSON error when the call
cannot be started at all; once bytes are flowing, an upstream failure can
only be reported in-band.
"""

from functools import lru_cache
from typing import Any, Iterable, Iterator, List, Optional
import logging

from anthropic import Anthropic

from core.config import settings
from schemas import ChatMessage

logger = logging.getLogger(__name__)

STREAM_FAILURE_MESSAGE = "\n\nSorry, something went wrong while responding. Please try again."


class ChatRelay:
    def __init__(self, client: Any, model: str, max_tokens: int):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    def open_stream(self, system_prompt: str, messages: List[ChatMessage]) -> Iterable[Any]:
        """Start the upstream call. Raises whatever the client raises."""
        return self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=system_prompt,
            messages=[{"role": m.role, "content": m.content} for m in messages],
            stream=True,
        )

    def relay(self, stream: Iterable[Any]) -> Iterator[str]:
        """Yield text deltas until the upstream stream ends."""
        chunks = 0
        try:
            for event in stream:
                if event.type == "content_block_delta" and getattr(event.delta, "type", None) == "text_delta":
                    chunks += 1
                    yield event.delta.text
        except Exception as e:
            logger.error(f"Chat stream failed after {chunks} chunks: {e}", exc_info=True)
            yield STREAM_FAILURE_MESSAGE
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()
            logger.debug(f"Chat stream closed after {chunks} chunks")


@lru_cache(maxsize=1)
def _anthropic_client(api_key: str) -> Anthropic:
    return Anthropic(api_key=api_key)


def get_chat_relay() -> Optional[ChatRelay]:
    """FastAPI dependency. None when no API key is configured."""
    if not settings.ANTHROPIC_API_KEY:
        return None
    return ChatRelay(
        client=_anthropic_client(settings.ANTHROPIC_API_KEY),
        model=settings.CHAT_MODEL,
        max_tokens=settings.CHAT_MAX_TOKENS,
    )
