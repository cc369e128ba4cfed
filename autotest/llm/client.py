"""
LLM Client
==========
Asynchronous client for OpenAI-compatible chat-completion APIs.

Request Shape:
    - One system message (SYSTEM_PROMPT)
    - Few-shot example messages, in the order they were given
    - The user prompt for the file under test, last

Response Handling:
    - Non-streaming: take choices[0].message.content and blank out every
      line that starts with ``` (markdown fences)
    - Streaming: read server-sent "data: " lines, hand each delta token to
      a callback, stop exactly at "data: [DONE]"

Failure Policy:
    - No retries, no provider fallback
    - HTTP errors, timeouts and malformed chunks are logged and raised as
      LLMError
"""
import json
import logging
import re
from dataclasses import dataclass
from typing import AsyncIterator, Callable, List, Optional

import httpx

from autotest.core.config import OPENAI_BASE_URL, REQUEST_TIMEOUT
from autotest.core.constants import STREAM_DATA_PREFIX, STREAM_DONE
from autotest.llm.prompts import SYSTEM_PROMPT
from autotest.models.completion_request import CompletionRequest
from autotest.models.message import Message, Role

logger = logging.getLogger(__name__)

_FENCE_LINE_RE = re.compile(r"^```.*$", re.MULTILINE)


class LLMError(Exception):
    """Raised when the completion API call fails."""


# ---------------------------------------------------------------------------
# Request Construction
# ---------------------------------------------------------------------------
def get_completion_request(
    model: str,
    prompt: str,
    examples: Optional[List[Message]] = None,
) -> CompletionRequest:
    """System prompt, then few-shot messages, then the user prompt."""
    messages = [Message(role=Role.SYSTEM, content=SYSTEM_PROMPT)]
    messages.extend(examples or [])
    messages.append(Message(role=Role.USER, content=prompt))
    return CompletionRequest(model=model, messages=messages)


# ---------------------------------------------------------------------------
# Response Parsing
# ---------------------------------------------------------------------------
def strip_code_fences(text: Optional[str]) -> str:
    """Blank out every line that starts with ``` (opening or closing fence)."""
    if not text:
        return ""
    return _FENCE_LINE_RE.sub("", text)


@dataclass
class StreamEvent:
    """One parsed server-sent line."""
    token: str = ""
    done: bool = False


def parse_stream_line(line: str) -> Optional[StreamEvent]:
    """
    Parse one line of a streamed chat completion.

    Returns None for lines that carry no data (blank lines, comments,
    event names). Raises LLMError if a data line is not valid JSON.
    """
    line = line.strip()
    if not line.startswith(STREAM_DATA_PREFIX):
        return None

    message = line[len(STREAM_DATA_PREFIX):]
    if message == STREAM_DONE:
        return StreamEvent(done=True)

    try:
        chunk = json.loads(message)
    except json.JSONDecodeError as e:
        raise LLMError(f"Malformed stream chunk: {message[:80]!r}") from e

    try:
        token = chunk["choices"][0]["delta"].get("content") or ""
    except (KeyError, IndexError, TypeError, AttributeError):
        token = ""
    return StreamEvent(token=token)


# ---------------------------------------------------------------------------
# LLM Client
# ---------------------------------------------------------------------------
class LLMClient:
    """
    Async HTTP client for the chat-completions endpoint.

    Usage:
        client = LLMClient(api_key="sk-...")
        text = await client.get_test_content(request)
        await client.close()

    Parameters
    ----------
    api_key : str
        Sent as ``Authorization: Bearer <api_key>``.
    base_url : str
        API root, ``/chat/completions`` is appended.
    timeout : float
        Per-request timeout in seconds.
    http : httpx.AsyncClient, optional
        Pre-built HTTP client (tests pass one with a mock transport).
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = OPENAI_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        http: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = http

    async def _get_http(self) -> httpx.AsyncClient:
        """Lazy-initialise the HTTP client."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._http

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http and not self._http.is_closed:
            await self._http.aclose()
            self._http = None

    @property
    def _url(self) -> str:
        return f"{self.base_url}/chat/completions"

    @property
    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def create_chat_completion(self, request: CompletionRequest) -> dict:
        """Send a non-streaming request and return the decoded JSON body."""
        http = await self._get_http()
        payload = request.model_copy(update={"stream": False}).to_payload()
        try:
            resp = await http.post(self._url, json=payload, headers=self._headers)
            resp.raise_for_status()
            return resp.json()
        except httpx.TimeoutException as e:
            logger.error("Completion request to %s timed out", self._url)
            raise LLMError("Completion request timed out") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("Completion request failed: HTTP %d", status)
            raise LLMError(f"Completion API returned HTTP {status}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Completion request failed: %s", e)
            raise LLMError(str(e)) from e

    async def get_test_content(self, request: CompletionRequest) -> str:
        """Return the generated tests with markdown fence lines removed."""
        data = await self.create_chat_completion(request)
        try:
            content = data["choices"][0]["message"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            logger.warning("Completion response had no message content")
            content = None
        return strip_code_fences(content)

    async def iter_tokens(self, request: CompletionRequest) -> AsyncIterator[str]:
        """Yield content tokens of a streamed completion until [DONE]."""
        http = await self._get_http()
        payload = request.model_copy(update={"stream": True}).to_payload()
        try:
            async with http.stream("POST", self._url, json=payload, headers=self._headers) as resp:
                resp.raise_for_status()
                async for line in resp.aiter_lines():
                    event = parse_stream_line(line)
                    if event is None:
                        continue
                    if event.done:
                        return
                    if event.token:
                        yield event.token
            logger.warning("Stream ended without a %s terminator", STREAM_DONE)
        except httpx.TimeoutException as e:
            logger.error("Streaming request to %s timed out", self._url)
            raise LLMError("Streaming request timed out") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("Streaming request failed: HTTP %d", status)
            raise LLMError(f"Completion API returned HTTP {status}") from e
        except httpx.HTTPError as e:
            logger.error("Streaming request failed: %s", e)
            raise LLMError(str(e)) from e

    async def stream_test_content(
        self,
        request: CompletionRequest,
        on_token: Callable[[str], None],
    ) -> str:
        """
        Stream a completion, calling ``on_token`` for every non-empty token.

        Returns the concatenated text that was streamed.
        """
        received: List[str] = []
        async for token in self.iter_tokens(request):
            on_token(token)
            received.append(token)
        logger.debug("Streamed %d tokens", len(received))
        return "".join(received)
