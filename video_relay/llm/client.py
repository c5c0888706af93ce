"""HTTP client for the OpenAI Chat Completions API.

WHY: Video descriptions are long and full of sponsor links. The relay
posts a short summary instead, written by a chat-completion model. This
module keeps all OpenAI HTTP details out of the relay logic.

HOW: OpenAIClient wraps httpx.Client with Bearer token auth and is used as
a context manager. summarize_description() sends a system instruction plus
the description, asks for a JSON object response, and returns its
``summary`` field.

RULES:
- Always use the context manager (with OpenAIClient() as llm: ...)
- api_key defaults to load_openai_api_key() from .env
- Non-2xx responses raise OpenAIAPIError with status and body
- A completion that is not a JSON object raises OpenAIAPIError
- A JSON object without "summary" yields "" (nothing to post)
"""

from __future__ import annotations

import json
import logging

import httpx

from video_relay.config import OPENAI_BASE_URL, OPENAI_MODEL, load_openai_api_key

logger = logging.getLogger(__name__)

SUMMARY_INSTRUCTIONS = json.dumps({
    "role": "AI assistant",
    "task": "Summarize the description",
    "instructions": (
        'Provide only the summary of the description in JSON format '
        '({"summary": "..."}) without any additional content, start with "Summary: "'
    ),
})


class OpenAIAPIError(Exception):
    """Raised when the OpenAI API returns an error or an unusable completion.

    RULES:
    - status_code is the HTTP status (0 for malformed-but-200 responses)
    - message is the response body text or a summary
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"OpenAI API error {status_code}: {message}")


class OpenAIClient:
    """Minimal chat-completions client used for description summaries.

    RULES:
    - Use as: with OpenAIClient() as llm: llm.summarize_description(text)
    - base_url defaults to OPENAI_BASE_URL, model to OPENAI_MODEL
    - transport is for tests (httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or load_openai_api_key()
        self._base_url = (base_url or OPENAI_BASE_URL).rstrip("/")
        self._model = model or OPENAI_MODEL
        self._transport = transport
        self._client: httpx.Client | None = None

    def __enter__(self) -> OpenAIClient:
        self._client = httpx.Client(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            timeout=httpx.Timeout(60.0, connect=10.0),
            transport=self._transport,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            self._client.close()
            self._client = None

    def _ensure_client(self) -> httpx.Client:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "OpenAIClient must be used as a context manager: "
                "with OpenAIClient() as llm: ..."
            )
        return self._client

    def complete_json(self, system: str, user: str) -> dict:
        """Run one chat completion in JSON mode and return the parsed object.

        Raises:
            OpenAIAPIError: On non-2xx responses or when the message content
                is not a JSON object.
        """
        client = self._ensure_client()
        body = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "response_format": {"type": "json_object"},
        }

        resp = client.post("/chat/completions", json=body)
        if resp.status_code != 200:
            raise OpenAIAPIError(resp.status_code, resp.text)

        try:
            content = resp.json()["choices"][0]["message"]["content"] or "{}"
            parsed = json.loads(content)
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise OpenAIAPIError(0, "Malformed completion: {}".format(exc)) from exc

        if not isinstance(parsed, dict):
            raise OpenAIAPIError(0, "Completion is not a JSON object: {!r}".format(parsed))
        return parsed

    def summarize_description(self, description: str) -> str:
        """Summarize a video description for the published post.

        Returns:
            The summary text, or "" when the model returned no summary.
        """
        logger.info("Summarizing video description (%d chars)", len(description))
        result = self.complete_json(SUMMARY_INSTRUCTIONS, description)
        summary = result.get("summary") or ""
        logger.info("Description summarized successfully: %s", summary)
        return str(summary)
