"""Language model client package — description summaries.

WHY: The relay optionally rewrites a video's description into a short
summary before posting it.

HOW: OpenAIClient talks to the Chat Completions REST API over httpx.

RULES:
- All OpenAI HTTP calls go through OpenAIClient
- Authentication is via Bearer token from config
"""

from video_relay.llm.client import OpenAIAPIError, OpenAIClient

__all__ = ["OpenAIAPIError", "OpenAIClient"]
