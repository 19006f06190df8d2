"""Summaries from a chat-completion endpoint."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import requests

from .summarizer import NOTHING_TO_SUMMARIZE

logger = logging.getLogger("livescribe")

REMOTE_FAILED = "Failed to generate summary."


class RemoteSummarizer:
    def __init__(
        self,
        endpoint: str,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        max_tokens: int = 300,
        prompt: str = "Summarize the following transcript in a few sentences.",
        timeout: float = 60.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.endpoint = endpoint
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.prompt = prompt
        self.timeout = timeout
        self._http = session or requests.Session()

    def build_payload(self, text: str) -> dict:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.prompt},
                {"role": "user", "content": text},
            ],
            "max_tokens": self.max_tokens,
        }

    def summarize_sync(self, text: str) -> str:
        if not text or not text.strip():
            return NOTHING_TO_SUMMARIZE

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            response = self._http.post(
                self.endpoint,
                json=self.build_payload(text),
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.warning("Remote summary request failed: %s", e)
            return REMOTE_FAILED
        except ValueError as e:
            logger.warning("Remote summary returned invalid JSON: %s", e)
            return REMOTE_FAILED

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            logger.warning("Remote summary response missing choices[0].message.content")
            return REMOTE_FAILED
        if not isinstance(content, str) or not content.strip():
            return REMOTE_FAILED
        return content.strip()

    async def summarize(self, text: str) -> str:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.summarize_sync, text)
