import asyncio
import json

import requests

from livescribe.remote import REMOTE_FAILED, RemoteSummarizer
from livescribe.summarizer import NOTHING_TO_SUMMARIZE


def _response(status, body):
    response = requests.Response()
    response.status_code = status
    response._content = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
    response.encoding = "utf-8"
    return response


class FakeHTTP:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def _summarizer(http):
    return RemoteSummarizer(
        endpoint="https://llm.example/v1/chat/completions",
        api_key="token",
        model="tiny",
        max_tokens=120,
        session=http,
    )


def test_posts_chat_completion_request():
    http = FakeHTTP(_response(200, {"choices": [{"message": {"content": " Short summary. "}}]}))

    result = asyncio.run(_summarizer(http).summarize("we talked about the budget"))

    assert result == "Short summary."
    call = http.calls[0]
    assert call["json"]["model"] == "tiny"
    assert call["json"]["max_tokens"] == 120
    assert call["json"]["messages"][-1] == {
        "role": "user",
        "content": "we talked about the budget",
    }
    assert call["headers"]["Authorization"] == "Bearer token"


def test_empty_text_skips_request():
    http = FakeHTTP()
    assert _summarizer(http).summarize_sync("  ") == NOTHING_TO_SUMMARIZE
    assert http.calls == []


def test_non_conforming_responses_fail_with_fixed_message():
    cases = [
        FakeHTTP(_response(200, {"choices": []})),
        FakeHTTP(_response(200, {"result": "text"})),
        FakeHTTP(_response(200, b"not json")),
        FakeHTTP(_response(500, {"error": "boom"})),
        FakeHTTP(error=requests.ConnectionError("offline")),
    ]
    for http in cases:
        assert _summarizer(http).summarize_sync("some text") == REMOTE_FAILED
