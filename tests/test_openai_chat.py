"""Tests for the chat completions adapter."""

from unittest.mock import MagicMock

import pytest
import requests

from taskwise.adapters.openai_chat import OpenAIChatService


def make_service(response=None, error=None):
    session = MagicMock()
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = response
    return OpenAIChatService(api_key="sk-test", base_url="https://llm.example/v1/", session=session), session


def make_response(status_code=200, body=None, text=""):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    resp.json.return_value = body
    return resp


class TestOpenAIChatService:
    def test_generate_returns_content(self):
        body = {"choices": [{"message": {"content": '{"ok": true}'}}]}
        service, session = make_service(make_response(body=body))

        assert service.generate("hello", system="be brief") == '{"ok": true}'

        args, kwargs = session.post.call_args
        assert args[0] == "https://llm.example/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
        assert kwargs["json"]["model"] == "gpt-4o"
        assert kwargs["json"]["messages"] == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hello"},
        ]
        assert kwargs["json"]["response_format"] == {"type": "json_object"}
        assert kwargs["timeout"] == 60

    def test_no_system_message(self):
        body = {"choices": [{"message": {"content": "x"}}]}
        service, session = make_service(make_response(body=body))
        service.generate("hello")
        assert session.post.call_args.kwargs["json"]["messages"] == [{"role": "user", "content": "hello"}]

    def test_null_content(self):
        body = {"choices": [{"message": {"content": None}}]}
        service, _ = make_service(make_response(body=body))
        assert service.generate("hello") == ""

    def test_http_error(self):
        service, _ = make_service(make_response(status_code=401, text="bad key"))
        with pytest.raises(RuntimeError, match="401"):
            service.generate("hello")

    def test_timeout(self):
        service, _ = make_service(error=requests.Timeout())
        with pytest.raises(RuntimeError, match="timed out"):
            service.generate("hello")

    def test_connection_error(self):
        service, _ = make_service(error=requests.ConnectionError("refused"))
        with pytest.raises(RuntimeError, match="refused"):
            service.generate("hello")

    def test_malformed_body(self):
        service, _ = make_service(make_response(body={"choices": []}))
        with pytest.raises(RuntimeError, match="Unexpected"):
            service.generate("hello")
