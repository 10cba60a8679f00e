"""Tests for app.services.llm_extractor."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from app.services import llm_extractor
from app.services.errors import ExtractionError
from app.services.llm_extractor import extract_structured, to_strict_schema


def _client(content):
    completion = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    create = AsyncMock(return_value=completion)
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create))), create


class TestToStrictSchema:
    def test_closes_objects_and_requires_all_properties(self):
        schema = {
            "type": "object",
            "properties": {
                "title": {"type": "string"},
                "tags": {"type": "array", "items": {"type": "object", "properties": {"name": {"type": "string"}}}},
            },
        }
        strict = to_strict_schema(schema)
        assert strict["additionalProperties"] is False
        assert strict["required"] == ["title", "tags"]
        item = strict["properties"]["tags"]["items"]
        assert item["additionalProperties"] is False
        assert item["required"] == ["name"]

    def test_input_untouched(self):
        schema = {"type": "object", "properties": {"a": {"type": "string"}}}
        to_strict_schema(schema)
        assert "additionalProperties" not in schema


class TestExtractStructured:
    def test_schema_uses_strict_json_schema(self):
        client, create = _client('{"title": "Hello"}')
        with patch.object(llm_extractor, "_get_client", return_value=client):
            result = asyncio.run(
                extract_structured("<h1>Hello</h1>", schema={"type": "object", "properties": {"title": {"type": "string"}}})
            )
        assert result == {"title": "Hello"}
        response_format = create.await_args.kwargs["response_format"]
        assert response_format["type"] == "json_schema"
        assert response_format["json_schema"]["strict"] is True

    def test_prompt_only_uses_json_object(self):
        client, create = _client('{"summary": "Hi"}')
        with patch.object(llm_extractor, "_get_client", return_value=client):
            asyncio.run(extract_structured("<p>Hi</p>", prompt="Summarise"))
        assert create.await_args.kwargs["response_format"] == {"type": "json_object"}
        assert "Summarise" in create.await_args.kwargs["messages"][1]["content"]

    def test_invalid_json(self):
        client, _ = _client("not json")
        with patch.object(llm_extractor, "_get_client", return_value=client):
            with pytest.raises(ExtractionError, match="invalid JSON"):
                asyncio.run(extract_structured("<p>x</p>", prompt="x"))

    def test_empty_response(self):
        client, _ = _client(None)
        with patch.object(llm_extractor, "_get_client", return_value=client):
            with pytest.raises(ExtractionError, match="empty"):
                asyncio.run(extract_structured("<p>x</p>", prompt="x"))

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.setattr(llm_extractor, "_client", None)
        with pytest.raises(ExtractionError, match="OPENAI_API_KEY"):
            asyncio.run(extract_structured("<p>x</p>", prompt="x"))
