"""Tests for the Claude-backed analysis and merge calls."""

import asyncio
from types import SimpleNamespace

import pytest

from situationship import (
    EmptyResponseError,
    MODELS,
    RelationshipAnalyst,
    UploadItem,
    resolve_model,
)
from situationship.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    ANALYSIS_TEMPLATE,
    MERGE_INSTRUCTIONS,
    MERGE_SYSTEM_PROMPT,
)


class FakeMessages:
    def __init__(self, text="### Relationship Analysis\nTL;DR:\nFine."):
        self.text = text
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.text is None:
            return SimpleNamespace(content=[])
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=self.text)])


class FakeClient:
    def __init__(self, text="### Relationship Analysis\nTL;DR:\nFine."):
        self.messages = FakeMessages(text)
        self.closed = False

    async def close(self):
        self.closed = True


def screenshot(name):
    return UploadItem(data=name.encode(), media_type="image/png", filename=name)


class TestResolveModel:

    def test_known_key(self):
        assert resolve_model("haiku") == MODELS["haiku"]["id"]

    def test_unknown_key_falls_back_to_default(self):
        assert resolve_model("gpt-9") == MODELS["sonnet"]["id"]

    def test_missing_key_uses_default(self):
        assert resolve_model(None) == MODELS["sonnet"]["id"]


class TestRelationshipAnalyst:

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ValueError, match="API key"):
            RelationshipAnalyst()

    def test_builds_async_client_from_env(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        analyst = RelationshipAnalyst(model="opus")

        assert analyst.model == MODELS["opus"]["id"]
        assert analyst.client is not None
        asyncio.run(analyst.close())

    def test_analyze_group_sends_template_and_images(self):
        client = FakeClient()
        analyst = RelationshipAnalyst(client=client, model="haiku")

        result = asyncio.run(analyst.analyze_group([screenshot("a"), screenshot("b")]))

        assert result.startswith("### Relationship Analysis")
        call = client.messages.calls[0]
        assert call["model"] == MODELS["haiku"]["id"]
        assert call["system"] == ANALYSIS_SYSTEM_PROMPT
        assert call["max_tokens"] == 1500
        assert call["temperature"] == 0.7

        content = call["messages"][0]["content"]
        assert content[0] == {"type": "text", "text": ANALYSIS_TEMPLATE}
        assert [block["type"] for block in content[1:]] == ["image", "image"]
        assert call["messages"][0]["role"] == "user"

    def test_merge_sends_partials_in_order(self):
        client = FakeClient()
        analyst = RelationshipAnalyst(client=client)

        asyncio.run(analyst.merge_results(["first", "second", "third"]))

        call = client.messages.calls[0]
        assert call["system"] == MERGE_SYSTEM_PROMPT
        prompt = call["messages"][0]["content"]
        assert prompt.startswith(MERGE_INSTRUCTIONS)
        assert prompt.index("first") < prompt.index("second") < prompt.index("third")

    def test_merge_of_one_still_calls_api(self):
        client = FakeClient()
        analyst = RelationshipAnalyst(client=client)

        asyncio.run(analyst.merge_results(["only"]))

        assert len(client.messages.calls) == 1

    def test_merge_of_nothing_skips_api(self):
        client = FakeClient()
        analyst = RelationshipAnalyst(client=client)

        assert asyncio.run(analyst.merge_results([])) == ""
        assert client.messages.calls == []

    @pytest.mark.parametrize("text", [None, "   "])
    def test_empty_response_raises(self, text):
        analyst = RelationshipAnalyst(client=FakeClient(text=text))

        with pytest.raises(EmptyResponseError):
            asyncio.run(analyst.analyze_group([screenshot("a")]))

    def test_context_manager_closes_client(self):
        client = FakeClient()

        async def use():
            async with RelationshipAnalyst(client=client) as analyst:
                await analyst.analyze_group([screenshot("a")])

        asyncio.run(use())
        assert client.closed
