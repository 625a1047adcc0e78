import json

import pytest
from langchain_core.prompts import ChatPromptTemplate

from conftest import FakeLlmClient, FakeResponse, feedback_payload
from dialogue import NextTurn
from domain import FeedbackReport
from llm_gateway import LlmGatewayError, chat, prompt_messages, strip_code_fences


def test_chat_parses_fenced_json_into_schema(coach_route) -> None:
    fenced = "```json\n" + json.dumps(feedback_payload()) + "\n```"
    client = FakeLlmClient(fenced)

    report = chat([{"role": "user", "content": "review"}], FeedbackReport, cfg=coach_route, client=client)

    assert report.strengths[0].title == "Structured answers"
    assert report.improvements[0].suggestion.startswith("Attach a metric")


def test_chat_sends_route_sampling_parameters(route) -> None:
    client = FakeLlmClient("Tell me about a recent project.")

    chat([{"role": "user", "content": "next"}], NextTurn, cfg=route, client=client)

    call = client.calls[0]
    assert call["url"] == "http://llm.test/v1/chat/completions"
    assert call["json"]["model"] == "gpt-4o"
    assert call["json"]["temperature"] == 0.7
    assert call["json"]["max_tokens"] == 300
    assert call["timeout"] == 5.0


def test_explicit_api_key_wins_over_environment(monkeypatch, route) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-from-env")
    keyed = route.model_copy(update={"api_key_env": "OPENAI_API_KEY"})
    client = FakeLlmClient("Question?", "Question?")

    chat([{"role": "user", "content": "a"}], NextTurn, cfg=keyed, client=client, api_key="sk-session")
    chat([{"role": "user", "content": "b"}], NextTurn, cfg=keyed, client=client)

    assert client.calls[0]["headers"]["Authorization"] == "Bearer sk-session"
    assert client.calls[1]["headers"]["Authorization"] == "Bearer sk-from-env"


def test_plain_text_reply_uses_raw_content_adapter(route) -> None:
    client = FakeLlmClient("  What drew you to payments?  ")

    reply = chat([{"role": "user", "content": "next"}], NextTurn, cfg=route, client=client)

    assert reply.text == "What drew you to payments?"


def test_error_status_raises_gateway_error(route) -> None:
    client = FakeLlmClient(FakeResponse(500, {"error": "boom"}))

    with pytest.raises(LlmGatewayError):
        chat([{"role": "user", "content": "next"}], NextTurn, cfg=route, client=client)


def test_transport_failure_raises_gateway_error(route) -> None:
    client = FakeLlmClient(ConnectionError("refused"))

    with pytest.raises(LlmGatewayError):
        chat([{"role": "user", "content": "next"}], NextTurn, cfg=route, client=client)


def test_missing_content_raises_gateway_error(route) -> None:
    client = FakeLlmClient(FakeResponse(200, {"choices": []}))

    with pytest.raises(LlmGatewayError):
        chat([{"role": "user", "content": "next"}], NextTurn, cfg=route, client=client)


def test_validation_failure_retries_with_hint(coach_route) -> None:
    retrying = coach_route.model_copy(update={"max_retries": 1})
    client = FakeLlmClient("not json at all", feedback_payload())

    report = chat([{"role": "user", "content": "review"}], FeedbackReport, cfg=retrying, client=client)

    assert len(client.calls) == 2
    hint = client.calls[1]["json"]["messages"][-1]
    assert hint["role"] == "system"
    assert hint["content"].startswith("The previous reply failed validation.")
    assert report.strengths


def test_validation_failure_without_retries_raises(coach_route) -> None:
    client = FakeLlmClient('{"strengths": [], "improvements": []}')

    with pytest.raises(LlmGatewayError):
        chat([{"role": "user", "content": "review"}], FeedbackReport, cfg=coach_route, client=client)


def test_prompt_messages_maps_roles() -> None:
    prompt = ChatPromptTemplate.from_messages([("system", "You interview for {role}."), ("human", "Said: {text}")])

    messages = prompt_messages(prompt, role="SRE", text="hello")

    assert messages == [
        {"role": "system", "content": "You interview for SRE."},
        {"role": "user", "content": "Said: hello"},
    ]


def test_strip_code_fences_handles_plain_text() -> None:
    assert strip_code_fences("```\n{\"a\": 1}\n```") == '{"a": 1}'
    assert strip_code_fences("  plain  ") == "plain"
