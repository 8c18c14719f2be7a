import json

import pytest

from minutes_api.errors import (
    ExtractionError,
    InvalidAIResponseShape,
    MalformedAIResponse,
    UpstreamError,
)
from minutes_api.services.extraction import (
    MeetingNotesProcessor,
    build_prompt,
    parse_ai_response,
    strip_code_fence,
)

SAMPLE = {
    "summary": "The team set the launch date and assigned onboarding docs.",
    "decisions": ["Launch the new product on June 10."],
    "actionItems": [{"task": "Prepare onboarding docs", "owner": "Ravi", "due": "June 5"}],
}


class StubClient:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


def test_prompt_embeds_text_verbatim_and_asks_for_json_only():
    text = "Notes with {braces} and \"quotes\"\n- Ravi to do X"
    prompt = build_prompt(text)
    assert text in prompt
    assert '"actionItems"' in prompt
    assert "Return ONLY" in prompt
    assert "null if not specified" in prompt


@pytest.mark.parametrize(
    "wrapped",
    [
        "```json\n{body}\n```",
        "```\n{body}\n```",
        "```JSON\n{body}```",
        "```{body}```",
        "\n```json\n{body}\n```\n",
    ],
)
def test_fenced_and_unfenced_replies_parse_the_same(wrapped):
    body = json.dumps(SAMPLE, indent=2)
    fenced = wrapped.replace("{body}", body)
    assert parse_ai_response(fenced) == parse_ai_response(body) == SAMPLE


def test_unfenced_text_is_left_alone():
    assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'


def test_non_json_reply_is_malformed():
    with pytest.raises(MalformedAIResponse) as excinfo:
        parse_ai_response("Sure! Here are the minutes: ...")
    assert isinstance(excinfo.value.cause, json.JSONDecodeError)


@pytest.mark.parametrize(
    "payload",
    [
        {"decisions": [], "actionItems": []},
        {"summary": "", "decisions": [], "actionItems": []},
        {"summary": 42, "decisions": [], "actionItems": []},
        {"summary": "ok", "actionItems": []},
        {"summary": "ok", "decisions": "one decision", "actionItems": []},
        {"summary": "ok", "decisions": []},
        {"summary": "ok", "decisions": [], "actionItems": {"task": "x"}},
        {"summary": "ok", "decisions": None, "actionItems": None},
        ["summary", "decisions", "actionItems"],
    ],
)
def test_wrong_shape_is_rejected_whole(payload):
    with pytest.raises(InvalidAIResponseShape):
        parse_ai_response(json.dumps(payload))


def test_whitespace_summary_counts_as_non_empty():
    payload = {"summary": "  ", "decisions": [], "actionItems": []}
    assert parse_ai_response(json.dumps(payload)) == payload


def test_parsed_object_is_returned_unchanged():
    payload = dict(SAMPLE, decisions=["a", 7], extra={"kept": True})
    assert parse_ai_response(json.dumps(payload)) == payload


def test_processor_calls_upstream_once():
    client = StubClient(reply=json.dumps(SAMPLE))
    result = MeetingNotesProcessor(client).extract("- We ship Friday.")
    assert result == SAMPLE
    assert len(client.prompts) == 1
    assert "- We ship Friday." in client.prompts[0]


def test_processor_does_not_retry_on_bad_shape():
    client = StubClient(reply=json.dumps({"summary": "only"}))
    with pytest.raises(InvalidAIResponseShape):
        MeetingNotesProcessor(client).extract("notes")
    assert len(client.prompts) == 1


def test_upstream_errors_pass_through():
    client = StubClient(error=UpstreamError("HTTP 429: quota exceeded"))
    with pytest.raises(UpstreamError) as excinfo:
        MeetingNotesProcessor(client).extract("notes")
    assert "quota" in str(excinfo.value)


def test_unexpected_client_errors_are_wrapped():
    boom = RuntimeError("connection reset")
    client = StubClient(error=boom)
    with pytest.raises(ExtractionError) as excinfo:
        MeetingNotesProcessor(client).extract("notes")
    assert excinfo.value.cause is boom
    assert str(excinfo.value) == "Failed to process meeting notes: connection reset"
