import json
from types import SimpleNamespace

import pytest

from sponsorwatch.core.channels import DAVIS
from sponsorwatch.core.errors import AiRequestError, MissingCredentialsError
from sponsorwatch.schemas.enrichment import SponsorResponse
from sponsorwatch.services.intelligence import Intelligence, sanitize_sponsor


class FakeGroq:
    """Mimics groq.Groq().chat.completions.create."""

    def __init__(self, *contents):
        self.contents = list(contents)
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        content = self.contents.pop(0)
        if isinstance(content, Exception):
            raise content
        if not isinstance(content, str):
            content = json.dumps(content)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _raw(has_sponsor=True, name="Acme", key="https://davis7.link/acme"):
    return SponsorResponse(has_sponsor=has_sponsor, sponsor_name=name, sponsor_key=key)


def test_sanitize_normalizes_case_and_whitespace():
    result = sanitize_sponsor(_raw(name="  Acme Corp ", key=" HTTPS://davis7.link/ACME "), DAVIS.no_sponsor_key)

    assert result.has_sponsor is True
    assert result.sponsor_name == "acme corp"
    assert result.sponsor_key == "https://davis7.link/acme"


@pytest.mark.parametrize("raw", [
    _raw(has_sponsor=False),
    _raw(name=""),
    _raw(key="   "),
    _raw(name="No Sponsor"),
    _raw(key="https://davis7.link"),
    _raw(key="HTTPS://DAVIS7.LINK "),
    _raw(key="davis7.link"),
])
def test_sanitize_collapses_no_sponsor(raw):
    result = sanitize_sponsor(raw, "https://davis7.link")

    assert result.has_sponsor is False
    assert result.sponsor_name == "no sponsor"
    assert result.sponsor_key == "https://davis7.link"


def test_extract_sponsor_uses_channel_prompt():
    client = FakeGroq({"hasSponsor": True, "sponsorName": "Acme", "sponsorKey": "https://davis7.link/acme"})
    intelligence = Intelligence(client=client, base_delay=0)

    result = intelligence.extract_sponsor("Title", "Thanks Acme", DAVIS.sponsor_prompt, DAVIS.no_sponsor_key)

    assert result.value.sponsor_key == "https://davis7.link/acme"
    call = client.calls[0]
    assert call["response_format"] == {"type": "json_object"}
    assert "https://davis7.link/${SPONSOR_NAME}" in call["messages"][0]["content"]
    assert "Thanks Acme" in call["messages"][1]["content"]


def test_extract_sponsor_retries_then_succeeds():
    client = FakeGroq("not json", RuntimeError("rate limited"), {"hasSponsor": False})
    intelligence = Intelligence(client=client, base_delay=0)

    result = intelligence.extract_sponsor("t", "d", "prompt", "https://davis7.link")

    assert result.value.has_sponsor is False
    assert len(client.calls) == 3


def test_extract_sponsor_gives_up_after_budget():
    client = FakeGroq(*["not json"] * 3)
    intelligence = Intelligence(client=client, base_delay=0)

    result = intelligence.extract_sponsor("t", "d", "prompt", "https://davis7.link")

    assert isinstance(result.error, AiRequestError)
    assert len(client.calls) == 3


def test_missing_key_is_distinct_error():
    intelligence = Intelligence(api_key="")

    assert isinstance(intelligence.extract_sponsor("t", "d", "p", "k").error, MissingCredentialsError)
    assert isinstance(intelligence.classify_comment("t", "d", "a", "c").error, MissingCredentialsError)


def test_classify_comment():
    client = FakeGroq({"isEditingMistake": False, "isSponsorMention": True, "isQuestion": True, "isPositiveComment": False})
    intelligence = Intelligence(client=client, base_delay=0)

    result = intelligence.classify_comment("Title", "Desc", "@viewer", "is acme any good?")

    assert result.value.is_sponsor_mention is True
    assert result.value.is_question is True
    assert result.value.is_editing_mistake is False
    assert "is acme any good?" in client.calls[0]["messages"][1]["content"]


def test_classify_schema_mismatch_is_ai_error():
    client = FakeGroq(*[{"isQuestion": True}] * 3)
    intelligence = Intelligence(client=client, base_delay=0)

    assert isinstance(intelligence.classify_comment("t", "d", "a", "c").error, AiRequestError)
