import asyncio

import pytest

from livescribe import summarizer as summarizer_module
from livescribe.models import ScoredSentence
from livescribe.summarizer import (
    NOTHING_TO_SUMMARIZE,
    SUMMARY_FAILED,
    TOO_SHORT,
    Summarizer,
    score_sentences,
    select_positional,
    select_scored,
    split_sentences,
)

from fakes import MapClassifier

S = [
    "We kicked off the planning meeting.",
    "The budget is tight this quarter.",
    "Everyone loved the new design.",
    "Shipping slipped by two weeks.",
    "We will meet again on Friday.",
]
TEXT = " ".join(S)


def _summarize(text, loader=None, count=3):
    return asyncio.run(Summarizer(loader, sentence_count=count).generate_summary(text))


def _loader_for(classifier):
    async def _load():
        return classifier

    return _load


def test_split_sentences_at_capitalised_boundaries():
    assert split_sentences(TEXT) == S
    assert split_sentences("it works. then lower case stays") == [
        "it works. then lower case stays"
    ]


def test_split_sentences_drops_short_fragments():
    assert split_sentences("Hello there. How are you? Fine!") == [
        "Hello there.",
        "How are you?",
    ]


def test_empty_transcript_never_loads_classifier():
    calls = []

    async def loader():
        calls.append(1)
        return MapClassifier({})

    assert _summarize("", loader) == NOTHING_TO_SUMMARIZE
    assert _summarize("   ", loader) == NOTHING_TO_SUMMARIZE
    assert calls == []


def test_only_noise_is_too_short():
    assert _summarize("Hi. Yo.") == TOO_SHORT


def test_single_unpunctuated_sentence_returned_verbatim():
    text = "the quick brown fox jumps over the lazy dog"
    assert _summarize(text) == text


def test_three_or_fewer_sentences_returned_in_order():
    classifier = MapClassifier({})
    text = " ".join(S[:3])
    assert _summarize(text, _loader_for(classifier)) == text
    assert classifier.calls == 0


def test_positional_fallback_when_classifier_fails_to_load():
    async def loader():
        raise RuntimeError("offline")

    assert _summarize(TEXT, loader) == " ".join([S[0], S[2], S[4]])


def test_positional_fallback_without_classifier():
    assert _summarize(" ".join(S[:4])) == " ".join([S[0], S[2], S[3]])


def test_select_positional_respects_count():
    assert select_positional(S, 1) == [S[0]]
    assert select_positional(S, 2) == [S[0], S[2]]
    assert select_positional(S, 3) == [S[0], S[2], S[4]]
    assert select_positional(S[:2], 3) == S[:2]


def test_scored_summary_forces_opening_sentence_and_restores_order():
    classifier = MapClassifier({S[0]: 0.1, S[1]: 0.9, S[2]: 0.95, S[3]: 0.8, S[4]: 0.2})

    summary = _summarize(TEXT, _loader_for(classifier))

    assert summary == " ".join([S[0], S[1], S[2]])
    assert classifier.calls == len(S)


def test_scored_summary_keeps_top_three_when_opening_ranks():
    classifier = MapClassifier({S[0]: 0.99, S[3]: 0.9, S[4]: 0.8})
    assert _summarize(TEXT, _loader_for(classifier)) == " ".join([S[0], S[3], S[4]])


def test_select_scored_ties_keep_document_order():
    scored = [ScoredSentence(s, 0.5, "NEUTRAL", i) for i, s in enumerate(S)]
    assert select_scored(scored) == S[:3]


def test_failed_or_odd_scores_degrade_to_neutral():
    async def classifier(sentence):
        if sentence == S[1]:
            raise RuntimeError("inference error")
        if sentence == S[2]:
            return "garbage"
        if sentence == S[3]:
            return []
        if sentence == S[4]:
            return {"label": "NEGATIVE", "confidence": 0.7}
        return [{"label": "POSITIVE", "score": 0.0}]

    scored = asyncio.run(score_sentences(classifier, S))

    assert [(s.score, s.label) for s in scored] == [
        (0.5, "POSITIVE"),
        (0.5, "NEUTRAL"),
        (0.5, "NEUTRAL"),
        (0.5, "NEUTRAL"),
        (0.7, "NEGATIVE"),
    ]
    assert [s.index for s in scored] == [0, 1, 2, 3, 4]


def test_classifier_loaded_once():
    classifier = MapClassifier({})
    loads = []

    async def loader():
        loads.append(1)
        return classifier

    summarizer = Summarizer(loader)

    async def scenario():
        await summarizer.generate_summary(TEXT)
        await summarizer.generate_summary(TEXT)

    asyncio.run(scenario())
    assert loads == [1]
    assert classifier.calls == 2 * len(S)
    assert summarizer.status == "Text analysis model loaded"


def test_out_of_range_scores_are_clamped():
    async def classifier(sentence):
        return [{"label": "POSITIVE", "score": 7.5 if sentence == S[2] else -3.0}]

    scored = asyncio.run(score_sentences(classifier, S))

    assert [s.score for s in scored] == [0.0, 0.0, 1.0, 0.0, 0.0]


def test_unexpected_error_returns_failure_message(monkeypatch):
    def broken_split(text):
        raise RuntimeError("regex engine exploded")

    monkeypatch.setattr(summarizer_module, "split_sentences", broken_split)

    assert _summarize(TEXT) == SUMMARY_FAILED


def test_sentence_count_must_be_positive():
    with pytest.raises(ValueError):
        Summarizer(sentence_count=0)
    with pytest.raises(ValueError):
        Summarizer(sentence_count=-1)
