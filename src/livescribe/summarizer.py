"""Extractive transcript summaries."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Tuple

from .classifier import Classifier
from .models import ScoredSentence

logger = logging.getLogger("livescribe")

NOTHING_TO_SUMMARIZE = "No transcript content to summarize."
TOO_SHORT = "The transcript is too short to summarize effectively."
SUMMARY_FAILED = "An error occurred while generating the summary."

NEUTRAL_SCORE = 0.5
NEUTRAL_LABEL = "NEUTRAL"
MIN_SENTENCE_CHARS = 5
DEFAULT_SENTENCE_COUNT = 3

_BOUNDARY = re.compile(r"(?<=[.?!])\s*(?=[A-Z])")

ClassifierLoader = Callable[[], Awaitable[Classifier]]


def split_sentences(text: str) -> List[str]:
    """Split at terminal punctuation followed by a capitalised word.

    Fragments of ``MIN_SENTENCE_CHARS`` characters or fewer are noise.
    """
    if not text:
        return []
    parts = (part.strip() for part in _BOUNDARY.split(text))
    return [part for part in parts if len(part) > MIN_SENTENCE_CHARS]


def select_positional(sentences: List[str], count: int = DEFAULT_SENTENCE_COUNT) -> List[str]:
    if len(sentences) <= count:
        return list(sentences)
    result = [sentences[0]]
    if count >= 2:
        result.append(sentences[len(sentences) // 2])
    if count >= 3:
        result.append(sentences[-1])
    return result


def select_scored(
    scored: List[ScoredSentence], count: int = DEFAULT_SENTENCE_COUNT
) -> List[str]:
    """Top ``count`` by score, always keeping the opening sentence.

    When the opening sentence did not make the cut it replaces the
    lowest-ranked pick. The result is in document order.
    """
    ranked = sorted(scored, key=lambda item: -item.score)
    top = ranked[:count]
    if top and not any(item.index == 0 for item in top):
        opening = next(item for item in scored if item.index == 0)
        top[-1] = opening
    top.sort(key=lambda item: item.index)
    return [item.sentence for item in top]


def _read_score(output: Any) -> Tuple[float, str]:
    result = output
    if not isinstance(result, Mapping):
        result = output[0]
    if not isinstance(result, Mapping):
        raise TypeError(f"unexpected classifier output: {output!r}")
    score = result.get("score") or result.get("confidence") or NEUTRAL_SCORE
    label = result.get("label") or NEUTRAL_LABEL
    return min(max(float(score), 0.0), 1.0), str(label)


async def _score_one(classifier: Classifier, index: int, sentence: str) -> ScoredSentence:
    try:
        score, label = _read_score(await classifier(sentence))
    except Exception as exc:
        logger.debug("Scoring failed for sentence %d: %s", index, exc)
        score, label = NEUTRAL_SCORE, NEUTRAL_LABEL
    return ScoredSentence(sentence=sentence, score=score, label=label, index=index)


async def score_sentences(classifier: Classifier, sentences: List[str]) -> List[ScoredSentence]:
    return list(
        await asyncio.gather(
            *(_score_one(classifier, i, s) for i, s in enumerate(sentences))
        )
    )


class Summarizer:
    """Builds a short extractive summary from transcript text.

    With a classifier, sentences are ranked by classifier confidence.
    Without one (or if it fails to load) the first, middle and last
    sentences are used.
    """

    def __init__(
        self,
        classifier_loader: Optional[ClassifierLoader] = None,
        sentence_count: int = DEFAULT_SENTENCE_COUNT,
    ) -> None:
        if sentence_count < 1:
            raise ValueError(f"sentence_count must be at least 1, got {sentence_count}")
        self._loader = classifier_loader
        self._classifier: Optional[Classifier] = None
        self.sentence_count = sentence_count
        self.status = ""

    async def _get_classifier(self) -> Optional[Classifier]:
        if self._classifier is not None:
            return self._classifier
        if self._loader is None:
            return None
        self.status = "Loading text analysis model..."
        try:
            self._classifier = await self._loader()
        except Exception as exc:
            logger.warning("Error loading text classifier: %s", exc)
            self.status = "Failed to load text analysis model"
            return None
        self.status = "Text analysis model loaded"
        return self._classifier

    async def generate_summary(self, text: str) -> str:
        try:
            if not text or not text.strip():
                return NOTHING_TO_SUMMARIZE

            sentences = split_sentences(text)
            if not sentences:
                return TOO_SHORT
            if len(sentences) <= self.sentence_count:
                return " ".join(sentences)

            try:
                classifier = await self._get_classifier()
                if classifier is not None:
                    scored = await score_sentences(classifier, sentences)
                    return " ".join(select_scored(scored, self.sentence_count))
            except Exception as exc:
                logger.warning("Error in sentence scoring, using positional summary: %s", exc)

            return " ".join(select_positional(sentences, self.sentence_count))
        except Exception as exc:
            logger.error("Error generating summary: %s", exc)
            return SUMMARY_FAILED
