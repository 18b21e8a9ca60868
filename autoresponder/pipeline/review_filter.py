"""
Eligibility heuristics deciding whether a review gets an AI-generated reply.

Rules run in order and the first failing rule short-circuits:
rating bounds (rated reviews only), spam, negative-only, questions.
"""
from collections import Counter
import logging

from autoresponder.constants import (
    NEGATIVE_MAX_RATING,
    NEGATIVE_MIN_MATCHES,
    NEGATIVE_WORDS,
    QUESTION_PHRASES,
    SPAM_MAX_LINKS,
    SPAM_MAX_WORD_REPEATS,
    SPAM_PHRASES,
)
from autoresponder.options import ResponderOptions
from autoresponder.schemas.review import Review

logger = logging.getLogger(__name__)


def is_spam(text: str) -> bool:
    lowered = text.lower()
    if any(phrase in lowered for phrase in SPAM_PHRASES):
        return True
    if lowered.count("http") > SPAM_MAX_LINKS:
        return True
    words = Counter(lowered.split())
    return any(count > SPAM_MAX_WORD_REPEATS for count in words.values())


def is_negative_only(text: str) -> bool:
    lowered = text.lower()
    matches = sum(1 for word in NEGATIVE_WORDS if word in lowered)
    return matches >= NEGATIVE_MIN_MATCHES


def is_question(text: str) -> bool:
    lowered = text.lower()
    return any(phrase in lowered for phrase in QUESTION_PHRASES)


class ReviewFilter:
    def __init__(self, options: ResponderOptions):
        self.options = options

    def should_process(self, review: Review) -> bool:
        filters = self.options.review_filters

        if review.rating > 0 and not (filters.min_rating <= review.rating <= filters.max_rating):
            logger.info(
                f"Review {review.id}: Rating {review.rating} outside "
                f"[{filters.min_rating}, {filters.max_rating}]"
            )
            return False

        if filters.exclude_spam and is_spam(review.body):
            logger.info(f"Review {review.id}: Flagged as spam")
            return False

        if (
            filters.exclude_negative_only
            and review.rating <= NEGATIVE_MAX_RATING
            and is_negative_only(review.body)
        ):
            logger.info(f"Review {review.id}: Flagged as negative-only")
            return False

        if filters.exclude_questions and is_question(review.body):
            logger.info(f"Review {review.id}: Flagged as a question")
            return False

        return True
