"""
Node functions for the review response graph.

Each node receives the current ``ResponseState`` plus the ``PipelineContext``
(bound with ``functools.partial`` when the graph is built) and returns the
state keys it updates.
"""
from dataclasses import dataclass
import logging

from autoresponder.constants import (
    FALLBACK_PROVIDER_NAME,
    FALLBACK_TEMPLATES,
    RECENT_REVIEWS_FETCH,
)
from autoresponder.errors import ProviderError, ReviewNotFoundError
from autoresponder.models import ResponseStatus
from autoresponder.options import ResponderOptions
from autoresponder.pipeline.prompt_builder import PromptBuilder, format_history
from autoresponder.pipeline.publishing import ReplyPublisher
from autoresponder.pipeline.review_filter import ReviewFilter
from autoresponder.pipeline.state import ResponseState
from autoresponder.providers.manager import ProviderManager
from autoresponder.services.store import ResponseStore
from autoresponder.services.storefront import Storefront

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    options: ResponderOptions
    storefront: Storefront
    store: ResponseStore
    manager: ProviderManager
    publisher: ReplyPublisher
    review_filter: ReviewFilter
    prompt_builder: PromptBuilder


def load_review_node(state: ResponseState, *, ctx: PipelineContext) -> dict:
    review_id = state["review_id"]
    review = ctx.storefront.get_review(review_id)
    if review is None:
        raise ReviewNotFoundError(review_id)
    return {"review": review}


def review_filter_node(state: ResponseState, *, ctx: PipelineContext) -> dict:
    return {"filter_passed": ctx.review_filter.should_process(state["review"])}


def fallback_response_node(state: ResponseState, *, ctx: PipelineContext) -> dict:
    """Pick a canned reply so a filtered review still leaves an auditable artifact."""
    review_id = state["review_id"]
    text = FALLBACK_TEMPLATES[review_id % len(FALLBACK_TEMPLATES)]
    logger.info(f"Review {review_id}: Filtered out, using fallback template")
    return {
        "response_text": text,
        "provider": FALLBACK_PROVIDER_NAME,
        "model": FALLBACK_PROVIDER_NAME,
        "generation_time": 0.0,
        "used_fallback": False,
    }


def generate_response_node(state: ResponseState, *, ctx: PipelineContext) -> dict:
    review = state["review"]
    options = ctx.options
    max_length = options.advanced_settings.max_response_length

    product_summary = ctx.storefront.get_product_summary(review.product_id, options.product_fields)
    recent = [
        r for r in ctx.storefront.get_recent_reviews(review.product_id, RECENT_REVIEWS_FETCH)
        if r.id != review.id
    ]
    history = format_history(recent, anonymize=options.privacy_settings.anonymize_customer_data)

    prompt = ctx.prompt_builder.build(review, product_summary, history, options.tone_style, max_length)
    result = ctx.manager.generate_response(
        prompt,
        {"review_id": review.id, "product_id": review.product_id},
    )

    text = ctx.prompt_builder.post_process(result.text, max_length)
    if not text:
        raise ProviderError(result.provider, "Provider returned an empty response")

    logger.info(
        f"Review {review.id}: Generated {len(text)} chars with {result.provider}/{result.model} "
        f"in {result.elapsed:.2f}s"
    )
    return {
        "response_text": text,
        "provider": result.provider,
        "model": result.model,
        "generation_time": result.elapsed,
        "used_fallback": result.used_fallback,
    }


def save_response_node(state: ResponseState, *, ctx: PipelineContext) -> dict:
    review = state["review"]
    response_id = ctx.store.save(
        review.id,
        review.product_id,
        state["response_text"],
        state["provider"],
        state["model"],
        state["generation_time"],
    )
    return {"response_id": response_id, "status": ResponseStatus.PENDING.value}


def publish_reply_node(state: ResponseState, *, ctx: PipelineContext) -> dict:
    response = ctx.store.get(state["response_id"])
    if not ctx.publisher.publish(response):
        return {"publish_error": "Reply could not be published"}
    published = ctx.store.get(response.id)
    return {"status": ResponseStatus.PUBLISHED.value, "reply_id": published.reply_id}


def hold_reply_node(state: ResponseState, *, ctx: PipelineContext) -> dict:
    response = ctx.store.get(state["response_id"])
    if not ctx.publisher.hold(response):
        return {"publish_error": "Held reply could not be created"}
    held = ctx.store.get(response.id)
    return {"reply_id": held.reply_id}
