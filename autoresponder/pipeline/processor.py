"""
Review processor: runs the response graph for a review and handles the
approval actions on stored responses.
"""
from dataclasses import dataclass
from typing import Optional
import logging

from autoresponder.errors import AllProvidersUnavailable
from autoresponder.models import AuditAction, ResponseStatus
from autoresponder.pipeline.graph import create_response_graph
from autoresponder.pipeline.nodes import PipelineContext
from autoresponder.pipeline.state import ResponseState

logger = logging.getLogger(__name__)


@dataclass
class ProcessingOutcome:
    review_id: int
    text: Optional[str] = None
    response_id: Optional[int] = None
    status: Optional[str] = None
    provider: Optional[str] = None
    used_fallback: bool = False
    error: Optional[str] = None
    # Set when the response was stored but its storefront reply could not be written
    publish_error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.text is not None


class ReviewProcessor:
    def __init__(self, ctx: PipelineContext):
        self.ctx = ctx
        self.store = ctx.store
        self.publisher = ctx.publisher
        self.graph = create_response_graph(ctx)

    def initial_state(self, review_id: int) -> ResponseState:
        return {
            "review_id": review_id,
            "workflow_mode": self.ctx.options.workflow_mode.value,
            "review": None,
            "filter_passed": None,
            "response_text": None,
            "provider": None,
            "model": None,
            "generation_time": None,
            "used_fallback": False,
            "response_id": None,
            "reply_id": None,
            "status": None,
            "publish_error": None,
        }

    def process_review(self, review_id: int) -> ResponseState:
        """Run the graph once. Errors propagate to the caller."""
        logger.info(f"Review {review_id}: Processing in {self.ctx.options.workflow_mode.value} mode")
        return self.graph.invoke(self.initial_state(review_id))

    def run(self, review_id: int) -> ProcessingOutcome:
        """Run the graph, converting any failure into an outcome with ``error`` set."""
        try:
            final_state = self.process_review(review_id)
        except Exception as e:
            details = {"error": str(e)}
            if isinstance(e, AllProvidersUnavailable):
                details["providers"] = e.errors
                logger.error(f"Review {review_id}: {e}")
            else:
                logger.error(f"Review {review_id}: Processing failed: {e}", exc_info=True)
            self.store.log(AuditAction.REVIEW_PROCESSING_ERROR, review_id=review_id, details=details)
            return ProcessingOutcome(review_id=review_id, error=str(e))

        return ProcessingOutcome(
            review_id=review_id,
            text=final_state.get("response_text"),
            response_id=final_state.get("response_id"),
            status=final_state.get("status"),
            provider=final_state.get("provider"),
            used_fallback=bool(final_state.get("used_fallback")),
            publish_error=final_state.get("publish_error"),
        )

    def generate(self, review_id: int) -> Optional[str]:
        """Produce a response for the review; ``None`` when nothing was produced."""
        return self.run(review_id).text

    def approve(
        self,
        response_id: Optional[int] = None,
        review_id: Optional[int] = None,
        text: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> bool:
        """
        Approve a response (by id, or the latest for a review) and publish it.

        Status is not checked first: rejected or already published responses
        can be approved again. True only if both the status change and the
        publication succeed. An approval without an actor is refused.
        """
        if not actor_id:
            logger.warning(
                f"Approve refused: no actor id (response_id={response_id}, review_id={review_id})"
            )
            return False

        if response_id is not None:
            response = self.store.get(response_id)
        elif review_id is not None:
            response = self.store.latest_for_review(review_id)
        else:
            raise ValueError("Either response_id or review_id is required")

        if response is None:
            logger.warning(f"Approve: no response found (response_id={response_id}, review_id={review_id})")
            return False

        if not self.store.set_status(response.id, ResponseStatus.APPROVED, actor=actor_id):
            return False
        return self.publisher.publish(self.store.get(response.id), text)

    def reject(
        self,
        review_id: int,
        reason: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> bool:
        """Reject the latest response for a review. Existing replies are left alone."""
        response = self.store.latest_for_review(review_id)
        if response is None:
            logger.warning(f"Review {review_id}: No response to reject")
            return False
        return self.store.set_status(response.id, ResponseStatus.REJECTED, actor=actor_id, reason=reason)
