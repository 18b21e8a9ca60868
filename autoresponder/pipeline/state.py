from typing import TypedDict, Optional

from autoresponder.schemas.review import Review


class ResponseState(TypedDict):
    """State carried through one review-processing attempt."""

    review_id: int
    workflow_mode: str

    # Set by load_review
    review: Optional[Review]

    # Set by review_filter
    filter_passed: Optional[bool]

    # Set by generate_response / fallback_response
    response_text: Optional[str]
    provider: Optional[str]
    model: Optional[str]
    generation_time: Optional[float]
    used_fallback: bool

    # Set by save_response
    response_id: Optional[int]

    # Set by publish_reply / hold_reply
    reply_id: Optional[int]
    status: Optional[str]        # pending | published
    publish_error: Optional[str]
