"""
LangGraph workflow for one review-processing attempt.

Graph shape:

    load_review
        │
    review_filter
        ├── passed ──► generate_response ──┐
        └── filtered ► fallback_response ──┤
                                           ▼
                                     save_response
                                           │
                          ┌── workflow mode? ──────┐
                          │auto      │semi_auto    │draft
                    publish_reply  hold_reply     END
                          │          │
                         END        END

Errors raised by any node propagate out of ``invoke``; the processor turns
them into an absent result.
"""
from functools import partial
import logging

from langgraph.graph import StateGraph, END

from autoresponder.options import WorkflowMode
from autoresponder.pipeline.nodes import (
    PipelineContext,
    fallback_response_node,
    generate_response_node,
    hold_reply_node,
    load_review_node,
    publish_reply_node,
    review_filter_node,
    save_response_node,
)
from autoresponder.pipeline.state import ResponseState

logger = logging.getLogger(__name__)


def route_after_filter(state: ResponseState) -> str:
    if state.get("filter_passed"):
        return "generate_response"
    return "fallback_response"


def route_by_workflow_mode(state: ResponseState) -> str:
    mode = state.get("workflow_mode")
    if mode == WorkflowMode.AUTO.value:
        return "publish_reply"
    if mode == WorkflowMode.SEMI_AUTO.value:
        return "hold_reply"
    logger.info(f"Review {state.get('review_id')}: Draft mode, response stored only")
    return END


def create_response_graph(ctx: PipelineContext):
    """Build and compile the response workflow bound to ``ctx``."""
    workflow = StateGraph(ResponseState)

    workflow.add_node("load_review", partial(load_review_node, ctx=ctx))
    workflow.add_node("review_filter", partial(review_filter_node, ctx=ctx))
    workflow.add_node("generate_response", partial(generate_response_node, ctx=ctx))
    workflow.add_node("fallback_response", partial(fallback_response_node, ctx=ctx))
    workflow.add_node("save_response", partial(save_response_node, ctx=ctx))
    workflow.add_node("publish_reply", partial(publish_reply_node, ctx=ctx))
    workflow.add_node("hold_reply", partial(hold_reply_node, ctx=ctx))

    workflow.set_entry_point("load_review")
    workflow.add_edge("load_review", "review_filter")
    workflow.add_conditional_edges(
        "review_filter",
        route_after_filter,
        ["generate_response", "fallback_response"],
    )
    workflow.add_edge("generate_response", "save_response")
    workflow.add_edge("fallback_response", "save_response")
    workflow.add_conditional_edges(
        "save_response",
        route_by_workflow_mode,
        ["publish_reply", "hold_reply", END],
    )
    workflow.add_edge("publish_reply", END)
    workflow.add_edge("hold_reply", END)

    return workflow.compile()
