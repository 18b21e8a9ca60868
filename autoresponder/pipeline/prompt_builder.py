"""
Prompt assembly for review replies and clean-up of raw model output.
"""
from typing import Iterable, Optional
import re

from autoresponder.constants import (
    HISTORY_EXCERPT_LENGTH,
    MAX_HISTORY_REVIEWS,
    MAX_PRODUCT_SUMMARY_LINES,
    TRUNCATE_BOUNDARY_RATIO,
)
from autoresponder.options import Tone
from autoresponder.schemas.review import Review

TONE_DIRECTIVES = {
    Tone.PROFESSIONAL.value: "Tone: Professional and courteous. Use formal language and maintain a business-like approach.",
    Tone.FRIENDLY.value: "Tone: Warm and friendly. Be approachable and personable while remaining helpful.",
    Tone.CASUAL.value: "Tone: Casual and conversational. Use relaxed language as if talking to a friend.",
    Tone.TECHNICAL.value: "Tone: Technical and detailed. Provide specific information and technical insights where relevant.",
    Tone.PROMOTIONAL.value: "Tone: Enthusiastic and promotional. Highlight product benefits and encourage further engagement.",
}
DEFAULT_TONE_DIRECTIVE = "Tone: Professional and helpful. Be respectful and informative."

CLOSING_INSTRUCTION = (
    "Instructions: Write a helpful, concise response. Do not end with dots or ellipsis. "
    "Be professional and friendly. Focus on addressing the customer's specific concerns "
    "or thanking them for their feedback."
)

_REPEATED_PERIODS_RE = re.compile(r"\.{2,}")
_WHITESPACE_RE = re.compile(r"\s+")
_TRAILING_NOISE_RE = re.compile(r"[\s.,;:…]+$")


def summarize_product(product_summary: str) -> str:
    """Keep only the title and description lines of a product summary."""
    kept = [
        line.strip()
        for line in product_summary.splitlines()
        if line.strip().startswith(("Product:", "Description:"))
    ]
    return "\n".join(kept[:MAX_PRODUCT_SUMMARY_LINES])


def format_history(reviews: Iterable[Review], anonymize: bool = True) -> list[str]:
    """Render prior reviews as ``Review by <author> on <date>:`` blocks."""
    entries = []
    for review in reviews:
        author = "Customer" if anonymize or not review.author else review.author
        date = review.created_at.date().isoformat() if review.created_at else "unknown date"
        entries.append(f"Review by {author} on {date}:\n{review.body}")
    return entries


def abbreviate_history(history: Iterable[str]) -> str:
    """At most two prior reviews, each body cut to roughly a hundred characters."""
    excerpts = []
    for entry in list(history)[:MAX_HISTORY_REVIEWS]:
        header, _, body = entry.partition("\n")
        if not body:
            header, body = "", header
        if len(body) > HISTORY_EXCERPT_LENGTH:
            body = body[:HISTORY_EXCERPT_LENGTH] + "..."
        excerpts.append(f"{header}\n{body}" if header else body)
    return "\n\n".join(excerpts)


class PromptBuilder:
    def build(
        self,
        review: Review,
        product_summary: str,
        history_excerpt: list[str],
        tone: Optional[str],
        max_length: int,
    ) -> str:
        parts = [
            "You are a helpful customer service representative. Write a concise and friendly "
            f"response to this product review. Keep your response under {max_length} characters "
            "and be direct without trailing dots or ellipsis.\n\n"
            f"Review: {review.body}\n\n"
            f"Rating: {review.rating}/5 stars",
            TONE_DIRECTIVES.get((tone or "").lower(), DEFAULT_TONE_DIRECTIVE),
        ]

        product = summarize_product(product_summary or "")
        if product:
            parts.append(f"Product information:\n{product}")

        history = abbreviate_history(history_excerpt or [])
        if history:
            parts.append(f"Recent customer feedback:\n{history}")

        parts.append(CLOSING_INSTRUCTION)
        return "\n\n".join(parts)

    @staticmethod
    def post_process(raw_text: str, max_length: int) -> str:
        """
        Normalise model output into a publishable reply.

        Idempotent: the result always ends in ``.``, ``!`` or ``?`` (unless
        empty), contains no runs of periods or whitespace, and is never longer
        than ``max_length`` plus the one terminal period this step may add.
        """
        text = raw_text.rstrip(".…")
        text = _REPEATED_PERIODS_RE.sub(".", text)
        text = _WHITESPACE_RE.sub(" ", text).strip()

        if len(text) > max_length:
            truncated = text[:max_length]
            last_period = truncated.rfind(".")
            if last_period > max_length * TRUNCATE_BOUNDARY_RATIO:
                text = truncated[: last_period + 1]
            else:
                text = truncated.rstrip() + "."

        text = _TRAILING_NOISE_RE.sub("", text)
        if text and text[-1] not in ".!?":
            text += "."
        return text
