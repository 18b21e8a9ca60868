"""
Tests for prompt assembly and output post-processing.
"""
from datetime import datetime, timezone

import pytest

from autoresponder.pipeline.prompt_builder import (
    DEFAULT_TONE_DIRECTIVE,
    PromptBuilder,
    TONE_DIRECTIVES,
    abbreviate_history,
    format_history,
    summarize_product,
)
from autoresponder.schemas.review import Review


def _review(review_id=1, body="Great kettle, boils fast.", author="Jane Doe", rating=5):
    return Review(
        id=review_id,
        product_id=10,
        author=author,
        body=body,
        rating=rating,
        approved=True,
        created_at=datetime(2026, 3, 4, tzinfo=timezone.utc),
    )


class TestBuild:
    """Prompt sections and their order."""

    def test_sections_in_order(self):
        prompt = PromptBuilder().build(
            _review(),
            "Product: Kettle\nDescription: 1.7l steel kettle",
            ["Review by Customer on 2026-03-01:\nLove it"],
            "friendly",
            300,
        )
        positions = [
            prompt.index("Review: Great kettle"),
            prompt.index("Rating: 5/5 stars"),
            prompt.index(TONE_DIRECTIVES["friendly"]),
            prompt.index("Product information:"),
            prompt.index("Recent customer feedback:"),
            prompt.index("Instructions:"),
        ]
        assert positions == sorted(positions)

    def test_states_character_limit(self):
        prompt = PromptBuilder().build(_review(), "", [], "professional", 250)
        assert "under 250 characters" in prompt

    def test_unknown_tone_uses_default_directive(self):
        prompt = PromptBuilder().build(_review(), "", [], "pirate", 300)
        assert DEFAULT_TONE_DIRECTIVE in prompt

    def test_empty_context_sections_omitted(self):
        prompt = PromptBuilder().build(_review(), "", [], None, 300)
        assert "Product information:" not in prompt
        assert "Recent customer feedback:" not in prompt


class TestContextHelpers:
    def test_summarize_keeps_title_and_description_only(self):
        summary = "Product: Kettle\nPrice: 20\nDescription: Steel\nSKU: K-1"
        assert summarize_product(summary) == "Product: Kettle\nDescription: Steel"

    def test_history_anonymized(self):
        entries = format_history([_review(author="Jane Doe")], anonymize=True)
        assert entries == ["Review by Customer on 2026-03-04:\nGreat kettle, boils fast."]

    def test_history_keeps_author_when_not_anonymized(self):
        entries = format_history([_review(author="Jane Doe")], anonymize=False)
        assert entries[0].startswith("Review by Jane Doe on")

    def test_abbreviate_caps_count_and_length(self):
        entries = [f"Review by Customer on 2026-01-0{i}:\n" + "x" * 150 for i in range(1, 4)]
        excerpt = abbreviate_history(entries)
        assert excerpt.count("Review by Customer") == 2
        assert "x" * 100 + "..." in excerpt
        assert "x" * 101 not in excerpt


class TestPostProcess:
    """Normalisation of raw model output."""

    def test_trailing_ellipsis_removed(self):
        assert PromptBuilder.post_process("Thanks for your review...", 300) == "Thanks for your review."

    def test_whitespace_collapsed_and_period_added(self):
        assert PromptBuilder.post_process("Great   product\n\nthanks", 300) == "Great product thanks."

    def test_exclamation_kept(self):
        assert PromptBuilder.post_process("Wait!!", 300) == "Wait!!"

    def test_internal_period_runs_collapsed(self):
        assert PromptBuilder.post_process("Hmm.. ok", 300) == "Hmm. ok."

    def test_empty_stays_empty(self):
        assert PromptBuilder.post_process("  ...  ", 300) == ""

    def test_truncates_at_late_sentence_boundary(self):
        text = "A" * 45 + ". More text continues here past the limit"
        assert PromptBuilder.post_process(text, 50) == "A" * 45 + "."

    def test_hard_cut_without_boundary(self):
        result = PromptBuilder.post_process("word " * 30, 50)
        assert result.endswith(".")
        assert len(result) <= 51

    @pytest.mark.parametrize("raw", [
        "Thanks for your review...",
        "Great   product\n\nthanks",
        "Hmm.. ok",
        "Thank you,",
        "We appreciate it …",
        "word " * 30,
        "A" * 45 + ". More text continues here past the limit",
    ])
    def test_idempotent(self, raw):
        once = PromptBuilder.post_process(raw, 50)
        assert PromptBuilder.post_process(once, 50) == once
