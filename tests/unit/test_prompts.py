"""
Tests for interviewer and report prompt rendering.
"""

from datetime import date

import pytest

from app.models.domain.interview_domain import DealContext, InterviewMessage
from app.prompts.interviewer import (
    COMPLETION_PHRASE,
    FOODSERVICE_GUIDANCE,
    OPPORTUNITY_GUIDANCE,
    SALES_PIPELINE_GUIDANCE,
    build_greeting,
    build_interviewer_prompt,
    get_pipeline_guidance,
    is_completion_signal,
)
from app.prompts.report_generator import build_report_generator_prompt, build_report_request, format_transcript


@pytest.mark.parametrize(
    "pipeline,expected",
    [
        ("Foodservice", FOODSERVICE_GUIDANCE),
        ("FOODSERVICE - East", FOODSERVICE_GUIDANCE),
        ("Opportunity / RFP", OPPORTUNITY_GUIDANCE),
        ("Sales Pipeline (All)", SALES_PIPELINE_GUIDANCE),
        ("", SALES_PIPELINE_GUIDANCE),
    ],
)
def test_pipeline_guidance_selection(pipeline, expected):
    assert get_pipeline_guidance(pipeline) == expected


def test_greeting_falls_back_to_deal_name():
    deal = DealContext(deal_id="d", deal_name="Summit Tea RTD Launch")

    assert build_greeting(deal) == "Hey! Tell me about your call with Summit Tea RTD Launch. How did it go?"


def test_interviewer_prompt_renders_deal_context(deal_context):
    prompt = build_interviewer_prompt(deal_context)

    assert "Blue Ridge Bistro - Cold Brew Program" in prompt
    assert "Engaging" in prompt
    assert "Farmer Bros" in prompt
    assert FOODSERVICE_GUIDANCE in prompt
    assert COMPLETION_PHRASE in prompt


def test_interviewer_prompt_marks_missing_values():
    prompt = build_interviewer_prompt(DealContext(deal_id="d", deal_name="Bare Deal"))

    assert "Incumbent Supplier: Unknown" in prompt
    assert "Deal Amount: Not set" in prompt
    assert SALES_PIPELINE_GUIDANCE in prompt


def test_completion_signal_matching():
    assert is_completion_signal(f"Great, thanks! {COMPLETION_PHRASE}")
    assert is_completion_signal(COMPLETION_PHRASE.lower())
    assert not is_completion_signal("I think I have everything I need.")
    assert not is_completion_signal("Who attended?")


def test_transcript_labels_and_order():
    messages = [
        InterviewMessage(role="assistant", content="How did it go?"),
        InterviewMessage(role="user", content="Well."),
    ]

    assert format_transcript(messages) == "Interviewer: How did it go?\n\nSales Rep: Well."
    assert build_report_request(messages).startswith("Generate a structured call report")


def test_report_prompt_includes_schema_and_date(deal_context):
    prompt = build_report_generator_prompt(deal_context, today=date(2026, 10, 19))

    assert '"callType": "phone" | "in-person" | "video"' in prompt
    assert '"currentStage": "Engaging"' in prompt
    assert "2026-10-19" in prompt
