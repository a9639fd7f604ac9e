# app/prompts/report_generator.py
"""
Report extraction prompt and transcript rendering.
"""

from collections.abc import Iterable
from datetime import date

from app.models.domain.interview_domain import DealContext, InterviewMessage
from app.prompts.interviewer import COMPANY_NAME

SPEAKER_LABELS = {"assistant": "Interviewer", "user": "Sales Rep"}

REPORT_REQUEST_PREFIX = "Generate a structured call report from this interview transcript:\n\n"


def format_transcript(messages: Iterable[InterviewMessage]) -> str:
    """Render the transcript as labelled lines in conversation order."""
    return "\n\n".join(f"{SPEAKER_LABELS[m.role]}: {m.content}" for m in messages)


def build_report_request(messages: Iterable[InterviewMessage]) -> str:
    return REPORT_REQUEST_PREFIX + format_transcript(messages)


def build_report_generator_prompt(deal: DealContext, today: date | None = None) -> str:
    """Render the extraction-only system prompt with the exact report schema."""
    call_date_default = (today or date.today()).isoformat()

    return f"""You are a report generator for {COMPANY_NAME} sales call reports. Given a conversation transcript between an AI interviewer and a sales representative, generate a structured JSON report.

## DEAL CONTEXT
- Deal Name: {deal.deal_name}
- Customer Brand: {deal.customer_name or "Unknown"}
- Pipeline: {deal.pipeline}
- Current Stage: {deal.deal_stage}

## OUTPUT FORMAT
Return ONLY valid JSON matching this exact schema (no markdown, no explanation, just the JSON object):

{{
  "callDate": "YYYY-MM-DD",
  "callType": "phone" | "in-person" | "video",
  "attendees": [
    {{"name": "string", "title": "string", "company": "string"}}
  ],
  "summary": "2-3 sentence executive summary in third person, professional tone",
  "topicsDiscussed": ["topic1", "topic2"],
  "keyInsights": ["insight1", "insight2"],
  "actionItems": [
    {{"action": "string", "owner": "string", "dueDate": "YYYY-MM-DD or null"}}
  ],
  "nextSteps": [
    {{"step": "string", "timeline": "string"}}
  ],
  "competitorMentions": [
    {{"competitor": "string", "context": "string"}}
  ],
  "dealStageRecommendation": {{
    "currentStage": "{deal.deal_stage}",
    "recommendedStage": "string (stage label)",
    "rationale": "string"
  }},
  "customerSentiment": "positive" | "neutral" | "negative" | "mixed",
  "followUpDate": "YYYY-MM-DD or null",
  "pricingNotes": "string or null",
  "volumeNotes": "string or null"
}}

## RULES
- Extract ONLY information explicitly stated in the transcript
- Do NOT fabricate or assume information not discussed
- If information for a field was not discussed, use null or empty array
- callType must be exactly one of "phone", "in-person", "video"
- customerSentiment must be exactly one of "positive", "neutral", "negative", "mixed"
- For attendees, include both {COMPANY_NAME} and customer attendees
- For action items, clearly identify the owner (person or company)
- The summary should be written in third person, professional tone
- Competitor mentions should capture context of how they were discussed
- If no stage change was discussed, set recommendedStage to the same as currentStage
- For callDate, use today's date if not explicitly mentioned: {call_date_default}"""
