"""
Render a StructuredReport as a HubSpot note body (HTML) and a call body (plain text).
"""

from html import escape

from app.models.domain.report_domain import StructuredReport

CALL_TYPE_LABELS = {"phone": "Phone", "in-person": "In-Person", "video": "Video"}


def _attendee_line(name: str, title: str | None, company: str | None) -> str:
    details = ", ".join(part for part in (title, company) if part)
    return f"{name} ({details})" if details else name


def _html_list(items: list[str]) -> str:
    return "<ul>" + "".join(f"<li>{escape(item)}</li>" for item in items) + "</ul>"


def format_report_html(report: StructuredReport) -> str:
    """HTML note body. Empty sections are left out."""
    stage = report.deal_stage_recommendation
    sections = [
        "<h2>Sales Call Report</h2>",
        f"<p><strong>Date:</strong> {escape(report.call_date)} | "
        f"<strong>Type:</strong> {CALL_TYPE_LABELS[report.call_type]} | "
        f"<strong>Sentiment:</strong> {escape(report.customer_sentiment.capitalize())}</p>",
        f"<h3>Summary</h3><p>{escape(report.summary)}</p>",
    ]

    if report.attendees:
        lines = [_attendee_line(a.name, a.title, a.company) for a in report.attendees]
        sections.append("<h3>Attendees</h3>" + _html_list(lines))
    if report.topics_discussed:
        sections.append("<h3>Topics Discussed</h3>" + _html_list(report.topics_discussed))
    if report.key_insights:
        sections.append("<h3>Key Insights</h3>" + _html_list(report.key_insights))
    if report.action_items:
        lines = [
            f"{item.action} ({item.owner}{', due ' + item.due_date if item.due_date else ''})"
            for item in report.action_items
        ]
        sections.append("<h3>Action Items</h3>" + _html_list(lines))
    if report.next_steps:
        lines = [f"{s.step} ({s.timeline})" if s.timeline else s.step for s in report.next_steps]
        sections.append("<h3>Next Steps</h3>" + _html_list(lines))
    if report.competitor_mentions:
        lines = [
            f"{m.competitor}: {m.context}" if m.context else m.competitor for m in report.competitor_mentions
        ]
        sections.append("<h3>Competitor Mentions</h3>" + _html_list(lines))

    sections.append(
        "<h3>Deal Stage</h3>"
        f"<p>{escape(stage.current_stage)} → {escape(stage.recommended_stage)}"
        + (f"<br/>{escape(stage.rationale)}" if stage.rationale else "")
        + "</p>"
    )

    if report.pricing_notes:
        sections.append(f"<h3>Pricing</h3><p>{escape(report.pricing_notes)}</p>")
    if report.volume_notes:
        sections.append(f"<h3>Volume</h3><p>{escape(report.volume_notes)}</p>")
    if report.follow_up_date:
        sections.append(f"<p><strong>Follow-up:</strong> {escape(report.follow_up_date)}</p>")

    return "".join(sections)


def format_report_plain_text(report: StructuredReport) -> str:
    """Plain-text call body."""
    lines = [
        f"Call Date: {report.call_date}",
        f"Call Type: {CALL_TYPE_LABELS[report.call_type]}",
        f"Customer Sentiment: {report.customer_sentiment}",
        "",
        "SUMMARY",
        report.summary,
    ]

    def section(title: str, entries: list[str]) -> None:
        if entries:
            lines.extend(["", title, *(f"- {entry}" for entry in entries)])

    section("ATTENDEES", [_attendee_line(a.name, a.title, a.company) for a in report.attendees])
    section("TOPICS", report.topics_discussed)
    section("KEY INSIGHTS", report.key_insights)
    section(
        "ACTION ITEMS",
        [
            f"{item.action} [{item.owner}]" + (f" due {item.due_date}" if item.due_date else "")
            for item in report.action_items
        ],
    )
    section("NEXT STEPS", [f"{s.step} ({s.timeline})" if s.timeline else s.step for s in report.next_steps])
    section(
        "COMPETITORS",
        [f"{m.competitor}: {m.context}" if m.context else m.competitor for m in report.competitor_mentions],
    )

    stage = report.deal_stage_recommendation
    lines.extend(["", "DEAL STAGE", f"{stage.current_stage} -> {stage.recommended_stage}"])
    if stage.rationale:
        lines.append(stage.rationale)

    if report.pricing_notes:
        lines.extend(["", f"Pricing: {report.pricing_notes}"])
    if report.volume_notes:
        lines.extend(["", f"Volume: {report.volume_notes}"])
    if report.follow_up_date:
        lines.extend(["", f"Follow-up: {report.follow_up_date}"])

    return "\n".join(lines)
