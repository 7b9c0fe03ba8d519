"""
Daily Congressional Record tool
Recent issues of the official floor transcript, one issue's sections, and optionally its articles
"""

from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, Field

from ..errors import CongressMcpError, ValidationError
from ..legislation import as_list
from .base import ToolContext, ToolSpec, text_result

logger = structlog.get_logger()


class DailyCongressionalRecordParams(BaseModel):
    volume_number: Optional[int] = Field(None, ge=1, description="Volume number; together with issue_number selects one issue")
    issue_number: Optional[int] = Field(None, ge=1, description="Issue number; requires volume_number")
    include_articles: bool = Field(False, description="For a single issue, also list its articles grouped by section")
    limit: int = Field(20, ge=1, le=50, description="Maximum number of issues to return in list mode (max 50)")
    offset: int = Field(0, ge=0, description="Number of issues to skip for pagination")


def _day(value: Any) -> str:
    return str(value or "").split("T")[0]


def _page_range(record: Dict[str, Any]) -> str:
    if record.get("startPage") and record.get("endPage"):
        return f" (pp. {record['startPage']}-{record['endPage']})"
    return ""


def _text_links(record: Dict[str, Any]) -> List[str]:
    lines = []
    for t in as_list(record.get("text")):
        if t.get("type") or t.get("url"):
            line = f"  - {t.get('type') or ''}"
            if t.get("url"):
                line += f": {t['url']}"
            lines.append(line)
    return lines


async def _article_lines(volume: int, issue: int, ctx: ToolContext) -> List[str]:
    try:
        data = await ctx.api.get_congressional_record_articles(volume, issue)
    except CongressMcpError as e:
        logger.warning("record_articles_failed", volume=volume, issue=issue, error=e.message)
        return ["### Articles", "", f"*Failed to load articles: {e.message}*", ""]

    sections = as_list(data.get("articles"))
    if not sections:
        return ["### Articles", "", "No articles available for this issue.", ""]

    lines = ["### Articles", ""]
    for section in sections:
        articles = as_list(section.get("sectionArticles"))
        plural = "" if len(articles) == 1 else "s"
        lines += [f"#### {section.get('name') or 'Unknown Section'} ({len(articles)} article{plural})", ""]
        if not articles:
            lines.append("No articles available for this section.")
        for article in articles:
            lines.append(f"- **{article.get('title') or 'Untitled'}**{_page_range(article)}")
            lines += _text_links(article)
        lines.append("")
    return lines


async def record_issue(params: DailyCongressionalRecordParams, ctx: ToolContext):
    volume, number = params.volume_number, params.issue_number
    data = await ctx.api.get_congressional_record_issue(volume, number)
    issue = data.get("issue") or data.get("dailyCongressionalRecord") or data

    lines = [f"## Congressional Record - Volume {volume}, Issue {number}", ""]
    date = issue.get("issueDate") or issue.get("date")
    congress = issue.get("congress")
    session = issue.get("sessionNumber") or issue.get("session")
    if date or congress or session:
        lines += ["| Field | Value |", "|-------|-------|"]
        if date:
            lines.append(f"| Date | {_day(date)} |")
        if congress:
            lines.append(f"| Congress | {congress}th |")
        if session:
            lines.append(f"| Session | {session} |")
        lines.append("")

    full_issue = issue.get("fullIssue") or {}

    sections = as_list(full_issue.get("sections"))
    if sections:
        lines += ["### Sections", ""]
        for section in sections:
            lines.append(f"- **{section.get('name') or 'Unknown Section'}**{_page_range(section)}")
            lines += _text_links(section)
        lines.append("")

    downloads = as_list(full_issue.get("entireIssue"))
    if downloads:
        lines += ["### Full Issue Download", ""]
        for d in downloads:
            line = f"- **{d.get('type') or 'Unknown'}**"
            if d.get("url"):
                line += f": {d['url']}"
            lines.append(line)
        lines.append("")

    article_info = full_issue.get("articles")
    if isinstance(article_info, dict) and article_info.get("count"):
        line = f"**Articles:** {article_info['count']} total"
        if not params.include_articles:
            line += " (use include_articles=true to list them)"
        lines += [line, ""]

    if params.include_articles:
        lines += await _article_lines(volume, number, ctx)

    return text_result("\n".join(lines) + "\n")


async def record_list(params: DailyCongressionalRecordParams, ctx: ToolContext):
    data = await ctx.api.get_daily_congressional_record(limit=params.limit, offset=params.offset)
    issues = data.get("dailyCongressionalRecord") or data.get("issues") or []

    lines = ["## Daily Congressional Record - Recent Issues", "", f"Found {len(issues)} issue(s):", ""]
    for i, issue in enumerate(issues):
        heading = (
            f"{params.offset + i + 1}. **Vol. {issue.get('volumeNumber') or issue.get('volume') or '?'}, "
            f"No. {issue.get('issueNumber') or issue.get('issue') or '?'}**"
        )
        date = issue.get("issueDate") or issue.get("date")
        if date:
            heading += f" - {_day(date)}"
        lines.append(heading)

        congress = issue.get("congress")
        session = issue.get("sessionNumber") or issue.get("session")
        parts = []
        if congress:
            parts.append(f"Congress: {congress}th")
        if session:
            parts.append(f"Session: {session}")
        if parts:
            lines.append("   " + " | ".join(parts))
        if issue.get("url"):
            lines.append(f"   URL: {issue['url']}")
        lines.append("")

    if len(issues) == params.limit:
        lines.append(
            f"Showing {params.offset + 1}-{params.offset + len(issues)}. "
            f"Use offset={params.offset + params.limit} for more."
        )
    lines += [
        "",
        "*Use volume_number and issue_number together for section details. Add include_articles=true for individual articles.*",
    ]
    return text_result("\n".join(lines) + "\n")


async def handle_daily_congressional_record(params: DailyCongressionalRecordParams, ctx: ToolContext):
    if params.issue_number is not None and params.volume_number is None:
        raise ValidationError(
            "The volume_number parameter is required when using issue_number. "
            "Please provide both to view a specific issue."
        )
    if params.volume_number is not None and params.issue_number is not None:
        return await record_issue(params, ctx)
    return await record_list(params, ctx)


TOOL = ToolSpec(
    name="daily_congressional_record",
    description="""The Daily Congressional Record, the official transcript of House and Senate floor proceedings.
List mode browses recent issues by date. Pass volume_number and issue_number for one issue's sections
(Senate, House, Extensions of Remarks, Daily Digest) with page ranges and text links; add
include_articles=true for its individual articles. Each issue covers one day; volume 171 is the 119th Congress.""",
    params=DailyCongressionalRecordParams,
    handler=handle_daily_congressional_record,
    action="access Congressional Record",
)
