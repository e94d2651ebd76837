"""Prompt text and the HTML shell that wraps generated report bodies."""
import json
from html import escape
from typing import Any, Dict

from pipeline.models import ReportSpec

SYSTEM_PROMPT = (
    "You are an expert business analyst creating professional HTML reports for BizHealth.ai. "
    "Write the inner HTML of the report body only: no <html>, <head> or <body> tags. "
    "Use the CSS classes report-header, bluf-section, score-badge, section, category-card, "
    "swot-grid, swot-box, recommendation-list, roadmap-section and roadmap-column."
)

REPORT_SHELL = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title} - {company_name}</title>
  <style>
    :root {{ --biz-navy: #212653; --biz-green: #969423; --text-dark: #333333; }}
    body {{ font-family: 'Open Sans', sans-serif; color: var(--text-dark); line-height: 1.6; }}
    h1, h2, h3, h4 {{ font-family: 'Montserrat', sans-serif; color: var(--biz-navy); }}
    .report-container {{ max-width: 900px; margin: 0 auto; padding: 40px; }}
    .section {{ margin-bottom: 40px; page-break-inside: avoid; }}
    @media print {{ .report-container {{ padding: 20px; }} }}
  </style>
</head>
<body>
  <div class="report-container">
{content}
  </div>
</body>
</html>
"""


def get_company_name(submission: Dict[str, Any]) -> str:
    """Display name for the assessed company."""
    profile = submission.get("company_profile") or {}
    return profile.get("company_name") or "Your Company"


def focused_category_data(spec: ReportSpec, submission: Dict[str, Any]) -> Dict[str, Any]:
    """Subset of the submission's category analysis relevant to one report."""
    category_data = submission.get("category_data") or {}
    return {
        code: category_data[code]
        for code in spec.category_focus
        if code in category_data
    }


def build_user_prompt(spec: ReportSpec, submission: Dict[str, Any]) -> str:
    """Assemble the generation request for one report."""
    company_name = get_company_name(submission)
    parts = [
        f"Generate the HTML content for a {spec.title} for {company_name}.",
        "",
        "## Report Configuration",
        f"- Report Type: {spec.report_type}",
        f"- Target Pages: {spec.page_target}",
        f"- Audience: {spec.audience}",
        f"- Sections to Include: {', '.join(spec.sections)}",
        "",
        "## Company Profile",
        json.dumps(submission.get("company_profile") or {}, indent=2, default=str),
        "",
        "## Assessment Responses",
        json.dumps(submission.get("responses") or {}, indent=2, default=str),
    ]

    health_scores = submission.get("health_scores")
    if health_scores:
        parts += ["", "## Health Scores", json.dumps(health_scores, indent=2, default=str)]

    category_data = focused_category_data(spec, submission)
    if category_data:
        parts += ["", "## Category Analysis Data", json.dumps(category_data, indent=2, default=str)]

    parts += [
        "",
        "Make the content engaging, professional, and actionable. Use specific data from the analysis.",
    ]
    return "\n".join(parts)


def render_report(spec: ReportSpec, company_name: str, body: str) -> str:
    """Wrap a generated body in the branded report document."""
    return REPORT_SHELL.format(
        title=escape(spec.title),
        company_name=escape(company_name),
        content=body
    )
