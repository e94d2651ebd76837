"""Report catalogues for each pipeline variant."""
from typing import Dict, Tuple

from pipeline.models import ReportSpec
from shared.exceptions import ConfigurationError

ALL_CATEGORIES = (
    "STR", "SAL", "MKT", "CXP", "OPS", "FIN",
    "HRS", "LDG", "TIN", "ITD", "RMS", "CMP",
)

COMPREHENSIVE = ReportSpec(
    report_type="comprehensive",
    title="Comprehensive Business Health Report",
    category_focus=ALL_CATEGORIES,
    sections=(
        "Executive Summary",
        "Business Health Score Overview",
        "Chapter 1: Growth Engine",
        "Chapter 2: Performance & Health",
        "Chapter 3: People & Leadership",
        "Chapter 4: Resilience & Safeguards",
        "30-60-90 Day Action Plan",
        "Appendix: Methodology",
    ),
    page_target="60-80",
)

OWNER = ReportSpec(
    report_type="owner",
    title="Owner's Strategic Report",
    category_focus=("STR", "FIN", "LDG", "RMS"),
    sections=(
        "Executive Summary",
        "Strategic Health Overview",
        "Financial Position",
        "Leadership & Governance",
        "Risk Assessment",
        "Strategic Roadmap",
        "Key Decisions Required",
    ),
    page_target="25-35",
)

MANAGERS_STRATEGY = ReportSpec(
    report_type="managers_strategy",
    title="Manager's Strategy Report",
    category_focus=("STR", "MKT", "CXP"),
    sections=(
        "Executive Summary",
        "Strategic Position Analysis",
        "Market & Customer Insights",
        "Competitive Landscape",
        "Strategic Recommendations",
        "Implementation Timeline",
    ),
)

MANAGERS_SALES_MARKETING = ReportSpec(
    report_type="managers_sales_marketing",
    title="Manager's Sales & Marketing Report",
    category_focus=("SAL", "MKT", "CXP"),
    sections=(
        "Executive Summary",
        "Sales Performance Analysis",
        "Marketing Effectiveness",
        "Customer Experience Insights",
        "Revenue Optimization Opportunities",
        "Action Plan",
    ),
)

MANAGERS_OPERATIONS = ReportSpec(
    report_type="managers_operations",
    title="Manager's Operations Report",
    category_focus=("OPS", "TIN"),
    sections=(
        "Executive Summary",
        "Operational Efficiency Analysis",
        "Process & Workflow Assessment",
        "Technology Integration",
        "Capacity Utilization",
        "Improvement Recommendations",
    ),
)

MANAGERS_IT_TECHNOLOGY = ReportSpec(
    report_type="managers_it_technology",
    title="Manager's IT & Technology Report",
    category_focus=("TIN", "ITD"),
    sections=(
        "Executive Summary",
        "Technology Adoption Assessment",
        "Cybersecurity Posture",
        "Data Management Review",
        "Innovation Opportunities",
        "Technology Roadmap",
    ),
)

MANAGERS_FINANCIALS = ReportSpec(
    report_type="managers_financials",
    title="Manager's Financials Report",
    category_focus=("FIN", "RMS"),
    sections=(
        "Executive Summary",
        "Financial Health Overview",
        "Cash Flow Analysis",
        "Profitability Assessment",
        "Financial Risk Review",
        "Financial Action Plan",
    ),
)

EMPLOYEES = ReportSpec(
    report_type="employees",
    title="Employee Engagement Report",
    category_focus=("HRS", "LDG", "CXP"),
    sections=(
        "Company Health Overview",
        "Our Strengths",
        "Areas We're Improving",
        "How You Can Help",
        "What's Next",
    ),
    page_target="10-15",
    audience="All employees",
)

ESSENTIALS_REPORTS: Tuple[ReportSpec, ...] = (
    COMPREHENSIVE,
    OWNER,
    MANAGERS_STRATEGY,
    MANAGERS_SALES_MARKETING,
    MANAGERS_OPERATIONS,
    MANAGERS_IT_TECHNOLOGY,
    MANAGERS_FINANCIALS,
    EMPLOYEES,
)

FULL_REPORTS: Tuple[ReportSpec, ...] = (
    COMPREHENSIVE,
    ReportSpec(
        report_type="executive_brief",
        title="Executive Brief",
        category_focus=ALL_CATEGORIES,
        sections=("Bottom Line", "Health Score", "Top Three Priorities"),
        page_target="2-4",
    ),
    ReportSpec(
        report_type="executive_overview",
        title="Executive Overview",
        category_focus=ALL_CATEGORIES,
        sections=("Executive Summary", "Scorecard", "Key Findings", "Recommendations"),
        page_target="8-12",
    ),
    OWNER,
    ReportSpec(
        report_type="deep_dive_growth_engine",
        title="Growth Engine Deep Dive",
        category_focus=("STR", "SAL", "MKT", "CXP"),
        sections=("Overview", "Category Analysis", "Opportunities", "Action Plan"),
    ),
    ReportSpec(
        report_type="deep_dive_performance_hub",
        title="Performance Hub Deep Dive",
        category_focus=("OPS", "FIN"),
        sections=("Overview", "Category Analysis", "Opportunities", "Action Plan"),
    ),
    ReportSpec(
        report_type="deep_dive_people_leadership",
        title="People & Leadership Deep Dive",
        category_focus=("HRS", "LDG"),
        sections=("Overview", "Category Analysis", "Opportunities", "Action Plan"),
    ),
    ReportSpec(
        report_type="deep_dive_risk_systems",
        title="Risk & Systems Deep Dive",
        category_focus=("TIN", "ITD", "RMS", "CMP"),
        sections=("Overview", "Category Analysis", "Opportunities", "Action Plan"),
    ),
    MANAGERS_STRATEGY,
    MANAGERS_SALES_MARKETING,
    MANAGERS_OPERATIONS,
    MANAGERS_FINANCIALS,
    MANAGERS_IT_TECHNOLOGY,
    EMPLOYEES,
    ReportSpec(
        report_type="financial_analysis",
        title="Financial Analysis Report",
        category_focus=("FIN",),
        sections=("Financial Snapshot", "Cash Flow", "Profitability", "Financial Risks", "Recommendations"),
    ),
    ReportSpec(
        report_type="risk_assessment",
        title="Risk Assessment Report",
        category_focus=("RMS", "CMP", "ITD"),
        sections=("Risk Profile", "Compliance Review", "Continuity Planning", "Mitigation Plan"),
    ),
    ReportSpec(
        report_type="transformation_roadmap",
        title="Transformation Roadmap",
        category_focus=ALL_CATEGORIES,
        sections=("Current State", "Target State", "30-60-90 Day Plan", "Milestones"),
    ),
)

VARIANTS: Dict[str, Tuple[ReportSpec, ...]] = {
    "essentials": ESSENTIALS_REPORTS,
    "full": FULL_REPORTS,
}


def _check_unique(variant: str, specs: Tuple[ReportSpec, ...]):
    seen = set()
    for spec in specs:
        if spec.report_type in seen:
            raise ConfigurationError(f"Duplicate report type {spec.report_type} in variant {variant}")
        seen.add(spec.report_type)


for _name, _specs in VARIANTS.items():
    _check_unique(_name, _specs)


def get_report_specs(variant: str) -> Tuple[ReportSpec, ...]:
    """Return the ordered report catalogue for a pipeline variant."""
    try:
        return VARIANTS[variant]
    except KeyError:
        raise ConfigurationError(
            f"Unknown pipeline variant {variant!r}; expected one of {sorted(VARIANTS)}"
        ) from None
