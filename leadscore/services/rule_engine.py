"""
leadscore/services/rule_engine.py — Deterministic rule-based lead scoring.

Three transparent components, 50 points max:
  - Role relevance     → 20 decision maker / 10 influencer / 0
  - Industry match     → 20 direct match / 10 same category / 0
  - Data completeness  → 10 when every profile field is filled, else 0

Pure functions: no I/O, no state. Malformed input scores zero instead of raising.
"""

import logging

from leadscore.domain import PROSPECT_FIELDS, RuleBreakdown

logger = logging.getLogger(__name__)


# ── Role vocabularies ─────────────────────────────────────────────────────────

DECISION_MAKER_ROLES = [
    # C-level
    "ceo", "chief executive officer", "president", "founder", "co-founder",
    "cto", "chief technology officer", "chief technical officer",
    "cfo", "chief financial officer", "chief finance officer",
    "cmo", "chief marketing officer", "chief marketing",
    "coo", "chief operating officer", "chief operations officer",
    "cpo", "chief product officer", "chief people officer",
    "ciso", "chief information security officer",
    "cdo", "chief data officer", "chief digital officer",
    # VPs and directors
    "vp", "vice president", "svp", "senior vice president", "evp", "executive vice president",
    "director", "head of", "general manager", "gm",
    # Owners and department heads
    "owner", "partner", "managing director", "managing partner",
    "department head", "team lead", "team leader",
]

INFLUENCER_ROLES = [
    # Seniority
    "senior manager", "sr manager", "senior", "sr.",
    "principal", "lead", "senior lead", "staff",
    "senior engineer", "senior developer", "senior analyst",
    "senior consultant", "senior specialist",
    # Management
    "manager", "supervisor", "coordinator", "administrator",
    "project manager", "program manager", "product manager",
    "account manager", "sales manager", "marketing manager",
    # Specialists with buying influence
    "architect", "consultant", "specialist", "expert",
    "analyst", "strategist", "advisor",
]


# ── Industry categories (checked in order; first hit wins) ────────────────────

INDUSTRY_CATEGORIES: dict[str, list[str]] = {
    "technology": [
        "technology", "tech", "software", "saas", "it", "information technology",
        "computer software", "internet", "telecommunications", "fintech",
        "edtech", "healthtech", "proptech", "martech", "adtech",
        "artificial intelligence", "ai", "machine learning", "ml",
        "cybersecurity", "security", "cloud computing", "devops",
    ],
    "business_services": [
        "consulting", "business services", "professional services",
        "management consulting", "strategy consulting", "advisory",
        "accounting", "legal", "law", "marketing", "advertising",
        "public relations", "pr", "human resources", "hr", "recruiting",
    ],
    "financial": [
        "financial services", "banking", "finance", "investment",
        "insurance", "real estate", "venture capital", "vc",
        "private equity", "asset management", "wealth management",
    ],
    "healthcare": [
        "healthcare", "health", "medical", "pharmaceutical", "pharma",
        "biotechnology", "biotech", "life sciences", "hospital",
        "clinic", "medical device", "telemedicine",
    ],
    "ecommerce": [
        "e-commerce", "ecommerce", "retail", "consumer goods",
        "marketplace", "online retail", "fashion", "apparel",
    ],
    "manufacturing": [
        "manufacturing", "industrial", "automotive", "aerospace",
        "construction", "engineering", "logistics", "supply chain",
    ],
    "media": [
        "media", "entertainment", "publishing", "gaming",
        "streaming", "content", "digital media", "social media",
    ],
    "education": [
        "education", "university", "school", "training",
        "e-learning", "online education", "academic",
    ],
}

ROLE_DECISION_MAKER_POINTS = 20
ROLE_INFLUENCER_POINTS = 10
INDUSTRY_DIRECT_POINTS = 20
INDUSTRY_ADJACENT_POINTS = 10
COMPLETENESS_POINTS = 10


# ── Components ────────────────────────────────────────────────────────────────

def evaluate_role_relevance(role) -> int:
    """
    Score a job title by decision-making influence.

    Substring containment on the lowercased role; the decision-maker list is
    checked before the influencer list.
    """
    if not isinstance(role, str) or not role.strip():
        logger.debug("Role missing or invalid: %r (+0)", role)
        return 0

    normalized = role.strip().lower()

    if any(keyword in normalized for keyword in DECISION_MAKER_ROLES):
        logger.debug("Decision maker role: %r (+%d)", role, ROLE_DECISION_MAKER_POINTS)
        return ROLE_DECISION_MAKER_POINTS

    if any(keyword in normalized for keyword in INFLUENCER_ROLES):
        logger.debug("Influencer role: %r (+%d)", role, ROLE_INFLUENCER_POINTS)
        return ROLE_INFLUENCER_POINTS

    logger.debug("Standard role: %r (+0)", role)
    return 0


def get_industry_category(text: str) -> str | None:
    """Map an industry or use-case string to its coarse category, or None."""
    normalized = text.lower()
    for category, keywords in INDUSTRY_CATEGORIES.items():
        if any(keyword in normalized for keyword in keywords):
            return category
    return None


def evaluate_industry_match(industry, ideal_use_cases) -> int:
    """
    Score how well a prospect's industry matches the offer's ideal use cases.

    20 when either string contains the other, 10 when both fall into the
    same category, 0 otherwise.
    """
    if not isinstance(industry, str) or not industry.strip():
        logger.debug("Industry missing or invalid: %r (+0)", industry)
        return 0

    use_cases = [
        use_case.strip().lower()
        for use_case in (ideal_use_cases or [])
        if isinstance(use_case, str) and use_case.strip()
    ]
    if not use_cases:
        logger.debug("No ideal use cases to match industry %r against (+0)", industry)
        return 0

    normalized = industry.strip().lower()

    if any(normalized in use_case or use_case in normalized for use_case in use_cases):
        logger.debug("Direct industry match: %r (+%d)", industry, INDUSTRY_DIRECT_POINTS)
        return INDUSTRY_DIRECT_POINTS

    category = get_industry_category(normalized)
    if category and category in {get_industry_category(use_case) for use_case in use_cases}:
        logger.debug(
            "Adjacent industry match: %r in %s (+%d)", industry, category, INDUSTRY_ADJACENT_POINTS,
        )
        return INDUSTRY_ADJACENT_POINTS

    logger.debug("No industry match: %r (+0)", industry)
    return 0


def evaluate_data_completeness(prospect) -> int:
    """10 points only if every profile field is a non-blank string."""
    if prospect is None:
        return 0

    incomplete = [
        name for name in PROSPECT_FIELDS
        if not isinstance(getattr(prospect, name, None), str)
        or not getattr(prospect, name).strip()
    ]
    if incomplete:
        logger.debug("Incomplete profile, missing/blank: %s (+0)", ", ".join(incomplete))
        return 0

    return COMPLETENESS_POINTS


# ── Combined ──────────────────────────────────────────────────────────────────

def calculate_rule_score(prospect, offer) -> RuleBreakdown:
    """
    Compute the full rule-based breakdown for one prospect.

    Never raises: any unexpected error yields an all-zero breakdown.
    """
    try:
        breakdown = RuleBreakdown(
            role_score=evaluate_role_relevance(prospect.role),
            industry_score=evaluate_industry_match(prospect.industry, offer.ideal_use_cases),
            completeness_score=evaluate_data_completeness(prospect),
        )
    except Exception as e:
        logger.warning("Rule scoring failed, using zero breakdown: %s", e)
        return RuleBreakdown()

    logger.debug(
        "Rule score for %s: role=%d industry=%d completeness=%d total=%d",
        getattr(prospect, "name", "?"),
        breakdown.role_score, breakdown.industry_score,
        breakdown.completeness_score, breakdown.total_rule_score,
    )
    return breakdown
