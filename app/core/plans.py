"""Subscription plan catalogue.

Single source of truth for which features each plan entitles an
organization to. Features are never set independently of the plan except
through an explicit subscription update.
"""

from enum import StrEnum


class Plan(StrEnum):
    BASIC = "basic"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


PLAN_FEATURES: dict[Plan, tuple[str, ...]] = {
    Plan.BASIC: ("students", "contacts", "basic_gallery"),
    Plan.PREMIUM: (
        "students", "contacts", "gallery", "events", "news", "faculty", "admissions",
    ),
    Plan.ENTERPRISE: (
        "students", "contacts", "gallery", "events", "news", "faculty", "admissions",
        "custom_domain", "api_access", "advanced_analytics",
    ),
}

DEFAULT_PLAN = Plan.BASIC


def features_for_plan(plan: str) -> list[str]:
    """Return the feature tags for a plan. Unknown plans get the basic set."""
    try:
        key = Plan(plan)
    except ValueError:
        key = DEFAULT_PLAN
    return list(PLAN_FEATURES[key])
