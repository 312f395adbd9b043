"""Plan quota policy: how many publications of each content type a tenant may hold."""

from app.utils.constants import ContentType, Plan

PLAN_LIMITS: dict[Plan, dict[ContentType, int]] = {
    Plan.BASIC: {ContentType.REEL: 4, ContentType.POST: 8},
    Plan.STANDARD: {ContentType.REEL: 8, ContentType.POST: 10},
    Plan.FULL: {ContentType.REEL: 15, ContentType.POST: 15},
}


def plan_limit(plan: Plan, content_type: ContentType) -> int:
    return PLAN_LIMITS[Plan(plan)][ContentType(content_type)]


def check_quota(plan: Plan, content_type: ContentType, current_count: int) -> bool:
    """True while the tenant still has room for one more publication of this type."""
    return current_count < plan_limit(plan, content_type)
