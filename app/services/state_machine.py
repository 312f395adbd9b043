import enum
from typing import Optional

from app.errors import ValidationError
from app.utils.constants import PublicationStatus

DRAFT = PublicationStatus.DRAFT
SCHEDULED = PublicationStatus.SCHEDULED
PUBLISHED = PublicationStatus.PUBLISHED


class Trigger(str, enum.Enum):
    CREATE = "create"
    ADMIN_OVERRIDE = "admin_override"
    PUBLISH_NOW = "publish_now"
    SCHEDULER = "scheduler"
    MEDIA_EMPTIED = "media_emptied"


class InvalidTransition(ValidationError):
    code = "invalid_transition"


# None stands for "no record yet"
ALLOWED_TRANSITIONS: dict[Trigger, dict[Optional[PublicationStatus], set[PublicationStatus]]] = {
    Trigger.CREATE: {None: {DRAFT, SCHEDULED}},
    Trigger.PUBLISH_NOW: {DRAFT: {PUBLISHED}},
    Trigger.SCHEDULER: {SCHEDULED: {PUBLISHED}},
    Trigger.MEDIA_EMPTIED: {PUBLISHED: {DRAFT}, SCHEDULED: {DRAFT}},
    # admins may force anything, including PUBLISHED back to DRAFT
    Trigger.ADMIN_OVERRIDE: {s: set(PublicationStatus) for s in PublicationStatus},
}


def parse_status(value) -> PublicationStatus:
    try:
        return PublicationStatus(value)
    except ValueError:
        valid = ", ".join(s.value for s in PublicationStatus)
        raise ValidationError(f"Invalid publication status: {value!r}. Use one of {valid}")


def can_transition(current: Optional[PublicationStatus], target: PublicationStatus, trigger: Trigger) -> bool:
    return target in ALLOWED_TRANSITIONS[trigger].get(current, set())


def ensure_transition(current: Optional[PublicationStatus], target: PublicationStatus, trigger: Trigger) -> None:
    target = parse_status(target)
    if current is not None:
        current = parse_status(current)

    if not can_transition(current, target, trigger):
        origin = current.value if current else "(new)"
        raise InvalidTransition(f"Invalid transition: {origin} -> {target.value} ({trigger.value})")
