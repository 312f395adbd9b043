import enum


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    CLIENT = "CLIENT"


class Plan(str, enum.Enum):
    BASIC = "BASIC"
    STANDARD = "STANDARD"
    FULL = "FULL"


class ContentType(str, enum.Enum):
    POST = "POST"   # images
    REEL = "REEL"   # video


class PublicationStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SCHEDULED = "SCHEDULED"
    PUBLISHED = "PUBLISHED"


IMAGE_MIME_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}
VIDEO_MIME_TYPES = {"video/mp4", "video/webm"}

# Upload allow-list, checked before anything touches the disk
ALLOWED_MIME_TYPES = IMAGE_MIME_TYPES | VIDEO_MIME_TYPES

MIME_TYPES_BY_CONTENT_TYPE = {
    ContentType.POST: IMAGE_MIME_TYPES,
    ContentType.REEL: VIDEO_MIME_TYPES,
}

ADMIN_NOTIFICATIONS_GROUP = "admin_notifications"
NEW_COMMENT_EVENT = "new_comment_notification"
