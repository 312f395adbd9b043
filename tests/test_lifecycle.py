from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from app.errors import MediaTypeMismatchError, NotFoundError, QuotaExceededError, ValidationError
from app.repositories.media import MediaRepository
from app.repositories.publications import PublicationRepository
from app.services.lifecycle import PublicationLifecycle, PublishOutcome
from app.services.quota import PLAN_LIMITS
from app.services.state_machine import InvalidTransition
from app.utils.constants import ContentType, Plan, PublicationStatus

from conftest import MP4_BYTES, PNG_BYTES

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def lifecycle(db, store):
    return PublicationLifecycle(db, store, clock=lambda: NOW)


def _png(store):
    return store.store(data=PNG_BYTES, mime_type="image/png", original_filename="photo.png")


def _mp4(store):
    return store.store(data=MP4_BYTES, mime_type="video/mp4", original_filename="clip.mp4")


# ---------- create / quota ----------


@pytest.mark.parametrize("plan", list(Plan))
@pytest.mark.parametrize("content_type", list(ContentType))
def test_quota_rejects_one_past_the_limit(lifecycle, make_client, db, plan, content_type):
    client = make_client(plan=plan)
    limit = PLAN_LIMITS[plan][content_type]

    for i in range(limit):
        lifecycle.create(client.id, title=f"#{i}", content_type=content_type)

    with pytest.raises(QuotaExceededError) as exc:
        lifecycle.create(client.id, title="one too many", content_type=content_type)

    assert exc.value.status_code == 422
    assert PublicationRepository(db).count_by_type(client.id, content_type) == limit


def test_quota_is_counted_per_content_type(lifecycle, make_client, db):
    client = make_client(plan=Plan.BASIC)
    for i in range(4):
        lifecycle.create(client.id, title=f"reel {i}", content_type=ContentType.REEL)

    # reels are full, posts are not
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)
    assert pub.content_type == ContentType.POST


def test_create_defaults_to_draft(lifecycle, make_client):
    client = make_client()
    pub = lifecycle.create(client.id, title="Hello", content_type="POST")

    assert pub.status == PublicationStatus.DRAFT
    assert pub.client_id == client.id


def test_create_scheduled_requires_publish_date(lifecycle, make_client):
    client = make_client()
    with pytest.raises(ValidationError):
        lifecycle.create(client.id, title="x", content_type=ContentType.POST, status=PublicationStatus.SCHEDULED)

    pub = lifecycle.create(
        client.id,
        title="x",
        content_type=ContentType.POST,
        status="SCHEDULED",
        publish_date=NOW + timedelta(days=1),
    )
    assert pub.status == PublicationStatus.SCHEDULED


def test_create_cannot_start_published(lifecycle, make_client):
    client = make_client()
    with pytest.raises(InvalidTransition):
        lifecycle.create(client.id, title="x", content_type=ContentType.POST, status=PublicationStatus.PUBLISHED)


def test_create_rejects_unknown_content_type(lifecycle, make_client):
    client = make_client()
    with pytest.raises(ValidationError):
        lifecycle.create(client.id, title="x", content_type="STORY")


def test_create_for_missing_client(lifecycle):
    with pytest.raises(NotFoundError):
        lifecycle.create(999, title="x", content_type=ContentType.POST)


# ---------- attach media ----------


def test_video_on_post_is_rejected_and_file_removed(lifecycle, make_client, store, db):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)
    stored = _mp4(store)
    assert store.exists(stored.filename)

    with pytest.raises(MediaTypeMismatchError):
        lifecycle.attach_media(pub.id, stored)

    assert MediaRepository(db).count_by_publication(pub.id) == 0
    assert not store.exists(stored.filename)


def test_image_on_reel_is_rejected(lifecycle, make_client, store):
    client = make_client()
    pub = lifecycle.create(client.id, title="reel", content_type=ContentType.REEL)
    stored = _png(store)

    with pytest.raises(MediaTypeMismatchError):
        lifecycle.attach_media(pub.id, stored)
    assert not store.exists(stored.filename)


def test_attach_to_missing_publication_removes_file(lifecycle, store):
    stored = _png(store)
    with pytest.raises(NotFoundError):
        lifecycle.attach_media(12345, stored)
    assert not store.exists(stored.filename)


def test_attach_without_publish_now_keeps_status(lifecycle, make_client, store):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)

    result = lifecycle.attach_media(pub.id, _png(store))

    assert result.outcome == PublishOutcome.NOT_REQUESTED
    assert result.published is False
    assert result.publication.status == PublicationStatus.DRAFT
    assert result.media.url and store.exists(result.media.url)


def test_publish_now_on_draft_publishes(lifecycle, make_client, store, db):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)

    result = lifecycle.attach_media(pub.id, _png(store), publish_now=True)

    assert result.outcome == PublishOutcome.PUBLISHED
    assert result.published is True
    db.expire_all()
    fresh = PublicationRepository(db).find_by_id(pub.id)
    assert fresh.status == PublicationStatus.PUBLISHED
    assert fresh.publish_date is not None


def test_publish_now_on_scheduled_is_reported_not_applied(lifecycle, make_client, store):
    client = make_client()
    pub = lifecycle.create(
        client.id,
        title="later",
        content_type=ContentType.REEL,
        status=PublicationStatus.SCHEDULED,
        publish_date=NOW + timedelta(days=2),
    )

    result = lifecycle.attach_media(pub.id, _mp4(store), publish_now=True)

    assert result.outcome == PublishOutcome.LEFT_SCHEDULED
    assert result.published is False
    assert "SCHEDULED" in result.message
    assert result.publication.status == PublicationStatus.SCHEDULED


def test_publish_now_on_published_is_reported(lifecycle, make_client, store):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)
    lifecycle.attach_media(pub.id, _png(store), publish_now=True)

    result = lifecycle.attach_media(pub.id, _png(store), publish_now=True)
    assert result.outcome == PublishOutcome.ALREADY_PUBLISHED


def test_failed_publish_rolls_back_media_and_file(lifecycle, make_client, store, db, monkeypatch):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)
    stored = _png(store)

    def broken(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr(lifecycle.publications, "update_status", broken)

    with pytest.raises(RuntimeError):
        lifecycle.attach_media(pub.id, stored, publish_now=True)

    assert MediaRepository(db).count_by_publication(pub.id) == 0
    assert not store.exists(stored.filename)
    db.expire_all()
    assert PublicationRepository(db).find_by_id(pub.id).status == PublicationStatus.DRAFT


def test_lookup_failure_removes_stored_file(lifecycle, make_client, store, monkeypatch):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)
    stored = _png(store)

    def unavailable(*args, **kwargs):
        raise OperationalError("SELECT publications", {}, Exception("database is locked"))

    monkeypatch.setattr(lifecycle.publications, "find_by_id", unavailable)

    with pytest.raises(OperationalError):
        lifecycle.attach_media(pub.id, stored)

    assert not store.exists(stored.filename)


def test_media_insert_failure_removes_stored_file(lifecycle, make_client, store, db, monkeypatch):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)
    stored = _png(store)

    def unavailable(*args, **kwargs):
        raise OperationalError("INSERT INTO media", {}, Exception("disk I/O error"))

    monkeypatch.setattr(lifecycle.media, "create", unavailable)

    with pytest.raises(OperationalError):
        lifecycle.attach_media(pub.id, stored, publish_now=True)

    assert not store.exists(stored.filename)
    assert MediaRepository(db).count_by_publication(pub.id) == 0


def test_failed_publish_still_removes_file_when_media_cleanup_fails(lifecycle, make_client, store, monkeypatch):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)
    stored = _png(store)

    def broken(*args, **kwargs):
        raise RuntimeError("database went away")

    def unavailable(*args, **kwargs):
        raise OperationalError("SELECT media", {}, Exception("database is locked"))

    monkeypatch.setattr(lifecycle.publications, "update_status", broken)
    monkeypatch.setattr(lifecycle.media, "find", unavailable)

    # the publish error is what surfaces, not the cleanup one
    with pytest.raises(RuntimeError, match="database went away"):
        lifecycle.attach_media(pub.id, stored, publish_now=True)

    assert not store.exists(stored.filename)


# ---------- remove media ----------


def test_removing_last_media_reverts_published_to_draft(lifecycle, make_client, store, db):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)
    media = lifecycle.attach_media(pub.id, _png(store), publish_now=True).media

    result = lifecycle.remove_media(pub.id, media.id)

    assert result.reverted is True
    assert result.publication.status == PublicationStatus.DRAFT
    assert not store.exists(media.url)


def test_removing_last_media_reverts_scheduled_to_draft(lifecycle, make_client, store):
    client = make_client()
    pub = lifecycle.create(
        client.id,
        title="later",
        content_type=ContentType.POST,
        status=PublicationStatus.SCHEDULED,
        publish_date=NOW + timedelta(hours=1),
    )
    media = lifecycle.attach_media(pub.id, _png(store)).media

    result = lifecycle.remove_media(pub.id, media.id)
    assert result.reverted is True
    assert result.publication.status == PublicationStatus.DRAFT


def test_removing_one_of_several_media_keeps_status(lifecycle, make_client, store, db):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)
    first = lifecycle.attach_media(pub.id, _png(store), publish_now=True).media
    lifecycle.attach_media(pub.id, _png(store))

    result = lifecycle.remove_media(pub.id, first.id)

    assert result.reverted is False
    assert result.publication.status == PublicationStatus.PUBLISHED
    assert MediaRepository(db).count_by_publication(pub.id) == 1


def test_removing_media_from_draft_reports_no_reversion(lifecycle, make_client, store):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)
    media = lifecycle.attach_media(pub.id, _png(store)).media

    result = lifecycle.remove_media(pub.id, media.id)
    assert result.reverted is False
    assert result.publication.status == PublicationStatus.DRAFT


def test_removing_media_whose_file_is_already_gone(lifecycle, make_client, store, db):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)
    media = lifecycle.attach_media(pub.id, _png(store)).media
    store.remove(media.url)

    lifecycle.remove_media(pub.id, media.id)
    assert MediaRepository(db).count_by_publication(pub.id) == 0


def test_remove_media_of_another_publication_is_not_found(lifecycle, make_client, store):
    client = make_client()
    a = lifecycle.create(client.id, title="a", content_type=ContentType.POST)
    b = lifecycle.create(client.id, title="b", content_type=ContentType.POST)
    media = lifecycle.attach_media(a.id, _png(store)).media

    with pytest.raises(NotFoundError):
        lifecycle.remove_media(b.id, media.id)


# ---------- admin edits / delete ----------


def test_admin_status_override_is_permissive(lifecycle, make_client, store):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)
    lifecycle.attach_media(pub.id, _png(store), publish_now=True)

    assert lifecycle.update_status(pub.id, "DRAFT").status == PublicationStatus.DRAFT
    assert lifecycle.update_status(pub.id, "PUBLISHED").status == PublicationStatus.PUBLISHED

    with pytest.raises(ValidationError):
        lifecycle.update_status(pub.id, "LIVE")


def test_update_fields_rejects_immutable_fields(lifecycle, make_client):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)

    with pytest.raises(ValidationError):
        lifecycle.update_fields(pub.id, {"content_type": ContentType.REEL})
    with pytest.raises(ValidationError):
        lifecycle.update_fields(pub.id, {"client_id": 42})

    updated = lifecycle.update_fields(pub.id, {"title": "renamed", "engagement_score": 7.5})
    assert updated.title == "renamed"
    assert updated.engagement_score == 7.5


def test_delete_removes_media_files(lifecycle, make_client, store, db):
    client = make_client()
    pub = lifecycle.create(client.id, title="post", content_type=ContentType.POST)
    names = [lifecycle.attach_media(pub.id, _png(store)).media.url for _ in range(2)]

    lifecycle.delete(pub.id)

    assert PublicationRepository(db).find_by_id(pub.id) is None
    assert all(not store.exists(n) for n in names)

    with pytest.raises(NotFoundError):
        lifecycle.get(pub.id)
