import logging
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.sql.dml import Update

from conftest import OTHER_ID, OWNER_ID, PROJECT_ID
from models.project_share import ProjectShare
from services.share_links import (
    CommentsDisabled,
    InvalidComment,
    InvalidShareExpiry,
    InvalidShareOptions,
    MissingSharePassword,
    ProjectNotFound,
    ShareExpiry,
    ShareLinkExpired,
    ShareLinkForbidden,
    ShareLinkNotFound,
    ShareLinkRequest,
    ShareLinkUnauthorized,
    ShareOptions,
    add_share_comment,
    build_share_url,
    create_share_link,
    list_project_share_links,
    list_share_comments,
    resolve_share_link,
    revoke_share_link,
)


T0 = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)
CATEGORY_KEYS = {"phases", "expenses", "income", "materials", "phase_photos", "team_members"}


def _request(**overrides) -> ShareLinkRequest:
    values = {
        "share_type": "public",
        "options": ShareOptions.all_selected(),
        "expiry": ShareExpiry(amount=24, unit="hours"),
        "password": None,
    }
    values.update(overrides)
    return ShareLinkRequest(**values)


async def _create(db, now=T0, **overrides) -> ProjectShare:
    return await create_share_link(
        operator_id=OWNER_ID,
        project_id=PROJECT_ID,
        request=_request(**overrides),
        db=db,
        now=now,
    )


@pytest.mark.asyncio
async def test_public_link_resolves_immediately_with_all_categories(db_session):
    share = await _create(db_session)

    view = await resolve_share_link(share_id=share.id, db=db_session, now=T0 + timedelta(seconds=1))

    assert view["project"]["name"] == "Hillside Villa"
    assert CATEGORY_KEYS <= set(view)
    assert view["phases"][0]["contractor_name"] == "Rao Builders"
    assert [row["category"] for row in view["expenses"]] == ["Cement"]
    assert [row["category"] for row in view["income"]] == ["Client advance"]
    assert view["expenses"][0]["phase"] == {"id": "phase-foundation", "name": "Foundation"}
    assert view["materials"][0]["name"] == "TMT steel"
    assert view["phase_photos"][0]["photo_url"].endswith("footing.jpg")
    assert view["team_members"][0]["name"] == "Asha Kulkarni"
    assert view["share"]["view_count"] == 1


@pytest.mark.asyncio
async def test_projection_omits_unselected_categories_entirely(db_session):
    share = await _create(db_session, options=ShareOptions(phase_details=True))

    view = await resolve_share_link(share_id=share.id, db=db_session, now=T0)

    assert "phases" in view
    for key in CATEGORY_KEYS - {"phases"}:
        assert key not in view
    assert view["share"]["share_options"] == {
        "phaseDetails": True,
        "expenseDetails": False,
        "incomeDetails": False,
        "materialsDetails": False,
        "phasePhotos": False,
        "teamMembers": False,
    }


@pytest.mark.asyncio
async def test_private_link_requires_exact_password(db_session):
    share = await _create(db_session, share_type="private", password="s3cret")

    with pytest.raises(ShareLinkUnauthorized):
        await resolve_share_link(share_id=share.id, db=db_session, now=T0)
    with pytest.raises(ShareLinkUnauthorized):
        await resolve_share_link(share_id=share.id, password="S3cret", db=db_session, now=T0)
    with pytest.raises(ShareLinkUnauthorized):
        await resolve_share_link(share_id=share.id, password="s3cret ", db=db_session, now=T0)

    view = await resolve_share_link(share_id=share.id, password="s3cret", db=db_session, now=T0)
    assert view["share"]["share_type"] == "private"


@pytest.mark.asyncio
async def test_private_password_is_not_stored_in_plain_text(db_session):
    share = await _create(db_session, share_type="private", password="s3cret")

    row = (await db_session.execute(select(ProjectShare).where(ProjectShare.id == share.id))).scalar_one()
    assert row.password_encrypted
    assert "s3cret" not in row.password_encrypted

    links = await list_project_share_links(project_id=PROJECT_ID, operator_id=OWNER_ID, db=db_session, now=T0)
    assert links[0]["password"] == "s3cret"


@pytest.mark.asyncio
async def test_one_minute_link_expires_after_sixty_seconds(db_session):
    share = await _create(db_session, expiry=ShareExpiry(amount=1, unit="minutes"))

    await resolve_share_link(share_id=share.id, db=db_session, now=T0 + timedelta(seconds=59))
    with pytest.raises(ShareLinkExpired):
        await resolve_share_link(share_id=share.id, db=db_session, now=T0 + timedelta(seconds=61))


@pytest.mark.asyncio
async def test_expired_private_link_fails_even_with_correct_password(db_session):
    share = await _create(db_session, share_type="private", password="pw", expiry=ShareExpiry(2, "hours"))

    with pytest.raises(ShareLinkExpired):
        await resolve_share_link(share_id=share.id, password="pw", db=db_session, now=T0 + timedelta(hours=3))
    with pytest.raises(ShareLinkExpired):
        await resolve_share_link(share_id=share.id, password="wrong", db=db_session, now=T0 + timedelta(hours=3))


@pytest.mark.asyncio
async def test_deactivated_link_is_treated_as_expired(db_session):
    share = await _create(db_session)
    share.is_active = False
    await db_session.commit()

    with pytest.raises(ShareLinkExpired):
        await resolve_share_link(share_id=share.id, db=db_session, now=T0)


@pytest.mark.asyncio
async def test_create_rejects_empty_share_options(db_session):
    with pytest.raises(InvalidShareOptions):
        await _create(db_session, options=ShareOptions())


@pytest.mark.asyncio
@pytest.mark.parametrize("password", [None, "", "   "])
async def test_create_private_without_password_is_rejected(db_session, password):
    with pytest.raises(MissingSharePassword):
        await _create(db_session, share_type="private", password=password)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "expiry",
    [
        ShareExpiry(amount=0, unit="hours"),
        ShareExpiry(amount=-5, unit="minutes"),
        ShareExpiry(amount=3, unit="days"),
        ShareExpiry(amount=721, unit="hours"),
        ShareExpiry(amount=10**12, unit="hours"),
        ShareExpiry(amount=10**12, unit="minutes"),
        ShareExpiry(amount=720 * 60 + 1, unit="minutes"),
    ],
)
async def test_create_rejects_invalid_expiry(db_session, expiry):
    with pytest.raises(InvalidShareExpiry):
        await _create(db_session, expiry=expiry)


@pytest.mark.asyncio
async def test_create_requires_project_owned_by_operator(db_session):
    with pytest.raises(ProjectNotFound):
        await create_share_link(
            operator_id=OTHER_ID,
            project_id=PROJECT_ID,
            request=_request(),
            db=db_session,
            now=T0,
        )


@pytest.mark.asyncio
async def test_create_sets_expiry_and_initial_counters(db_session):
    share = await _create(db_session, expiry=ShareExpiry(amount=90, unit="minutes"))

    assert share.expires_at == T0 + timedelta(minutes=90)
    assert share.is_active is True
    assert share.view_count == 0
    assert share.comments == []
    assert share.password_encrypted is None


@pytest.mark.asyncio
async def test_view_count_increments_per_successful_resolution(db_session):
    share = await _create(db_session, share_type="private", password="pw")

    await resolve_share_link(share_id=share.id, password="pw", db=db_session, now=T0)
    with pytest.raises(ShareLinkUnauthorized):
        await resolve_share_link(share_id=share.id, password="nope", db=db_session, now=T0)
    view = await resolve_share_link(share_id=share.id, password="pw", db=db_session, now=T0)

    assert view["share"]["view_count"] == 2
    row = (await db_session.execute(select(ProjectShare.view_count).where(ProjectShare.id == share.id))).scalar_one()
    assert row == 2


@pytest.mark.asyncio
async def test_unknown_or_malformed_ids_are_not_found(db_session):
    with pytest.raises(ShareLinkNotFound):
        await resolve_share_link(share_id="not-a-uuid", db=db_session, now=T0)
    with pytest.raises(ShareLinkNotFound):
        await resolve_share_link(share_id="0b6c3f0e-6d0b-4f7e-9c55-1f1f7d3f3a10", db=db_session, now=T0)


@pytest.mark.asyncio
async def test_revoke_by_non_creator_is_forbidden(db_session):
    share = await _create(db_session)

    with pytest.raises(ShareLinkForbidden):
        await revoke_share_link(share_id=share.id, operator_id=OTHER_ID, db=db_session)

    await resolve_share_link(share_id=share.id, db=db_session, now=T0)


@pytest.mark.asyncio
async def test_revoke_by_creator_deletes_and_retry_is_not_found(db_session):
    share = await _create(db_session)

    await revoke_share_link(share_id=share.id, operator_id=OWNER_ID, db=db_session)

    with pytest.raises(ShareLinkNotFound):
        await resolve_share_link(share_id=share.id, db=db_session, now=T0)
    with pytest.raises(ShareLinkNotFound):
        await revoke_share_link(share_id=share.id, operator_id=OWNER_ID, db=db_session)


@pytest.mark.asyncio
async def test_comments_accumulate_and_list_newest_first(db_session):
    share = await _create(db_session)

    await add_share_comment(
        share_id=share.id, author_name="Client", comment="Looks great", db=db_session, now=T0
    )
    await add_share_comment(
        share_id=share.id,
        author_name=" Architect ",
        comment=" Check the lintel ",
        db=db_session,
        now=T0 + timedelta(minutes=5),
    )

    comments = await list_share_comments(share_id=share.id, operator_id=OWNER_ID, db=db_session)
    assert [c["comment"] for c in comments] == ["Check the lintel", "Looks great"]
    assert comments[0]["author_name"] == "Architect"
    assert all(c["id"] for c in comments)


@pytest.mark.asyncio
async def test_comment_requires_live_link_and_password(db_session):
    share = await _create(db_session, share_type="private", password="pw", expiry=ShareExpiry(1, "minutes"))

    with pytest.raises(ShareLinkUnauthorized):
        await add_share_comment(share_id=share.id, author_name="A", comment="B", db=db_session, now=T0)
    await add_share_comment(share_id=share.id, author_name="A", comment="B", password="pw", db=db_session, now=T0)
    with pytest.raises(ShareLinkExpired):
        await add_share_comment(
            share_id=share.id,
            author_name="A",
            comment="late",
            password="pw",
            db=db_session,
            now=T0 + timedelta(minutes=2),
        )


@pytest.mark.asyncio
async def test_comment_validation_and_disabled_comments(db_session):
    share = await _create(db_session)
    with pytest.raises(InvalidComment):
        await add_share_comment(share_id=share.id, author_name="  ", comment="hi", db=db_session, now=T0)

    quiet = await _create(db_session, allow_comments=False)
    with pytest.raises(CommentsDisabled):
        await add_share_comment(share_id=quiet.id, author_name="A", comment="hi", db=db_session, now=T0)


@pytest.mark.asyncio
async def test_list_comments_is_owner_only(db_session):
    share = await _create(db_session)
    with pytest.raises(ShareLinkForbidden):
        await list_share_comments(share_id=share.id, operator_id=OTHER_ID, db=db_session)


@pytest.mark.asyncio
async def test_management_list_keeps_expired_links(db_session):
    await _create(db_session, now=T0, expiry=ShareExpiry(1, "minutes"))
    await _create(db_session, now=T0 + timedelta(minutes=1), expiry=ShareExpiry(5, "hours"))

    links = await list_project_share_links(
        project_id=PROJECT_ID,
        operator_id=OWNER_ID,
        db=db_session,
        now=T0 + timedelta(minutes=30),
    )
    assert [link["status"] for link in links] == ["active", "expired"]

    others = await list_project_share_links(project_id=PROJECT_ID, operator_id=OTHER_ID, db=db_session)
    assert others == []


def test_share_url_uses_raw_id():
    assert build_share_url("https://app.example.com/", "abc-123") == "https://app.example.com/shared/abc-123"


def test_share_options_accept_wire_keys():
    options = ShareOptions.from_mapping({"expenseDetails": True, "team_members": True, "allowComments": True})
    assert options.expense_details and options.team_members
    assert not options.phase_details
    assert options.any_selected()


@pytest.mark.asyncio
async def test_expiry_at_exact_cap_is_accepted(db_session):
    share = await _create(db_session, expiry=ShareExpiry(amount=720 * 60, unit="minutes"))
    assert share.expires_at == T0 + timedelta(hours=720)


@pytest.mark.asyncio
async def test_view_count_failure_is_logged_not_raised(db_session, monkeypatch, caplog):
    share = await _create(db_session)
    real_execute = db_session.execute

    async def failing_update(statement, *args, **kwargs):
        if isinstance(statement, Update):
            raise OperationalError("UPDATE project_shares", {}, Exception("database is locked"))
        return await real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db_session, "execute", failing_update)

    with caplog.at_level(logging.WARNING, logger="services.share_links"):
        view = await resolve_share_link(share_id=share.id, db=db_session, now=T0)

    assert view["project"]["name"] == "Hillside Villa"
    assert view["share"]["view_count"] == 0
    assert "Could not increment view count" in caplog.text


@pytest.mark.asyncio
async def test_injected_clock_is_normalized_to_utc(db_session):
    share = await _create(db_session)
    india = timezone(timedelta(hours=5, minutes=30))

    await add_share_comment(share_id=share.id, author_name="A", comment="at 09:00 UTC", db=db_session, now=T0)
    # 14:00 +05:30 is 08:30 UTC, earlier than the first comment.
    entry = await add_share_comment(
        share_id=share.id,
        author_name="B",
        comment="at 08:30 UTC",
        db=db_session,
        now=datetime(2026, 10, 1, 14, 0, tzinfo=india),
    )

    assert entry["created_at"] == "2026-10-01T08:30:00+00:00"
    comments = await list_share_comments(share_id=share.id, operator_id=OWNER_ID, db=db_session)
    assert [c["comment"] for c in comments] == ["at 09:00 UTC", "at 08:30 UTC"]

    naive_view = await resolve_share_link(share_id=share.id, db=db_session, now=datetime(2026, 10, 1, 10, 0))
    assert naive_view["share"]["share_id"] == share.id
