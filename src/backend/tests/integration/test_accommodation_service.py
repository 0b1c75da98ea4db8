"""
Integration tests for AccommodationService against an in-memory database.

Tests:
- New submissions (classification, defaults, seated derivation)
- Resubmission by existingRecordId and by claimNumber
- Bucket fixed at creation
- Validation and not-found errors
- Claim number uniqueness race
- Inbound webhook upsert
- Partial update and delete
- Expiry sweep
"""

from datetime import date, timedelta

import pytest
import pytest_asyncio
from sqlalchemy import select

from core.exceptions import NotFoundError, ValidationError
from db.enums import SubmissionResult
from db.models import AccommodationRecord
from schemas.accommodation import (AccommodationPatch, InboundWebhookPayload,
                                   RestrictionSubmission)
from tests.factories import AccommodationRecordFactory


def _submission(**overrides) -> RestrictionSubmission:
    values = {
        "isNew": "yes",
        "associateLogin": "janedoe",
        "associateName": "Jane Doe",
        "managerLogin": "bossman",
        "associateHomePath": "Pick",
        "shiftPattern": "DA5-1830",
        "accommodationRole": "Asset tagging",
        "requestorLogin": "hrpartner",
        "startDate": "2024-03-01",
        "endDate": "2024-04-01",
        "aaRestrictions": "No lifting over 10 lbs",
    }
    values.update(overrides)
    return RestrictionSubmission.model_validate(values)


async def _all_records(db_session):
    result = await db_session.execute(select(AccommodationRecord))
    return list(result.scalars().all())


# ============================================================================
# Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def existing_record(db_session) -> AccommodationRecord:
    record = AccommodationRecordFactory.create(
        associate_login="janedoe",
        shift_pattern="DB3-night",
        claim_number="CLM-100",
    )
    db_session.add(record)
    await db_session.commit()
    await db_session.refresh(record)
    return record


# ============================================================================
# Submission Tests
# ============================================================================

class TestNewSubmission:
    """Tests for isNew = "yes"."""

    @pytest.mark.asyncio
    async def test_creates_record(self, db_session, accommodation_service):
        """New submission inserts with classified bucket and defaults."""
        outcome = await accommodation_service.submit_restriction(db_session, _submission())

        assert outcome.result is SubmissionResult.CREATED
        record = outcome.record
        assert record.id is not None
        assert record.shift_type == "FHD"
        assert record.status == "Pending"
        assert record.site == "BWI2"
        assert record.start_date == date(2024, 3, 1)
        assert record.end_date == date(2024, 4, 1)

    @pytest.mark.asyncio
    async def test_restrictions_text_not_stored(self, db_session, accommodation_service):
        outcome = await accommodation_service.submit_restriction(db_session, _submission())

        assert not hasattr(outcome.record, "aa_restrictions")

    @pytest.mark.asyncio
    async def test_seated_derived_from_legacy_role(self, db_session, accommodation_service):
        seated = await accommodation_service.submit_restriction(
            db_session, _submission(accommodationRole="Seated PA role")
        )
        standing = await accommodation_service.submit_restriction(
            db_session, _submission(associateLogin="other", accommodationRole="Water spider")
        )

        assert seated.record.is_seated is True
        assert standing.record.is_seated is False

    @pytest.mark.asyncio
    async def test_explicit_seated_flag_wins(self, db_session, accommodation_service):
        outcome = await accommodation_service.submit_restriction(
            db_session, _submission(accommodationRole="Water spider", isSeated=True)
        )

        assert outcome.record.is_seated is True

    @pytest.mark.asyncio
    async def test_unknown_shift_is_not_an_error(self, db_session, accommodation_service):
        outcome = await accommodation_service.submit_restriction(
            db_session, _submission(shiftPattern="ZZZ")
        )

        assert outcome.record.shift_type == "unknown"

    @pytest.mark.asyncio
    async def test_missing_associate_fields(self, db_session, accommodation_service):
        with pytest.raises(ValidationError):
            await accommodation_service.submit_restriction(
                db_session, _submission(associateName=None)
            )

        assert await _all_records(db_session) == []

    @pytest.mark.asyncio
    async def test_existing_claim_number_updates(
        self, db_session, accommodation_service, existing_record
    ):
        """Resubmitting a known claim updates that record instead of inserting."""
        outcome = await accommodation_service.submit_restriction(
            db_session,
            _submission(claimNumber="CLM-100", shiftPattern="DA1", accommodationRole="Seated PA role"),
        )

        assert outcome.result is SubmissionResult.UPDATED
        assert outcome.record.id == existing_record.id
        assert outcome.record.status == "Pending updated Restrictions"
        assert outcome.record.shift_type == "BHD"
        assert outcome.record.shift_pattern == "DB3-night"
        assert len(await _all_records(db_session)) == 1

    @pytest.mark.asyncio
    async def test_new_claim_number_inserts(self, db_session, accommodation_service, existing_record):
        outcome = await accommodation_service.submit_restriction(
            db_session, _submission(claimNumber="CLM-200")
        )

        assert outcome.result is SubmissionResult.CREATED
        assert len(await _all_records(db_session)) == 2


class TestResubmission:
    """Tests for isNew = "no"."""

    @pytest.mark.asyncio
    async def test_bucket_fixed_at_creation(self, db_session, accommodation_service):
        """Updating with a different pattern keeps the original bucket."""
        created = await accommodation_service.submit_restriction(
            db_session, _submission(shiftPattern="DB3-night")
        )
        assert created.record.shift_type == "BHD"

        updated = await accommodation_service.submit_restriction(
            db_session,
            _submission(
                isNew="no",
                existingRecordId=created.record.id,
                shiftPattern="NA4-1800",
                accommodationRole="Seated PA role",
                endDate="2024-06-30",
            ),
        )

        assert updated.result is SubmissionResult.UPDATED
        assert updated.record.id == created.record.id
        assert updated.record.shift_type == "BHD"
        assert updated.record.shift_pattern == "DB3-night"
        assert updated.record.accommodation_role == "Seated PA role"
        assert updated.record.is_seated is True
        assert updated.record.end_date == date(2024, 6, 30)
        assert updated.record.status == "Pending updated Restrictions"

    @pytest.mark.asyncio
    async def test_site_reset_and_document_kept(
        self, db_session, accommodation_service, existing_record
    ):
        existing_record.site = "XYZ1"
        existing_record.document_key = "restrictions/20240101000000_old.pdf"
        await db_session.commit()

        outcome = await accommodation_service.submit_restriction(
            db_session, _submission(isNew="no", existingRecordId=existing_record.id)
        )

        assert outcome.record.site == "BWI2"
        assert outcome.record.document_key == "restrictions/20240101000000_old.pdf"

    @pytest.mark.asyncio
    async def test_new_document_replaces_key(
        self, db_session, accommodation_service, existing_record
    ):
        outcome = await accommodation_service.submit_restriction(
            db_session,
            _submission(isNew="no", existingRecordId=existing_record.id),
            document_key="restrictions/20240202000000_new.pdf",
        )

        assert outcome.record.document_key == "restrictions/20240202000000_new.pdf"

    @pytest.mark.asyncio
    async def test_missing_existing_record_id(self, db_session, accommodation_service):
        with pytest.raises(ValidationError):
            await accommodation_service.submit_restriction(db_session, _submission(isNew="no"))

    @pytest.mark.asyncio
    async def test_unknown_existing_record(self, db_session, accommodation_service):
        with pytest.raises(NotFoundError):
            await accommodation_service.submit_restriction(
                db_session, _submission(isNew="no", existingRecordId=9999)
            )


class TestIsNewValidation:
    """Tests for invalid isNew values."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", ["maybe", "y", "true"])
    async def test_invalid_is_new(self, db_session, accommodation_service, value):
        with pytest.raises(ValidationError):
            await accommodation_service.submit_restriction(db_session, _submission(isNew=value))

        assert await _all_records(db_session) == []


class TestClaimNumberRace:
    """Tests for the unique claim number guard."""

    @pytest.mark.asyncio
    async def test_concurrent_insert_becomes_update(
        self, db_session, session_factory, accommodation_service, monkeypatch
    ):
        """A row inserted between the lookup and the insert is updated instead."""
        from crud import accommodation_crud

        original_lookup = accommodation_crud.find_by_claim_number
        calls = {"count": 0}

        async def racing_lookup(db, claim_number):
            calls["count"] += 1
            if calls["count"] == 1:
                # Another request wins the race right after our lookup
                async with session_factory() as other:
                    other.add(AccommodationRecordFactory.create(claim_number=claim_number))
                    await other.commit()
                return None
            return await original_lookup(db, claim_number)

        monkeypatch.setattr(accommodation_crud, "find_by_claim_number", racing_lookup)

        outcome = await accommodation_service.submit_restriction(
            db_session, _submission(claimNumber="CLM-RACE")
        )

        assert outcome.result is SubmissionResult.UPDATED
        assert outcome.record.status == "Pending updated Restrictions"
        records = await _all_records(db_session)
        assert len(records) == 1


# ============================================================================
# Webhook Tests
# ============================================================================

class TestWebhookUpsert:
    """Tests for upsert_from_webhook()."""

    @pytest.mark.asyncio
    async def test_creates_when_login_unknown(self, db_session, accommodation_service):
        payload = InboundWebhookPayload.model_validate(
            {"associateLogin": "newbie", "shiftPattern": "NB2200", "status": "Approved"}
        )

        outcome = await accommodation_service.upsert_from_webhook(db_session, payload)

        assert outcome.result is SubmissionResult.CREATED
        assert outcome.record.shift_type == "BHN"
        assert outcome.record.associate_name == "newbie"
        assert outcome.record.status == "Approved"

    @pytest.mark.asyncio
    async def test_updates_latest_record_keeping_bucket(
        self, db_session, accommodation_service
    ):
        older = AccommodationRecordFactory.create(associate_login="janedoe", shift_pattern="DA1")
        newer = AccommodationRecordFactory.create(associate_login="janedoe", shift_pattern="DB3")
        db_session.add(older)
        await db_session.commit()
        db_session.add(newer)
        await db_session.commit()

        payload = InboundWebhookPayload.model_validate(
            {"associateLogin": "janedoe", "shiftPattern": "NA4", "status": "Approved"}
        )
        outcome = await accommodation_service.upsert_from_webhook(db_session, payload)

        assert outcome.result is SubmissionResult.UPDATED
        assert outcome.record.id == newer.id
        assert outcome.record.shift_type == "BHD"
        assert outcome.record.status == "Approved"


# ============================================================================
# Record Screen Tests
# ============================================================================

class TestPatchAndDelete:
    """Tests for patch_record() and delete_record()."""

    @pytest.mark.asyncio
    async def test_patch_status(self, db_session, accommodation_service, existing_record):
        record = await accommodation_service.patch_record(
            db_session, existing_record.id, AccommodationPatch(status="Approved", is_seated=True)
        )

        assert record.status == "Approved"
        assert record.is_seated is True
        assert record.accommodation_role == "Asset tagging"

    @pytest.mark.asyncio
    async def test_patch_missing(self, db_session, accommodation_service):
        with pytest.raises(NotFoundError):
            await accommodation_service.patch_record(db_session, 404, AccommodationPatch(status="Approved"))

    @pytest.mark.asyncio
    async def test_delete(self, db_session, accommodation_service, existing_record):
        await accommodation_service.delete_record(db_session, existing_record.id)

        assert await _all_records(db_session) == []

        with pytest.raises(NotFoundError):
            await accommodation_service.delete_record(db_session, existing_record.id)


class TestListRecords:
    """Tests for list_records()."""

    @pytest.mark.asyncio
    async def test_newest_first_and_filters(self, db_session, accommodation_service):
        first = AccommodationRecordFactory.create(shift_pattern="DA1")
        second = AccommodationRecordFactory.create(shift_pattern="NB1", site="OTH1")
        third = AccommodationRecordFactory.create(shift_pattern="DA2", shift_type="unknown")
        for record in (first, second, third):
            db_session.add(record)
            await db_session.commit()

        records = await accommodation_service.list_records(db_session)
        assert [r.id for r in records] == [third.id, second.id, first.id]

        bwi = await accommodation_service.list_records(db_session, site="BWI2")
        assert {r.id for r in bwi} == {first.id, third.id}

        fhd = await accommodation_service.list_records(db_session, shift_type="fhd")
        assert {r.id for r in fhd} == {first.id, third.id}


# ============================================================================
# Expiry Tests
# ============================================================================

class TestExpireRecords:
    """Tests for expire_records()."""

    @pytest.mark.asyncio
    async def test_only_past_end_dates_expire(self, db_session, accommodation_service):
        today = date(2024, 5, 10)
        past = AccommodationRecordFactory.create(status="Approved", end_date=today - timedelta(days=1))
        ends_today = AccommodationRecordFactory.create(status="Approved", end_date=today)
        future = AccommodationRecordFactory.create(end_date=today + timedelta(days=5))
        already = AccommodationRecordFactory.create(status="Expired", end_date=today - timedelta(days=30))
        no_end = AccommodationRecordFactory.create(end_date=None)
        no_end.end_date = None
        for record in (past, ends_today, future, already, no_end):
            db_session.add(record)
        await db_session.commit()

        count = await accommodation_service.expire_records(db_session, as_of=today)

        assert count == 1
        db_session.expire_all()
        statuses = {
            record.id: record.status for record in await _all_records(db_session)
        }
        assert statuses[past.id] == "Expired"
        assert statuses[ends_today.id] == "Approved"
        assert statuses[future.id] == "Pending"
        assert statuses[already.id] == "Expired"
        assert statuses[no_end.id] == "Pending"


class TestExpiryTask:
    """Tests for the scheduled expiry task wrapper."""

    @pytest.mark.asyncio
    async def test_uses_own_session(self, session_factory):
        from tasks.expiry_tasks import expire_accommodations_task

        async with session_factory() as session:
            session.add(AccommodationRecordFactory.create(end_date=date(2024, 1, 31)))
            session.add(AccommodationRecordFactory.create(end_date=date(2024, 3, 1)))
            await session.commit()

        result = await expire_accommodations_task(
            session_factory=session_factory, as_of=date(2024, 2, 15)
        )

        assert result == {"expired": 1, "as_of": "2024-02-15"}

        async with session_factory() as session:
            rows = await session.execute(
                select(AccommodationRecord).where(AccommodationRecord.status == "Expired")
            )
            assert len(rows.scalars().all()) == 1


class TestWebhookClaimOwnership:
    """Claim numbers never move between associates through the webhook."""

    @pytest.mark.asyncio
    async def test_new_login_with_claim_of_other_associate(
        self, db_session, accommodation_service
    ):
        alice = AccommodationRecordFactory.create(associate_login="alice", claim_number="CLM-1")
        db_session.add(alice)
        await db_session.commit()

        payload = InboundWebhookPayload.model_validate(
            {"associateLogin": "bob", "claimNumber": "CLM-1", "status": "Approved"}
        )
        with pytest.raises(ValidationError):
            await accommodation_service.upsert_from_webhook(db_session, payload)

        db_session.expire_all()
        records = await _all_records(db_session)
        assert len(records) == 1
        assert records[0].associate_login == "alice"
        assert records[0].status == "Pending"

    @pytest.mark.asyncio
    async def test_existing_login_with_claim_of_other_associate(
        self, db_session, accommodation_service
    ):
        alice = AccommodationRecordFactory.create(associate_login="alice", claim_number="CLM-1")
        bob = AccommodationRecordFactory.create(associate_login="bob")
        db_session.add_all([alice, bob])
        await db_session.commit()

        payload = InboundWebhookPayload.model_validate(
            {"associateLogin": "bob", "claimNumber": "CLM-1", "status": "Approved"}
        )
        with pytest.raises(ValidationError):
            await accommodation_service.upsert_from_webhook(db_session, payload)

        db_session.expire_all()
        bob_row = await db_session.get(AccommodationRecord, bob.id)
        assert bob_row.claim_number is None
        assert bob_row.status == "Pending"

    @pytest.mark.asyncio
    async def test_claim_on_older_record_of_same_associate(
        self, db_session, accommodation_service
    ):
        older = AccommodationRecordFactory.create(associate_login="bob", claim_number="CLM-1")
        db_session.add(older)
        await db_session.commit()
        latest = AccommodationRecordFactory.create(associate_login="bob")
        db_session.add(latest)
        await db_session.commit()

        payload = InboundWebhookPayload.model_validate(
            {"associateLogin": "bob", "claimNumber": "CLM-1", "status": "Approved"}
        )
        outcome = await accommodation_service.upsert_from_webhook(db_session, payload)

        assert outcome.result is SubmissionResult.UPDATED
        assert outcome.record.id == latest.id
        assert outcome.record.status == "Approved"
        assert outcome.record.claim_number is None

    @pytest.mark.asyncio
    async def test_free_claim_is_assigned(self, db_session, accommodation_service):
        bob = AccommodationRecordFactory.create(associate_login="bob")
        db_session.add(bob)
        await db_session.commit()

        payload = InboundWebhookPayload.model_validate(
            {"associateLogin": "bob", "claimNumber": "CLM-7"}
        )
        outcome = await accommodation_service.upsert_from_webhook(db_session, payload)

        assert outcome.record.claim_number == "CLM-7"


class TestListFilterValidation:
    """Tests for the shift_type filter of list_records()."""

    @pytest.mark.asyncio
    async def test_unrecognised_filter_rejected(self, db_session, accommodation_service):
        db_session.add(AccommodationRecordFactory.create(shift_pattern="ZZZ"))
        await db_session.commit()

        with pytest.raises(ValidationError):
            await accommodation_service.list_records(db_session, shift_type="NOTABUCKET")

    @pytest.mark.asyncio
    async def test_unknown_filter_lists_unclassified(self, db_session, accommodation_service):
        unclassified = AccommodationRecordFactory.create(shift_pattern="ZZZ")
        db_session.add_all([unclassified, AccommodationRecordFactory.create(shift_pattern="DA1")])
        await db_session.commit()

        records = await accommodation_service.list_records(db_session, shift_type="unknown")

        assert [record.id for record in records] == [unclassified.id]


class TestTimestamps:
    """Stored timestamps are naive UTC."""

    @pytest.mark.asyncio
    async def test_round_trip_naive(self, db_session, accommodation_service):
        outcome = await accommodation_service.submit_restriction(db_session, _submission())

        db_session.expire_all()
        record = await db_session.get(AccommodationRecord, outcome.record.id)
        assert record.created_at.tzinfo is None
        assert record.updated_at.tzinfo is None
