"""
Accommodation service.

Owns every write to the accommodations table:

- restriction submissions (create-or-update keyed by isNew, existingRecordId
  and claimNumber)
- inbound webhook upserts keyed by associate login
- partial updates and deletes from the records screen
- the daily expiry sweep

A record's shift bucket is fixed when it is created. Updates never touch
shift_pattern or shift_type.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Union

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import AccommodationSettings
from core.decorators import (critical_database_operation,
                             log_database_operation,
                             transactional_database_operation)
from core.exceptions import NotFoundError, ValidationError
from core.logging_config import AccommodationLogger
from crud import accommodation_crud
from db.enums import ShiftBucket, SubmissionResult
from db.models import AccommodationRecord, utc_now
from schemas.accommodation import (AccommodationPatch, AccommodationRead,
                                   InboundWebhookPayload,
                                   RestrictionSubmission)
from services.notification_dispatcher import (NotificationDispatcher,
                                              RestrictionNotice)
from services.occupancy_service import OccupancyService
from services.shift_classifier import ShiftClassifier

logger = logging.getLogger(__name__)
record_log = AccommodationLogger()

NEW_REQUEST = "yes"
RESUBMISSION = "no"


@dataclass
class SubmissionOutcome:
    """Record written by a create-or-update and which of the two happened."""

    record: AccommodationRecord
    result: SubmissionResult


class AccommodationService:
    """Service for managing accommodation records."""

    def __init__(self, policy: AccommodationSettings):
        self.policy = policy

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def resolve_seated(self, role: Optional[str], is_seated: Optional[bool]) -> bool:
        """Explicit flag wins; otherwise seated iff the role is a legacy seated role."""
        if is_seated is not None:
            return is_seated
        return role in self.policy.legacy_seated_roles

    @staticmethod
    def to_read(record: AccommodationRecord) -> AccommodationRead:
        """Serialize a record with its effective shift bucket."""
        read = AccommodationRead.model_validate(record)
        read.shift_type = ShiftClassifier.effective_bucket(record).value
        return read

    @staticmethod
    def _filter_bucket(shift_type: Union[ShiftBucket, str]) -> ShiftBucket:
        if isinstance(shift_type, ShiftBucket):
            return shift_type
        bucket = ShiftClassifier.parse_bucket(shift_type)
        if bucket is ShiftBucket.UNKNOWN and shift_type.lower() != ShiftBucket.UNKNOWN.value:
            raise ValidationError(f"Unknown shift type {shift_type!r}")
        return bucket

    @staticmethod
    def _check_claim_owner(owner: AccommodationRecord, associate_login: str) -> None:
        """A claim number held by another associate's record is a conflict."""
        if owner.associate_login != associate_login:
            raise ValidationError(
                f"claimNumber {owner.claim_number} belongs to another associate"
            )

    async def _insert_claim_guarded(
        self,
        db: AsyncSession,
        record: AccommodationRecord,
        on_conflict,
    ) -> SubmissionOutcome:
        """
        Insert a new record. If another row already holds its claim number,
        roll back and hand the winning row to on_conflict instead.
        """
        claim_number = record.claim_number
        try:
            await accommodation_crud.insert(db, record)
        except IntegrityError:
            await db.rollback()
            if not claim_number:
                raise
            existing = await accommodation_crud.find_by_claim_number(db, claim_number)
            if existing is None:
                raise
            logger.warning(
                f"Claim {claim_number} inserted concurrently, updating record {existing.id}"
            )
            on_conflict(existing)
            await db.flush()
            return SubmissionOutcome(existing, SubmissionResult.UPDATED)

        record_log.record_created(record.id, record.associate_login, record.shift_type)
        return SubmissionOutcome(record, SubmissionResult.CREATED)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @critical_database_operation("list_records")
    @log_database_operation("record listing", level="debug")
    async def list_records(
        self,
        db: AsyncSession,
        site: Optional[str] = None,
        shift_type: Optional[Union[ShiftBucket, str]] = None,
    ) -> List[AccommodationRecord]:
        """
        List records newest first.

        Args:
            db: Database session
            site: Only records for this facility
            shift_type: Only records whose effective bucket matches

        Returns:
            List of records

        Raises:
            ValidationError: shift_type is not a bucket code
        """
        records = await accommodation_crud.list_records(db, site=site)

        if shift_type:
            wanted = self._filter_bucket(shift_type)
            records = [
                record
                for record in records
                if ShiftClassifier.effective_bucket(record) is wanted
            ]

        return records

    @critical_database_operation("get_record")
    async def get_record(self, db: AsyncSession, record_id: int) -> AccommodationRecord:
        record = await accommodation_crud.find_by_id(db, record_id)
        if record is None:
            raise NotFoundError(f"Record {record_id} not found")
        return record

    # ------------------------------------------------------------------
    # Record screen writes
    # ------------------------------------------------------------------

    @transactional_database_operation("delete_record")
    async def delete_record(self, db: AsyncSession, record_id: int) -> None:
        deleted = await accommodation_crud.delete(db, record_id)
        if not deleted:
            raise NotFoundError(f"Record {record_id} not found")
        record_log.record_deleted(record_id)

    @transactional_database_operation("patch_record")
    @log_database_operation("record patch", level="debug")
    async def patch_record(
        self,
        db: AsyncSession,
        record_id: int,
        patch: AccommodationPatch,
    ) -> AccommodationRecord:
        """
        Apply a partial update (role, status, seated flag).

        Raises:
            NotFoundError: If the record doesn't exist
        """
        record = await accommodation_crud.find_by_id(db, record_id)
        if record is None:
            raise NotFoundError(f"Record {record_id} not found")

        changes = patch.model_dump(exclude_unset=True, exclude_none=True)
        for field, value in changes.items():
            setattr(record, field, value)
        record.updated_at = utc_now()

        await db.flush()
        record_log.record_updated(record.id, record.associate_login, record.status, "patch")
        return record

    # ------------------------------------------------------------------
    # Restriction submissions
    # ------------------------------------------------------------------

    @staticmethod
    def validate_submission(submission: RestrictionSubmission) -> str:
        """
        Check the submission shape before anything is stored.

        Returns:
            Normalized isNew value ("yes" or "no")

        Raises:
            ValidationError: Bad isNew value or missing required fields
        """
        is_new = (submission.is_new or "").strip().lower()

        if is_new == NEW_REQUEST:
            if not submission.associate_login or not submission.associate_name:
                raise ValidationError(
                    "associateLogin and associateName are required for a new request"
                )
        elif is_new == RESUBMISSION:
            if submission.existing_record_id is None:
                raise ValidationError("existingRecordId is required when isNew is 'no'")
        else:
            raise ValidationError(f"isNew must be 'yes' or 'no', got {submission.is_new!r}")

        return is_new

    def _apply_resubmission(
        self,
        record: AccommodationRecord,
        submission: RestrictionSubmission,
        document_key: Optional[str],
    ) -> None:
        record.accommodation_role = submission.accommodation_role
        record.is_seated = self.resolve_seated(
            submission.accommodation_role, submission.is_seated
        )
        record.requestor_login = submission.requestor_login
        record.start_date = submission.start_date
        record.end_date = submission.end_date
        record.manager_login = submission.manager_login
        record.associate_home_path = submission.associate_home_path
        if document_key:
            record.document_key = document_key
        record.site = self.policy.site
        record.status = self.policy.resubmitted_status
        record.updated_at = utc_now()

    @transactional_database_operation("submit_restriction")
    @log_database_operation("restriction submission", level="debug")
    async def submit_restriction(
        self,
        db: AsyncSession,
        submission: RestrictionSubmission,
        document_key: Optional[str] = None,
    ) -> SubmissionOutcome:
        """
        Create or update a record from a restriction submission.

        - isNew "yes": update the record holding claimNumber, otherwise insert
        - isNew "no": update existingRecordId

        Raises:
            ValidationError: Bad isNew value or missing required fields
            NotFoundError: existingRecordId does not exist
        """
        is_new = self.validate_submission(submission)

        if is_new == NEW_REQUEST:
            if submission.claim_number:
                existing = await accommodation_crud.find_by_claim_number(
                    db, submission.claim_number
                )
                if existing is not None:
                    self._apply_resubmission(existing, submission, document_key)
                    await db.flush()
                    record_log.record_updated(
                        existing.id, existing.associate_login, existing.status, "claimNumber"
                    )
                    return SubmissionOutcome(existing, SubmissionResult.UPDATED)

            record = AccommodationRecord(
                claim_number=submission.claim_number,
                associate_login=submission.associate_login,
                associate_name=submission.associate_name,
                manager_login=submission.manager_login,
                associate_home_path=submission.associate_home_path,
                shift_pattern=submission.shift_pattern,
                shift_type=ShiftClassifier.classify(submission.shift_pattern).value,
                site=self.policy.site,
                accommodation_role=submission.accommodation_role,
                is_seated=self.resolve_seated(
                    submission.accommodation_role, submission.is_seated
                ),
                status=self.policy.default_status,
                start_date=submission.start_date,
                end_date=submission.end_date,
                requestor_login=submission.requestor_login,
                document_key=document_key,
            )
            return await self._insert_claim_guarded(
                db,
                record,
                lambda existing: self._apply_resubmission(existing, submission, document_key),
            )

        record = await accommodation_crud.find_by_id(db, submission.existing_record_id)
        if record is None:
            raise NotFoundError(f"Record {submission.existing_record_id} not found")

        self._apply_resubmission(record, submission, document_key)
        await db.flush()
        record_log.record_updated(record.id, record.associate_login, record.status, "resubmission")
        return SubmissionOutcome(record, SubmissionResult.UPDATED)

    # ------------------------------------------------------------------
    # Inbound webhook
    # ------------------------------------------------------------------

    def _apply_webhook_update(
        self,
        record: AccommodationRecord,
        payload: InboundWebhookPayload,
        assign_claim: bool = True,
    ) -> None:
        updates = payload.model_dump(
            exclude_none=True,
            include={
                "associate_name",
                "accommodation_role",
                "status",
                "start_date",
                "end_date",
                "requestor_login",
            },
        )
        for field, value in updates.items():
            setattr(record, field, value)

        if payload.is_seated is not None or payload.accommodation_role is not None:
            record.is_seated = self.resolve_seated(record.accommodation_role, payload.is_seated)
        if assign_claim and payload.claim_number and not record.claim_number:
            record.claim_number = payload.claim_number
        record.updated_at = utc_now()

    @transactional_database_operation("upsert_from_webhook")
    @log_database_operation("webhook upsert", level="debug")
    async def upsert_from_webhook(
        self,
        db: AsyncSession,
        payload: InboundWebhookPayload,
    ) -> SubmissionOutcome:
        """
        Upsert by associate login: update the associate's latest record, or
        create one with the bucket classified from shiftPattern.

        Raises:
            ValidationError: claimNumber is held by another associate's record
        """
        claim_owner = None
        if payload.claim_number:
            claim_owner = await accommodation_crud.find_by_claim_number(
                db, payload.claim_number
            )
            if claim_owner is not None:
                self._check_claim_owner(claim_owner, payload.associate_login)

        existing = await accommodation_crud.find_latest_by_associate_login(
            db, payload.associate_login
        )
        if existing is not None:
            # The claim may already sit on an older record of the same associate
            assign_claim = claim_owner is None or claim_owner.id == existing.id
            self._apply_webhook_update(existing, payload, assign_claim=assign_claim)
            await db.flush()
            record_log.record_updated(existing.id, existing.associate_login, existing.status, "webhook")
            return SubmissionOutcome(existing, SubmissionResult.UPDATED)

        bucket = ShiftClassifier.classify(payload.shift_pattern)
        record = AccommodationRecord(
            claim_number=payload.claim_number,
            associate_login=payload.associate_login,
            associate_name=payload.associate_name or payload.associate_login,
            shift_pattern=payload.shift_pattern,
            shift_type=bucket.value,
            site=self.policy.site,
            accommodation_role=payload.accommodation_role,
            is_seated=self.resolve_seated(payload.accommodation_role, payload.is_seated),
            status=payload.status or self.policy.default_status,
            start_date=payload.start_date,
            end_date=payload.end_date,
            requestor_login=payload.requestor_login,
        )

        def update_winner(winner: AccommodationRecord) -> None:
            self._check_claim_owner(winner, payload.associate_login)
            self._apply_webhook_update(winner, payload)

        return await self._insert_claim_guarded(db, record, update_winner)

    # ------------------------------------------------------------------
    # Expiry sweep
    # ------------------------------------------------------------------

    @transactional_database_operation("expire_records")
    async def expire_records(self, db: AsyncSession, as_of: Optional[date] = None) -> int:
        """
        Mark every record whose end date has passed as expired.

        Returns:
            Number of records transitioned
        """
        as_of = as_of or date.today()
        count = await accommodation_crud.mark_expired(
            db, as_of=as_of, expired_status=self.policy.expired_status
        )
        record_log.records_expired(count, as_of)
        return count

    # ------------------------------------------------------------------
    # Notification
    # ------------------------------------------------------------------

    async def notify(
        self,
        db: AsyncSession,
        record: AccommodationRecord,
        dispatcher: NotificationDispatcher,
        restrictions: Optional[str] = None,
        document_url: Optional[str] = None,
    ) -> bool:
        """
        Send the restriction notice for a committed record.

        Never raises; a failure is logged and reported as False.
        """
        try:
            snapshot = await OccupancyService(self.policy).snapshot(db)
        except SQLAlchemyError as e:
            record_log.notification_failed(record.id, f"occupancy unavailable: {e}")
            return False

        bucket = ShiftClassifier.effective_bucket(record)
        notice = RestrictionNotice(
            associate_name=record.associate_name,
            associate_login=record.associate_login,
            home_path=record.associate_home_path,
            restrictions=restrictions,
            recommendation=record.accommodation_role,
            requestor_login=record.requestor_login,
            shift_code=bucket.value,
            shift_count=0 if bucket is ShiftBucket.UNKNOWN else snapshot.count_for(bucket),
            seated_total=snapshot.seated_total,
            document_url=document_url,
        )

        delivered = await dispatcher.dispatch(notice)
        if not delivered and dispatcher.config.webhook_url:
            record_log.notification_failed(record.id, "webhook delivery failed")
        return delivered
