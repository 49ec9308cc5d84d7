"""Candidate lifecycle controller.

The sole authority for candidate status transitions and the side effects
they imply. Every operation validates and authorizes before writing, commits
the state change, then runs best-effort effects (email, Slack, CRM sync,
workflow hook) whose outcomes are stored on the operation's activity row.
"""

import json
import secrets
import time
from datetime import timedelta
from typing import Any, Optional

import structlog
from fastapi import BackgroundTasks
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hireos.config.settings import settings
from hireos.context import AppContext
from hireos.middleware.error_handler import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnprocessableEntityError,
)
from hireos.models import Candidate, EmailLog, Job, Offer, User
from hireos.models.base import utcnow
from hireos.models.candidates import (
    DECISION_OFFER,
    DECISION_STATUSES,
    EVALUATION_FIELDS,
    INTERVIEW_STAGE_STATUSES,
    STATUS_APPLICATION_SUBMITTED,
    STATUS_DECISIONS,
    STATUS_INTERVIEW_SENT,
    STATUS_OFFER_ACCEPTED,
    STATUS_OFFER_SENT,
    STATUS_REJECTED,
    STATUS_TALENT_POOL,
)
from hireos.schemas.base import to_camel
from hireos.schemas.candidates import CandidateCreate, CandidateUpdate
from hireos.schemas.offers import SendOfferRequest
from hireos.services.activity import log_activity
from hireos.services.crm_sync import apply_crm_results
from hireos.services.effects import Effect, EffectReport, run_effects
from hireos.services.email_templates import TemplateFields, render_for
from hireos.services.email_validator import NON_EXISTENT_EMAIL, is_likely_invalid_email
from hireos.services.interview_bookkeeping import (
    cancel_active_interviews,
    ensure_invite_interview,
    lock_candidate,
)
from hireos.services.notifications import (
    add_in_app_notification,
    email_effect,
    format_slack_message,
    queue_notification,
    record_email_results,
    slack_effect,
)
from hireos.services.rbac import is_privileged
from hireos.services.resume_pipeline import schedule_resume_processing
from hireos.services.tenant import TenantContext

logger = structlog.get_logger()

MISSING_CALENDAR_LINK = "missing_calendar_link"
ACTIVE_INTERVIEW_INDEX = "uq_interviews_active_candidate"

# (action, entity_type, entity_id, details)
ActivityEntry = tuple[str, str, Optional[int], dict[str, Any]]


def generate_acceptance_token() -> str:
    return secrets.token_hex(32)


def build_contract_url(candidate_id: int) -> str:
    timestamp = int(time.time() * 1000)
    if settings.CONTRACT_URL_TEMPLATE:
        return settings.CONTRACT_URL_TEMPLATE.format(candidate_id=candidate_id, timestamp=timestamp)
    return f"{settings.CONTRACT_BASE_URL.rstrip('/')}/{candidate_id}-{timestamp}.pdf"


def build_acceptance_url(token: str, request_base_url: Optional[str] = None) -> str:
    base = settings.PUBLIC_BASE_URL or request_base_url or settings.FRONTEND_URL
    return f"{base.rstrip('/')}/accept-offer/{token}"


def apply_status(db: Session, candidate: Candidate, new_status: str, reason: Optional[str] = None) -> str:
    """
    Move a candidate to new_status and keep the decision flag consistent.

    Leaving the interview stage cancels every active interview. Returns the
    previous status.
    """
    previous = candidate.status
    candidate.status = new_status
    candidate.final_decision_status = STATUS_DECISIONS.get(new_status)

    if previous in INTERVIEW_STAGE_STATUSES and new_status not in INTERVIEW_STAGE_STATUSES:
        cancel_active_interviews(
            db,
            candidate.account_id,
            candidate.id,
            reason or f"candidate moved to {new_status}",
        )
    return previous


def resolve_target_status(candidate: Candidate, changes: dict[str, Any]) -> Optional[str]:
    """
    The status a patch moves the candidate to, or None for no status change.

    A decision sent without a status moves the candidate to the matching
    stage; a status with a contradicting decision is rejected.
    """
    status = changes.get("status")
    decision = changes.get("final_decision_status")

    if status is not None:
        implied = STATUS_DECISIONS.get(status)
        if decision is not None and decision != implied:
            raise BadRequestError(
                f"finalDecisionStatus '{decision}' does not match status '{status}'"
            )
        return status

    if decision is not None:
        if decision == DECISION_OFFER and candidate.status in (STATUS_OFFER_SENT, STATUS_OFFER_ACCEPTED):
            return None
        return DECISION_STATUSES[decision]

    return None


def is_active_interview_violation(error: IntegrityError) -> bool:
    # Postgres names the index, SQLite names the indexed column
    message = str(error.orig)
    return ACTIVE_INTERVIEW_INDEX in message or "interviews.candidate_id" in message


def commit_or_conflict(db: Session) -> None:
    """Commit, mapping a lost race on the active-interview index to Conflict."""
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning("Lifecycle write conflicted", error=str(e.orig))
        if is_active_interview_violation(e):
            raise ConflictError("Candidate already has an active interview")
        raise ConflictError("The change conflicts with existing data")


def workflow_effect(
    ctx: AppContext,
    candidate: Candidate,
    previous: Optional[str],
    actor_user_id: Optional[int],
) -> Optional[Effect]:
    if previous == candidate.status:
        return None
    account_id, candidate_id, new_status = candidate.account_id, candidate.id, candidate.status
    return Effect(
        name="workflow:candidate_status_changed",
        run=lambda: ctx.workflow.candidate_status_changed(
            account_id, candidate_id, previous, new_status, actor_user_id
        ),
    )


async def complete_operation(
    db: Session,
    candidate: Candidate,
    actor_user_id: Optional[int],
    effects: list[Optional[Effect]],
    entries: list[ActivityEntry],
) -> EffectReport:
    """
    Run effects, record their outcomes, and write the activity rows.

    The first activity entry carries the effect report under details.effects.
    """
    account_id = candidate.account_id
    candidate_id = candidate.id
    report = await run_effects([e for e in effects if e is not None])

    apply_crm_results(db, candidate, report)
    record_email_results(db, account_id, candidate_id, report)

    for index, (action, entity_type, entity_id, details) in enumerate(entries):
        if index == 0:
            details = {**details, "effects": report.to_list()}
        log_activity(db, account_id, action, entity_type, entity_id, actor_user_id, details)

    db.commit()
    return report


class CandidateLifecycleService:
    """Candidate status transitions with their bookkeeping and side effects."""

    def __init__(
        self,
        db: Session,
        ctx: AppContext,
        background_tasks: Optional[BackgroundTasks] = None,
        request_base_url: Optional[str] = None,
    ):
        self.db = db
        self.ctx = ctx
        self.background_tasks = background_tasks
        self.request_base_url = request_base_url

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_candidate(self, candidate_id: int, account_id: int, lock: bool = False) -> Candidate:
        if lock:
            candidate = lock_candidate(self.db, candidate_id, account_id)
        else:
            candidate = (
                self.db.query(Candidate)
                .filter(Candidate.id == candidate_id, Candidate.account_id == account_id)
                .first()
            )
        if not candidate:
            raise NotFoundError("Candidate", candidate_id)
        return candidate

    def _job_for(self, candidate: Candidate) -> Optional[Job]:
        if candidate.job_id is None:
            return None
        return (
            self.db.query(Job)
            .filter(Job.id == candidate.job_id, Job.account_id == candidate.account_id)
            .first()
        )

    def _latest_offer(self, candidate: Candidate) -> Optional[Offer]:
        return (
            self.db.query(Offer)
            .filter(Offer.candidate_id == candidate.id, Offer.account_id == candidate.account_id)
            .order_by(Offer.id.desc())
            .first()
        )

    # =========================================================================
    # Preconditions (checked before any write)
    # =========================================================================

    def _ensure_deliverable(
        self,
        candidate: Candidate,
        tenant: TenantContext,
        action: str,
        email: Optional[str] = None,
    ) -> None:
        """
        Abort an outbound action when the recipient fails the heuristic.

        email overrides the stored address for a patch that changes it in the
        same request.
        """
        email = candidate.email if email is None else email
        if not is_likely_invalid_email(email):
            return

        logger.warning(
            "Outbound action blocked by email check",
            candidate_id=candidate.id,
            action=action,
            email=email,
        )
        self.db.add(EmailLog(
            account_id=tenant.account_id,
            candidate_id=candidate.id,
            to_email=email or "",
            template_type=action,
            status="rejected",
            error="Email address failed deliverability check",
        ))
        log_activity(
            self.db,
            tenant.account_id,
            "email_validation_failed",
            "candidate",
            candidate.id,
            tenant.user_id,
            {"action": action, "email": email},
        )
        self.db.commit()
        raise UnprocessableEntityError(
            "The candidate's email address appears to be invalid or non-existent",
            error_type=NON_EXISTENT_EMAIL,
            field="email",
        )

    def _ensure_unique(
        self,
        account_id: int,
        name: str,
        email: str,
        exclude_id: Optional[int] = None,
    ) -> None:
        """(name, email) is unique per account; email compares case-insensitively."""
        query = self.db.query(Candidate).filter(
            Candidate.account_id == account_id,
            Candidate.name == name,
            func.lower(Candidate.email) == email.lower(),
        )
        if exclude_id is not None:
            query = query.filter(Candidate.id != exclude_id)
        existing = query.order_by(Candidate.id).first()
        if existing:
            raise ConflictError(
                "A candidate with this name and email already exists",
                extra={"existingCandidateId": existing.id},
            )

    def _require_calendar_link(self, user: User) -> str:
        link = (user.calendar_link or "").strip()
        if not link:
            raise BadRequestError(
                "Please set your calendar scheduling link in your profile before sending interview invitations",
                error_type=MISSING_CALENDAR_LINK,
            )
        return link

    # =========================================================================
    # Commit and effects
    # =========================================================================

    def _commit(self) -> None:
        commit_or_conflict(self.db)

    def _workflow_effect(
        self,
        candidate: Candidate,
        previous: Optional[str],
        actor_user_id: Optional[int],
    ) -> Optional[Effect]:
        return workflow_effect(self.ctx, candidate, previous, actor_user_id)

    async def _finish(
        self,
        candidate: Candidate,
        actor_user_id: Optional[int],
        effects: list[Optional[Effect]],
        entries: list[ActivityEntry],
    ) -> EffectReport:
        return await complete_operation(self.db, candidate, actor_user_id, effects, entries)

    # =========================================================================
    # Rendering helpers
    # =========================================================================

    def _invite_email(self, candidate: Candidate, job: Optional[Job], user: User, calendar_link: str) -> Effect:
        fields = TemplateFields.build(
            candidate.name,
            job.title if job else None,
            user.full_name,
            calendarLink=calendar_link,
        )
        rendered = render_for(self.db, candidate.account_id, "interview", fields, user_id=user.id)
        return email_effect(self.ctx, candidate.email, rendered, "interview", reply_to=user.email)

    def _offer_email(self, candidate: Candidate, job: Optional[Job], offer: Offer, user: User) -> Effect:
        fields = TemplateFields.build(
            candidate.name,
            job.title if job else None,
            user.full_name,
            contractLink=offer.contract_url,
            acceptanceUrl=build_acceptance_url(offer.acceptance_token, self.request_base_url),
            onboardingLink=user.calendar_link,
        )
        rendered = render_for(self.db, candidate.account_id, "offer", fields, user_id=user.id)
        return email_effect(self.ctx, candidate.email, rendered, "offer", reply_to=user.email)

    def _new_offer(
        self,
        candidate: Candidate,
        user: User,
        data: Optional[SendOfferRequest] = None,
    ) -> Offer:
        data = data or SendOfferRequest()
        offer = Offer(
            account_id=candidate.account_id,
            candidate_id=candidate.id,
            approved_by_id=user.id,
            offer_type=data.offer_type,
            compensation=data.compensation,
            start_date=data.start_date,
            notes=data.notes,
            status="sent",
            sent_date=utcnow(),
            contract_url=data.contract_url or build_contract_url(candidate.id),
            acceptance_token=generate_acceptance_token(),
        )
        self.db.add(offer)
        self.db.flush()
        add_in_app_notification(
            self.db,
            candidate.account_id,
            "offer_sent",
            "Offer sent",
            f"Offer sent to {candidate.name}",
            user_id=user.id,
            link=f"/candidates/{candidate.id}",
            metadata={"candidateId": candidate.id, "offerId": offer.id},
        )
        return offer

    def _record_invite(self, candidate: Candidate, user: User) -> tuple[Any, bool]:
        interview, created = ensure_invite_interview(self.db, candidate.account_id, candidate, user.id)
        add_in_app_notification(
            self.db,
            candidate.account_id,
            "interview_sent",
            "Interview invitation sent",
            f"Interview invitation sent to {candidate.name}",
            user_id=user.id,
            link=f"/candidates/{candidate.id}",
            metadata={"candidateId": candidate.id, "interviewId": interview.id},
        )
        return interview, created

    def _status_entry(self, candidate: Candidate, previous: str) -> ActivityEntry:
        return (
            "status_changed",
            "candidate",
            candidate.id,
            {"previousStatus": previous, "newStatus": candidate.status},
        )

    # =========================================================================
    # Operations
    # =========================================================================

    async def create_candidate(self, data: CandidateCreate, tenant: TenantContext) -> Candidate:
        """Create a candidate, rejecting a duplicate (name, email) in the account."""
        account_id = tenant.account_id

        job = None
        if data.job_id is not None:
            job = (
                self.db.query(Job)
                .filter(Job.id == data.job_id, Job.account_id == account_id)
                .first()
            )
            if not job:
                raise NotFoundError("Job", data.job_id)
            if job.status == "closed":
                raise BadRequestError("This job is closed to new applications")

        self._ensure_unique(account_id, data.name, data.email)

        candidate = Candidate(
            account_id=account_id,
            job_id=data.job_id,
            name=data.name,
            email=data.email,
            phone=data.phone,
            location=data.location,
            resume_url=data.resume_url,
            skills=json.dumps(data.skills) if data.skills else None,
            experience_years=data.experience_years,
            notes=data.notes,
            status=STATUS_APPLICATION_SUBMITTED,
        )
        self.db.add(candidate)
        self.db.flush()

        if job:
            add_in_app_notification(
                self.db,
                account_id,
                "new_application",
                "New application",
                f"{candidate.name} applied for {job.title}",
                link=f"/candidates/{candidate.id}",
                metadata={"candidateId": candidate.id, "jobId": job.id},
            )
            delay = timedelta(0) if job.express_review else timedelta(hours=settings.ASSESSMENT_DELAY_HOURS)
            queue_notification(
                self.db,
                account_id,
                "email",
                {
                    "to": candidate.email,
                    "templateType": "assessment",
                    "candidateId": candidate.id,
                    "context": {
                        "candidateName": candidate.name,
                        "jobTitle": job.title,
                        "assessmentLink": job.hi_people_link,
                    },
                },
                process_after=utcnow() + delay,
            )

        self.db.commit()
        logger.info("Candidate created", candidate_id=candidate.id, job_id=candidate.job_id)

        effects = [
            slack_effect(self.ctx, self.db, account_id, "new_application", candidate=candidate, job=job)
            if job else None,
            *self.ctx.crm.effects_for(self.db, candidate, job),
        ]
        await self._finish(
            candidate,
            tenant.user_id,
            effects,
            [("created", "candidate", candidate.id, {"name": candidate.name, "jobId": candidate.job_id})],
        )

        schedule_resume_processing(self.background_tasks, self.db, candidate, self.ctx)
        return candidate

    async def update_candidate(
        self,
        candidate_id: int,
        patch: CandidateUpdate,
        tenant: TenantContext,
    ) -> Candidate:
        """
        Apply a patch, routing status changes through the canonical transitions.

        Setting 45_1st_interview_sent goes through the invite path, including
        its email and calendar-link checks. Setting 95_offer_sent (or the
        offer decision) issues an offer if the candidate has none.
        """
        account_id = tenant.account_id
        candidate = self.get_candidate(candidate_id, account_id, lock=True)
        changes = patch.model_dump(exclude_unset=True)

        touched_evaluation = [f for f in EVALUATION_FIELDS if f in changes]
        if touched_evaluation and not is_privileged(tenant.role):
            raise ForbiddenError("Only admin, CEO, COO or director roles can edit evaluation criteria")

        if changes.get("job_id") is not None:
            job_exists = (
                self.db.query(Job.id)
                .filter(Job.id == changes["job_id"], Job.account_id == account_id)
                .first()
            )
            if not job_exists:
                raise NotFoundError("Job", changes["job_id"])

        new_name = changes.get("name", candidate.name)
        new_email = changes.get("email", candidate.email)
        if new_name != candidate.name or new_email.lower() != candidate.email.lower():
            self._ensure_unique(account_id, new_name, new_email, exclude_id=candidate.id)

        previous_status = candidate.status
        target_status = resolve_target_status(candidate, changes)
        status_changed = target_status is not None and target_status != previous_status

        invite = status_changed and target_status == STATUS_INTERVIEW_SENT
        calendar_link = None
        if invite:
            self._ensure_deliverable(candidate, tenant, "interview", email=new_email)
            calendar_link = self._require_calendar_link(tenant.user)

        issue_offer = (
            status_changed
            and target_status == STATUS_OFFER_SENT
            and self._latest_offer(candidate) is None
        )
        if issue_offer:
            self._ensure_deliverable(candidate, tenant, "offer", email=new_email)

        resume_changed = "resume_url" in changes and changes["resume_url"] != candidate.resume_url

        for field, value in changes.items():
            if field in ("status", "final_decision_status"):
                continue
            if field == "skills":
                value = json.dumps(value) if value is not None else None
            setattr(candidate, field, value)

        entries: list[ActivityEntry] = [(
            "updated",
            "candidate",
            candidate.id,
            {"fields": sorted(to_camel(f) for f in changes)},
        )]
        effects: list[Optional[Effect]] = []
        job = self._job_for(candidate)

        if status_changed:
            apply_status(self.db, candidate, target_status)
            entries.append(self._status_entry(candidate, previous_status))
            add_in_app_notification(
                self.db,
                account_id,
                "candidate_status_changed",
                "Candidate status changed",
                f"{candidate.name} moved to {target_status}",
                user_id=tenant.user_id,
                link=f"/candidates/{candidate.id}",
                metadata={"candidateId": candidate.id, "previousStatus": previous_status, "newStatus": target_status},
            )

        if invite:
            interview, created = self._record_invite(candidate, tenant.user)
            entries.append(("interview_invited", "candidate", candidate.id, {
                "interviewId": interview.id,
                "interviewCreated": created,
            }))
            effects.append(self._invite_email(candidate, job, tenant.user, calendar_link))

        if issue_offer:
            offer = self._new_offer(candidate, tenant.user)
            entries.append(("offer_created", "offer", offer.id, {"candidateId": candidate.id}))
            effects.append(self._offer_email(candidate, job, offer, tenant.user))
            effects.append(slack_effect(
                self.ctx, self.db, account_id, "offer_sent", candidate=candidate, job=job, user=tenant.user
            ))

        if touched_evaluation:
            entries.append(("evaluation_updated", "candidate", candidate.id, {
                "fields": [to_camel(f) for f in touched_evaluation],
            }))

        self._commit()
        logger.info(
            "Candidate updated",
            candidate_id=candidate.id,
            fields=sorted(changes),
            previous_status=previous_status,
            status=candidate.status,
        )

        effects.extend(self.ctx.crm.effects_for(self.db, candidate, job))
        effects.append(self._workflow_effect(candidate, previous_status, tenant.user_id))
        await self._finish(candidate, tenant.user_id, effects, entries)

        if resume_changed:
            schedule_resume_processing(self.background_tasks, self.db, candidate, self.ctx)
        return candidate

    async def invite_to_interview(self, candidate_id: int, tenant: TenantContext) -> Candidate:
        """Send the interview invitation and track it as a single active interview."""
        candidate = self.get_candidate(candidate_id, tenant.account_id, lock=True)
        self._ensure_deliverable(candidate, tenant, "interview")
        calendar_link = self._require_calendar_link(tenant.user)

        job = self._job_for(candidate)
        previous = apply_status(self.db, candidate, STATUS_INTERVIEW_SENT)
        interview, created = self._record_invite(candidate, tenant.user)
        self._commit()
        logger.info(
            "Interview invitation recorded",
            candidate_id=candidate.id,
            interview_id=interview.id,
            created=created,
        )

        effects = [
            self._invite_email(candidate, job, tenant.user, calendar_link),
            *self.ctx.crm.effects_for(self.db, candidate, job),
            self._workflow_effect(candidate, previous, tenant.user_id),
        ]
        entries: list[ActivityEntry] = [("interview_invited", "candidate", candidate.id, {
            "interviewId": interview.id,
            "interviewCreated": created,
        })]
        if previous != candidate.status:
            entries.append(self._status_entry(candidate, previous))

        await self._finish(candidate, tenant.user_id, effects, entries)
        return candidate

    async def add_to_talent_pool(self, candidate_id: int, tenant: TenantContext) -> Candidate:
        return await self._close_out(candidate_id, tenant, STATUS_TALENT_POOL, "talent_pool", "added_to_talent_pool")

    async def reject(self, candidate_id: int, tenant: TenantContext) -> Candidate:
        return await self._close_out(candidate_id, tenant, STATUS_REJECTED, "rejection", "rejected")

    async def _close_out(
        self,
        candidate_id: int,
        tenant: TenantContext,
        status: str,
        template_kind: str,
        action: str,
    ) -> Candidate:
        """Terminal outcome with a notification email; the email is best effort."""
        candidate = self.get_candidate(candidate_id, tenant.account_id, lock=True)
        self._ensure_deliverable(candidate, tenant, template_kind)

        job = self._job_for(candidate)
        previous = apply_status(self.db, candidate, status, reason=action.replace("_", " "))
        add_in_app_notification(
            self.db,
            tenant.account_id,
            "candidate_status_changed",
            "Candidate status changed",
            f"{candidate.name} moved to {status}",
            user_id=tenant.user_id,
            link=f"/candidates/{candidate.id}",
            metadata={"candidateId": candidate.id, "previousStatus": previous, "newStatus": status},
        )
        self._commit()
        logger.info("Candidate closed out", candidate_id=candidate.id, status=status)

        fields = TemplateFields.build(candidate.name, job.title if job else None, tenant.user.full_name)
        rendered = render_for(self.db, tenant.account_id, template_kind, fields, user_id=tenant.user_id)
        effects = [
            email_effect(self.ctx, candidate.email, rendered, template_kind, reply_to=tenant.user.email),
            *self.ctx.crm.effects_for(self.db, candidate, job),
            self._workflow_effect(candidate, previous, tenant.user_id),
        ]
        entries: list[ActivityEntry] = [(action, "candidate", candidate.id, {
            "previousStatus": previous,
            "finalDecisionStatus": candidate.final_decision_status,
        })]
        if previous != candidate.status:
            entries.append(self._status_entry(candidate, previous))

        await self._finish(candidate, tenant.user_id, effects, entries)
        return candidate

    async def send_offer(
        self,
        candidate_id: int,
        data: SendOfferRequest,
        tenant: TenantContext,
    ) -> tuple[Candidate, Offer]:
        """Issue an offer with a public acceptance token and email it."""
        candidate = self.get_candidate(candidate_id, tenant.account_id, lock=True)
        self._ensure_deliverable(candidate, tenant, "offer")

        job = self._job_for(candidate)
        previous = apply_status(self.db, candidate, STATUS_OFFER_SENT, reason="offer sent")
        offer = self._new_offer(candidate, tenant.user, data)
        self._commit()
        logger.info("Offer sent", candidate_id=candidate.id, offer_id=offer.id)

        effects = [
            self._offer_email(candidate, job, offer, tenant.user),
            slack_effect(self.ctx, self.db, tenant.account_id, "offer_sent", candidate=candidate, job=job, user=tenant.user),
            *self.ctx.crm.effects_for(self.db, candidate, job),
            self._workflow_effect(candidate, previous, tenant.user_id),
        ]
        entries: list[ActivityEntry] = [("offer_sent", "offer", offer.id, {
            "candidateId": candidate.id,
            "offerType": offer.offer_type,
            "compensation": offer.compensation,
        })]
        if previous != candidate.status:
            entries.append(self._status_entry(candidate, previous))

        await self._finish(candidate, tenant.user_id, effects, entries)
        return candidate, offer

    async def accept_offer(self, candidate_id: int, tenant: TenantContext) -> tuple[Candidate, Offer]:
        """Staff-initiated acceptance of the candidate's latest sent offer."""
        candidate = self.get_candidate(candidate_id, tenant.account_id)
        latest = self._latest_offer(candidate)
        if latest is None:
            raise BadRequestError("No offer found for this candidate")

        offer = self._lock_offer(Offer.id == latest.id)
        if offer.is_terminal:
            raise BadRequestError(f"This offer has already been {offer.status}")
        if offer.status != "sent":
            raise BadRequestError("This offer has not been sent")

        candidate = lock_candidate(self.db, candidate.id, candidate.account_id)
        await self._accept(offer, candidate, tenant.user_id, via="staff")
        return candidate, offer

    def get_public_offer(self, token: str) -> dict[str, Any]:
        """Sanitized offer, candidate and job summary for the public acceptance page."""
        offer = self.db.query(Offer).filter(Offer.acceptance_token == token).first()
        if not offer:
            raise NotFoundError("Offer", "token")
        if offer.is_terminal:
            raise BadRequestError(f"This offer has already been {offer.status}")
        if offer.status != "sent":
            raise BadRequestError("This offer is not available")

        candidate = self.db.get(Candidate, offer.candidate_id)
        job = self._job_for(candidate)
        return {
            "offer": offer,
            "candidate": candidate,
            "job": job,
        }

    async def respond_to_offer(self, token: str, action: str) -> Offer:
        """
        Public accept/decline by acceptance token.

        Terminal offers reject further responses, so a repeated call always
        fails and the first response stands.
        """
        offer = self._lock_offer(Offer.acceptance_token == token)
        if offer.is_terminal:
            raise BadRequestError(f"This offer has already been {offer.status}")
        if offer.status != "sent":
            raise BadRequestError("This offer is not open for a response")

        candidate = lock_candidate(self.db, offer.candidate_id, offer.account_id)
        if candidate is None:
            raise NotFoundError("Candidate", offer.candidate_id)

        if action == "accept":
            await self._accept(offer, candidate, None, via="public")
        elif action == "decline":
            await self._decline(offer, candidate)
        else:
            raise BadRequestError("action must be 'accept' or 'decline'")
        return offer

    def _lock_offer(self, criterion) -> Offer:
        offer = self.db.query(Offer).filter(criterion).with_for_update().first()
        if not offer:
            raise NotFoundError("Offer", "token")
        return offer

    async def _accept(self, offer: Offer, candidate: Candidate, actor_user_id: Optional[int], via: str) -> None:
        offer.status = "accepted"
        offer.responded_at = utcnow()
        previous = apply_status(self.db, candidate, STATUS_OFFER_ACCEPTED, reason="offer accepted")

        job = self._job_for(candidate)
        approver = self.db.get(User, offer.approved_by_id) if offer.approved_by_id else None

        add_in_app_notification(
            self.db,
            candidate.account_id,
            "offer_accepted",
            "Offer accepted",
            f"{candidate.name} accepted the offer",
            user_id=offer.approved_by_id,
            link=f"/candidates/{candidate.id}",
            metadata={"candidateId": candidate.id, "offerId": offer.id},
        )
        queue_notification(
            self.db,
            candidate.account_id,
            "slack",
            {
                "channel": "onboarding",
                "event": "offer_accepted",
                "candidateId": candidate.id,
                "message": format_slack_message("offer_accepted", candidate=candidate, job=job)
                or f"🎉 {candidate.name} has accepted the offer!",
            },
        )
        self._commit()
        logger.info("Offer accepted", offer_id=offer.id, candidate_id=candidate.id, via=via)

        fields = TemplateFields.build(
            candidate.name,
            job.title if job else None,
            approver.full_name if approver else None,
            onboardingLink=approver.calendar_link if approver else None,
        )
        rendered = render_for(
            self.db,
            candidate.account_id,
            "onboarding",
            fields,
            user_id=approver.id if approver else None,
        )
        effects = [
            email_effect(
                self.ctx,
                candidate.email,
                rendered,
                "onboarding",
                reply_to=approver.email if approver else None,
            ),
            *self.ctx.crm.effects_for(self.db, candidate, job),
            self._workflow_effect(candidate, previous, actor_user_id),
        ]
        entries: list[ActivityEntry] = [("offer_accepted", "offer", offer.id, {
            "candidateId": candidate.id,
            "via": via,
        })]
        if previous != candidate.status:
            entries.append(self._status_entry(candidate, previous))
        await self._finish(candidate, actor_user_id, effects, entries)

    async def _decline(self, offer: Offer, candidate: Candidate) -> None:
        offer.status = "declined"
        offer.responded_at = utcnow()
        previous = apply_status(self.db, candidate, STATUS_REJECTED, reason="offer declined")

        add_in_app_notification(
            self.db,
            candidate.account_id,
            "offer_rejected",
            "Offer declined",
            f"{candidate.name} declined the offer",
            user_id=offer.approved_by_id,
            link=f"/candidates/{candidate.id}",
            metadata={"candidateId": candidate.id, "offerId": offer.id},
        )
        self._commit()
        logger.info("Offer declined", offer_id=offer.id, candidate_id=candidate.id)

        job = self._job_for(candidate)
        effects = [
            *self.ctx.crm.effects_for(self.db, candidate, job),
            self._workflow_effect(candidate, previous, None),
        ]
        entries: list[ActivityEntry] = [("offer_declined", "offer", offer.id, {"candidateId": candidate.id})]
        if previous != candidate.status:
            entries.append(self._status_entry(candidate, previous))
        await self._finish(candidate, None, effects, entries)
