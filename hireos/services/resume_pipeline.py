"""Background resume parsing and AI match scoring.

Runs after the response is sent, in its own database session. Failures are
logged and never reach the caller.
"""

import json
from typing import Callable, Optional
from urllib.parse import urlparse

import httpx
import structlog
from cryptography.fernet import InvalidToken
from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from hireos.config.settings import settings
from hireos.integrations.claude import ClaudeClient, ResumeParseResult
from hireos.integrations.pdf_extractor import extract_text_from_file
from hireos.models import Candidate, Job
from hireos.schemas.base import safe_json_loads
from hireos.services.platforms import get_usable_integration, integration_credentials

logger = structlog.get_logger()

MAX_RESUME_BYTES = 10 * 1024 * 1024


class ResumeAnalyzer:
    """Downloads a resume, extracts its text and asks Claude to parse and score it."""

    def __init__(
        self,
        timeout: float | None = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECONDS
        self.transport = transport

    async def download(self, resume_url: str) -> tuple[bytes, Optional[str]]:
        """Fetch the resume, aborting as soon as it passes MAX_RESUME_BYTES."""
        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            async with client.stream("GET", resume_url) as response:
                response.raise_for_status()
                chunks = []
                size = 0
                async for chunk in response.aiter_bytes():
                    size += len(chunk)
                    if size > MAX_RESUME_BYTES:
                        raise ValueError(f"Resume exceeds {MAX_RESUME_BYTES} bytes")
                    chunks.append(chunk)
                return b"".join(chunks), response.headers.get("content-type")

    async def analyze(
        self,
        resume_url: str,
        api_key: str,
        job: Optional[Job] = None,
        candidate_id: Optional[int] = None,
    ) -> ResumeParseResult:
        content, content_type = await self.download(resume_url)
        text = extract_text_from_file(content, urlparse(resume_url).path, content_type)
        if not text.strip():
            raise ValueError("No text could be extracted from resume")

        return await ClaudeClient(api_key=api_key).parse_resume(
            resume_text=text,
            job_title=job.title if job else "",
            job_description=job.description if job else "",
            job_skills=job.skills if job else "",
            candidate_id=candidate_id,
        )


def resolve_ai_key(db: Session, account_id: int) -> Optional[str]:
    """The account's Anthropic key, falling back to the service-wide key."""
    integration = get_usable_integration(db, account_id, "anthropic")
    if integration is not None:
        try:
            key = integration_credentials(integration).get("apiKey")
        except InvalidToken:
            logger.error("Anthropic credentials unreadable", account_id=account_id)
            key = None
        if key:
            return key
    return settings.ANTHROPIC_API_KEY or None


def merge_parsed_resume(candidate: Candidate, result: ResumeParseResult) -> list[str]:
    """
    Merge parsed fields into the candidate.

    Only empty fields are filled; skills are unioned; match score is always
    replaced. Returns the names of changed fields.
    """
    changed = []
    for attr in ("phone", "location", "experience_years", "summary"):
        value = getattr(result, attr)
        if value not in (None, "") and getattr(candidate, attr) in (None, ""):
            setattr(candidate, attr, value)
            changed.append(attr)

    existing = safe_json_loads(candidate.skills, []) or []
    merged = list(existing)
    seen = {s.lower() for s in existing}
    for skill in result.skills:
        if skill.lower() not in seen:
            merged.append(skill)
            seen.add(skill.lower())
    if merged != existing:
        candidate.skills = json.dumps(merged)
        changed.append("skills")

    if result.match_score is not None:
        candidate.match_score = result.match_score
        changed.append("match_score")

    candidate.parsed_resume_data = json.dumps(result.raw)
    return changed


async def process_resume(
    candidate_id: int,
    account_id: int,
    api_key: str,
    analyzer: ResumeAnalyzer,
    session_factory: Callable[[], Session],
) -> None:
    """Background task body: parse, score and merge into the candidate."""
    log = logger.bind(candidate_id=candidate_id, account_id=account_id)
    db = session_factory()
    try:
        candidate = (
            db.query(Candidate)
            .filter(Candidate.id == candidate_id, Candidate.account_id == account_id)
            .first()
        )
        if not candidate or not candidate.resume_url:
            log.info("Resume pipeline skipped, candidate or resume missing")
            return

        job = db.get(Job, candidate.job_id) if candidate.job_id else None
        result = await analyzer.analyze(candidate.resume_url, api_key, job=job, candidate_id=candidate_id)

        # Re-read: the candidate may have been edited while the AI call ran
        db.refresh(candidate)
        changed = merge_parsed_resume(candidate, result)
        db.commit()
        log.info("Resume pipeline complete", changed=changed, match_score=candidate.match_score)
    except Exception as e:  # noqa: BLE001
        db.rollback()
        log.exception("Resume pipeline failed", error=str(e), error_type=type(e).__name__)
    finally:
        db.close()


def schedule_resume_processing(
    background_tasks: Optional[BackgroundTasks],
    db: Session,
    candidate: Candidate,
    ctx,
) -> bool:
    """Queue the pipeline when a resume URL and an AI key are both present."""
    if background_tasks is None or not candidate.resume_url:
        return False

    api_key = resolve_ai_key(db, candidate.account_id)
    if not api_key:
        logger.info("Resume pipeline not configured, no AI key", candidate_id=candidate.id)
        return False

    background_tasks.add_task(
        process_resume,
        candidate.id,
        candidate.account_id,
        api_key,
        ctx.resume,
        ctx.session_factory,
    )
    return True
