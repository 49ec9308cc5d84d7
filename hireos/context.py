"""Process-wide application context holding external collaborators.

Built lazily on first use behind a lock so concurrent first requests share a
single instance. Endpoints receive it via Depends(get_app_context), which
tests override with in-memory fakes.
"""

import threading
from dataclasses import dataclass
from typing import Callable, Optional

import structlog
from sqlalchemy.orm import Session

from hireos.config.database import SessionLocal
from hireos.integrations.google_calendar import GoogleCalendarMirror
from hireos.integrations.ses import SESService
from hireos.integrations.slack import SlackNotifier
from hireos.services.crm_sync import CRMSync
from hireos.services.resume_pipeline import ResumeAnalyzer
from hireos.services.workflow_hooks import WorkflowHooks

logger = structlog.get_logger()


@dataclass
class AppContext:
    email: SESService
    slack: SlackNotifier
    crm: CRMSync
    calendar: GoogleCalendarMirror
    resume: ResumeAnalyzer
    workflow: WorkflowHooks
    session_factory: Callable[[], Session]


_context: Optional[AppContext] = None
_context_lock = threading.Lock()


def build_app_context() -> AppContext:
    logger.info("Building application context")
    return AppContext(
        email=SESService(),
        slack=SlackNotifier(),
        crm=CRMSync(),
        calendar=GoogleCalendarMirror(),
        resume=ResumeAnalyzer(),
        workflow=WorkflowHooks(),
        session_factory=SessionLocal,
    )


def get_app_context() -> AppContext:
    """Return the shared context, building it exactly once."""
    global _context
    if _context is None:
        with _context_lock:
            if _context is None:
                _context = build_app_context()
    return _context
