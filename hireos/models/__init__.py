"""SQLAlchemy ORM models for HireOS.

All models are imported here to ensure they're registered with Base.metadata
before any database operations.
"""

# Import base first
from hireos.config.database import Base

# Tenancy
from .accounts import Account, AccountMember
from .users import User

# Core models
from .jobs import Job, JOB_STATUSES
from .candidates import (
    Candidate,
    CANDIDATE_STATUSES,
    INTERVIEW_STAGE_STATUSES,
    FINAL_DECISIONS,
    EVALUATION_FIELDS,
)
from .interviews import Interview, ACTIVE_INTERVIEW_STATUSES
from .evaluations import Evaluation
from .offers import Offer

# Audit models
from .activities import ActivityLog

# Email models
from .email_templates import EmailTemplate, TEMPLATE_KINDS
from .email_log import EmailLog

# Notifications
from .notifications import NotificationQueueItem, InAppNotification

# Integrations
from .integrations import PlatformIntegration, PLATFORM_TYPES, CRM_PLATFORMS

__all__ = [
    "Base",
    # Tenancy
    "Account",
    "AccountMember",
    "User",
    # Core
    "Job",
    "JOB_STATUSES",
    "Candidate",
    "CANDIDATE_STATUSES",
    "INTERVIEW_STAGE_STATUSES",
    "FINAL_DECISIONS",
    "EVALUATION_FIELDS",
    "Interview",
    "ACTIVE_INTERVIEW_STATUSES",
    "Evaluation",
    "Offer",
    # Audit
    "ActivityLog",
    # Email
    "EmailTemplate",
    "TEMPLATE_KINDS",
    "EmailLog",
    # Notifications
    "NotificationQueueItem",
    "InAppNotification",
    # Integrations
    "PlatformIntegration",
    "PLATFORM_TYPES",
    "CRM_PLATFORMS",
]
