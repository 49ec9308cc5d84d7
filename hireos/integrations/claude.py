"""Claude AI integration for resume parsing and job match scoring."""

import json
from dataclasses import dataclass, field
from typing import Any, List, Optional

import structlog
from anthropic import AsyncAnthropic, APIError

from hireos.config.settings import settings

logger = structlog.get_logger()

RESUME_PROMPT = """You are parsing a candidate's resume for a recruiting team.

## Job
Title: {job_title}
Skills: {job_skills}
Description:
{job_description}

## Resume
{resume_text}

Respond with a single JSON object and nothing else:
{{
  "phone": string or null,
  "location": string or null,
  "skills": [string, ...],
  "experienceYears": integer or null,
  "summary": string (two sentences, factual),
  "matchScore": integer 0-100 (how well the resume matches the job)
}}"""

MAX_RESUME_CHARS = 40000


@dataclass
class ResumeParseResult:
    """Fields parsed from a resume plus the job match score."""

    phone: Optional[str] = None
    location: Optional[str] = None
    skills: List[str] = field(default_factory=list)
    experience_years: Optional[int] = None
    summary: Optional[str] = None
    match_score: Optional[int] = None
    raw: dict[str, Any] = field(default_factory=dict)


class ClaudeClient:
    """Client for Claude AI API."""

    def __init__(self, api_key: Optional[str] = None):
        self.client = AsyncAnthropic(api_key=api_key or settings.ANTHROPIC_API_KEY)
        self.model = settings.CLAUDE_MODEL
        self.max_tokens = settings.CLAUDE_MAX_TOKENS

    async def parse_resume(
        self,
        resume_text: str,
        job_title: str = "",
        job_description: str = "",
        job_skills: str = "",
        candidate_id: Optional[int] = None,
    ) -> ResumeParseResult:
        """Parse a resume and score it against a job.

        Raises:
            ClaudeError: API call failed or no JSON in the response
        """
        logger.info("Parsing resume with Claude", candidate_id=candidate_id)

        prompt = RESUME_PROMPT.format(
            job_title=job_title or "Not specified",
            job_skills=job_skills or "Not specified",
            job_description=job_description or "Not specified",
            resume_text=resume_text[:MAX_RESUME_CHARS],
        )

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as e:
            logger.error("Claude API error during resume parse", error=str(e))
            raise ClaudeError(f"Resume parse failed: {str(e)}") from e

        result = self._parse_resume_response(response.content[0].text)
        logger.info(
            "Resume parse complete",
            candidate_id=candidate_id,
            skills_count=len(result.skills),
            match_score=result.match_score,
        )
        return result

    def _parse_resume_response(self, response: str) -> ResumeParseResult:
        try:
            data = json.loads(self._extract_json(response))
        except (json.JSONDecodeError, ValueError) as e:
            raise ClaudeError(f"Unparseable resume response: {str(e)}") from e

        score = data.get("matchScore")
        if isinstance(score, (int, float)):
            score = max(0, min(100, int(score)))
        else:
            score = None

        years = data.get("experienceYears")
        return ResumeParseResult(
            phone=data.get("phone") or None,
            location=data.get("location") or None,
            skills=[str(s) for s in data.get("skills") or [] if s],
            experience_years=int(years) if isinstance(years, (int, float)) else None,
            summary=data.get("summary") or None,
            match_score=score,
            raw=data,
        )

    def _extract_json(self, text: str) -> str:
        """Extract a JSON object from a response that may contain other text."""
        start = text.find("{")
        end = text.rfind("}") + 1

        if start != -1 and end > start:
            return text[start:end]

        raise ValueError("No JSON found in response")


class ClaudeError(Exception):
    """Raised when Claude API calls fail."""

    pass
