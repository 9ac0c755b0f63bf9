import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

load_dotenv()

ANALYZE_RATE_LIMIT = "5/day"
SESSION_TTL_SECONDS = float(os.getenv("SESSION_TTL_SECONDS", "3600"))


def get_env() -> str:
    return os.getenv("ENV", "dev").lower()


def is_prod() -> bool:
    return get_env() in {"prod", "production"}


MAX_FILE_MB = int(os.getenv("MAX_FILE_MB", "10"))
MAX_FILE_BYTES = MAX_FILE_MB * 1024 * 1024

MIN_INPUT_CHARS = 50

TEXT_MEDIA_TYPE = "text/plain"
PDF_MEDIA_TYPE = "application/pdf"
ALLOWED_MEDIA_TYPES = {TEXT_MEDIA_TYPE, PDF_MEDIA_TYPE}

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT_SECONDS = 60.0

API_KEY_ENV = "GEMINI_API_KEY"
FALLBACK_API_KEY_ENV = "API_KEY"

GENERIC_ERROR_MESSAGE = "We couldn't analyze your résumé right now. Please try again in a moment."

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]


def get_api_key() -> Optional[str]:
    # read on every call so a key added after startup is picked up
    return os.getenv(API_KEY_ENV) or os.getenv(FALLBACK_API_KEY_ENV) or None


def get_model_name() -> str:
    return os.getenv("GEMINI_MODEL", DEFAULT_MODEL)


def get_timeout_seconds() -> float:
    return float(os.getenv("GEMINI_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS)))


def is_admissible(resume_text: Optional[str], job_description: Optional[str]) -> bool:
    """Both fields need at least MIN_INPUT_CHARS characters of real content."""
    return (
        len((resume_text or "").strip()) >= MIN_INPUT_CHARS
        and len((job_description or "").strip()) >= MIN_INPUT_CHARS
    )


class LinkedInSuggestions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    suggested_headline: str = Field(alias="suggestedHeadline")
    suggested_about: str = Field(alias="suggestedAbout")
    top_skills_to_add: List[str] = Field(alias="topSkillsToAdd")


class AnalysisResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    score: int
    missing_keywords: List[str] = Field(alias="missingKeywords")
    match_analysis: str = Field(alias="matchAnalysis")
    recommendation: str
    linkedin: Optional[LinkedInSuggestions] = None


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resume_text: str = Field(alias="resumeText")
    job_description: str = Field(alias="jobDescriptionText")


class AnalyzeResponse(BaseModel):
    status: bool = True
    session_id: str


class StatusResponse(BaseModel):
    status: bool = True
    session_id: str
    state: str
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None


class ExtractResponse(BaseModel):
    status: bool = True
    text: str
    characters: int


class ConsistencyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    linkedin_profile: str = Field(alias="linkedinProfile", min_length=1)


class ConsistencyResponse(BaseModel):
    status: bool = True
    score: int = Field(ge=0, le=100)
    verdict: str
    simulated: bool = True
