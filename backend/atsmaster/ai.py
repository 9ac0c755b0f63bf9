from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError

from atsmaster.core import (
    API_KEY_ENV,
    AnalysisResult,
    get_api_key,
    get_model_name,
    get_timeout_seconds,
)
from atsmaster.exceptions import (
    ConfigurationError,
    EmptyResponseError,
    FormatError,
    TransportError,
)

logger = logging.getLogger(__name__)


SYSTEM_INSTRUCTION = """You are an applicant tracking system (ATS) evaluator and a LinkedIn profile optimization specialist.
Compare the candidate's resume with the job description and give a realistic compatibility score.
Besides the compatibility analysis, write LinkedIn suggestions that raise the candidate's visibility for this specific role.
Never invent employers, roles, dates or qualifications that are not in the resume."""

USER_TEMPLATE = """Act as an ATS screening system and personal branding specialist.
Compare the resume with the job description and suggest LinkedIn optimizations.

JOB DESCRIPTION:
{jd}

RESUME:
{resume}"""


def _string(description: str) -> types.Schema:
    return types.Schema(type=types.Type.STRING, description=description)


def _string_list(description: str) -> types.Schema:
    return types.Schema(
        type=types.Type.ARRAY,
        items=types.Schema(type=types.Type.STRING),
        description=description,
    )


RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "score": types.Schema(
            type=types.Type.INTEGER,
            description="How well the candidate matches the job, from 0 to 100",
        ),
        "missingKeywords": _string_list(
            "Technical keywords present in the job description but NOT in the resume"
        ),
        "matchAnalysis": _string("Short analysis of the compatibility"),
        "recommendation": _string("Two-sentence summary with improvement advice"),
        "linkedin": types.Schema(
            type=types.Type.OBJECT,
            properties={
                "suggestedHeadline": _string(
                    "LinkedIn headline optimized with keywords from the job description"
                ),
                "suggestedAbout": _string("Suggested text for the LinkedIn 'About' section"),
                "topSkillsToAdd": _string_list("The 5 most important skills to list on LinkedIn"),
            },
            required=["suggestedHeadline", "suggestedAbout", "topSkillsToAdd"],
        ),
    },
    required=["score", "missingKeywords", "matchAnalysis", "recommendation", "linkedin"],
)


class Analyzer(Protocol):
    async def analyze(self, resume_text: str, job_description: str) -> AnalysisResult:
        ...


def build_prompt(resume_text: str, job_description: str) -> str:
    return USER_TEMPLATE.format(jd=job_description, resume=resume_text)


def build_config() -> types.GenerateContentConfig:
    return types.GenerateContentConfig(
        system_instruction=SYSTEM_INSTRUCTION,
        response_mime_type="application/json",
        response_schema=RESPONSE_SCHEMA,
    )


def parse_result(text: Optional[str]) -> AnalysisResult:
    if not text or not text.strip():
        raise EmptyResponseError("The model returned an empty response.")
    try:
        return AnalysisResult.model_validate_json(text)
    except ValidationError as e:
        logger.error("Analysis payload did not match the schema: %s | raw=%r", e, text[:500])
        raise FormatError("The analysis data came back in an unexpected format.") from e


class GeminiAnalyzer:
    """
    Sends one résumé/job-description pair to Gemini and returns the validated result.

    A single round trip per call: no streaming, no retries, no caching.
    The API key is looked up on every call, never at construction.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        client_factory: Callable[..., Any] = genai.Client,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self._client_factory = client_factory

    async def analyze(self, resume_text: str, job_description: str) -> AnalysisResult:
        api_key = get_api_key()
        if not api_key:
            raise ConfigurationError(
                f"No Gemini API key configured. Set {API_KEY_ENV} in the environment or in a .env file."
            )

        model = self.model or get_model_name()
        timeout = self.timeout if self.timeout is not None else get_timeout_seconds()

        client = self._client_factory(api_key=api_key)
        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=model,
                    contents=build_prompt(resume_text, job_description),
                    config=build_config(),
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Gemini call timed out after %.1fs", timeout)
            raise TransportError(f"The model did not answer within {timeout:.0f} seconds.") from e
        except genai_errors.APIError as e:
            logger.error("Gemini API error: code=%s message=%s", e.code, e.message)
            raise TransportError(f"Gemini API error: {e}") from e
        except httpx.HTTPError as e:
            logger.error("Gemini transport error: %s", e)
            raise TransportError(f"Could not reach Gemini: {e}") from e
        except Exception as e:
            # SDK-side failures (bad config, unexpected payloads) still surface as AnalysisError
            logger.exception("Unexpected error from the Gemini client")
            raise TransportError(f"Gemini request failed: {e}") from e
        finally:
            await _close_client(client)

        return parse_result(getattr(response, "text", None))


async def _close_client(client: Any) -> None:
    aclose = getattr(client.aio, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception:
        logger.warning("Failed to close the Gemini client", exc_info=True)
