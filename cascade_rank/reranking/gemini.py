"""
Gemini relevance judge using Google GenAI SDK.

Uses a Gemini model to rate how well one document answers a query, returning
a score in [0, 1] and a short explanation. One API call per document; the
LLMRanker decides how many run at once.
"""

import asyncio
import json
import logging
import math
import os
from typing import Optional

from google import genai
from google.genai import types

from ..errors import JudgeResponseError
from .llm import Judgement, RelevanceJudge

logger = logging.getLogger(__name__)

# Retry configuration (similar to ADK HttpRetryOptions)
MAX_RETRY_ATTEMPTS = 3
RETRY_INITIAL_DELAY = 1.0  # seconds
RETRY_EXP_BASE = 2.0  # exponential backoff multiplier
RETRY_STATUS_CODES = {429, 500, 503, 504}  # Rate limit, server errors


class GeminiJudge(RelevanceJudge):
    """
    Relevance judge backed by Gemini models (Vertex AI).

    Malformed replies raise JudgeResponseError; transport errors are retried
    when retriable, then raised. LLMRanker turns both into a 0.0 score.
    """

    RELEVANCE_PROMPT_TEMPLATE = """You are an expert at evaluating document relevance. Your task is to determine how relevant a document is for answering a specific query.

Query: {query}
Document: {document}

Analyze the document and determine its relevance to the query. Consider:
1. How directly the document answers the query
2. The quality and specificity of the information provided
3. The semantic relationship between the query and document content

Respond with ONLY a JSON object in this exact format (no other text):
{{"relevance_score": <number between 0.0 and 1.0>, "explanation": "<brief explanation of the relevance score>"}}

The relevance_score should be:
- 0.0-0.2: Not relevant or completely off-topic
- 0.2-0.4: Somewhat relevant but lacks specificity
- 0.4-0.6: Moderately relevant with some useful information
- 0.6-0.8: Highly relevant with good information
- 0.8-1.0: Extremely relevant and directly answers the query"""

    def __init__(
        self,
        model_name: str = "gemini-2.5-flash",
        project_id: Optional[str] = None,
        location: str = "us-central1",
        temperature: float = 0.0,
        client=None,
    ):
        """
        Initialize Gemini judge.

        Args:
            model_name: Gemini model to use
            project_id: GCP project ID (reads GOOGLE_CLOUD_PROJECT env if not provided)
            location: GCP region (default: us-central1)
            temperature: Model temperature (0.0 = deterministic)
            client: Pre-built genai.Client (skips client creation)
        """
        self.model_name = model_name
        self.project_id = project_id or os.getenv("GOOGLE_CLOUD_PROJECT") or os.getenv("GCP_PROJECT_ID")
        self.location = location
        self.temperature = temperature

        if client is not None:
            self.client = client
            return

        if not self.project_id:
            raise ValueError(
                "GCP project ID required. Set GOOGLE_CLOUD_PROJECT env var or pass project_id parameter."
            )

        try:
            self.client = genai.Client(
                vertexai=True,
                project=self.project_id,
                location=self.location
            )
            logger.info(
                f"Gemini judge initialized: {model_name} "
                f"(project={self.project_id}, location={self.location})"
            )
        except Exception as e:
            logger.error(f"Failed to initialize Gemini client: {e}")
            raise

    def _generate(self, prompt: str) -> str:
        """Blocking Gemini call; run through asyncio.to_thread."""
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=self.temperature,
                max_output_tokens=512,  # One score + one-sentence explanation
                response_mime_type="application/json"  # Force JSON output
            )
        )
        return response.text or ""

    @staticmethod
    def parse_response(text: str) -> Judgement:
        """
        Parse the judge's JSON reply.

        Raises:
            JudgeResponseError: Not JSON, not an object, or no numeric relevance_score
        """
        try:
            result = json.loads(text.strip())
        except (json.JSONDecodeError, AttributeError) as e:
            raise JudgeResponseError(f"Gemini response is not valid JSON: {e}") from e

        # Some replies wrap the object in a one-element array
        if isinstance(result, list) and len(result) == 1:
            result = result[0]
        if not isinstance(result, dict):
            raise JudgeResponseError(f"Expected JSON object, got: {type(result).__name__}")

        raw_score = result.get("relevance_score")
        if isinstance(raw_score, bool) or not isinstance(raw_score, (int, float, str)):
            raise JudgeResponseError(f"Missing or invalid relevance_score: {raw_score!r}")
        try:
            score = float(raw_score)
        except ValueError as e:
            raise JudgeResponseError(f"Non-numeric relevance_score: {raw_score!r}") from e
        if math.isnan(score):
            raise JudgeResponseError("relevance_score is NaN")

        if not (0.0 <= score <= 1.0):
            logger.warning(f"Invalid score {score}, clamping")
            score = max(0.0, min(1.0, score))

        explanation = result.get("explanation", "")
        if not isinstance(explanation, str):
            explanation = str(explanation)

        return Judgement(score=score, explanation=explanation)

    async def judge(self, query: str, document: str) -> Judgement:
        prompt = self.RELEVANCE_PROMPT_TEMPLATE.format(query=query, document=document)

        last_error = None
        for attempt in range(MAX_RETRY_ATTEMPTS):
            try:
                text = await asyncio.to_thread(self._generate, prompt)
                logger.debug(f"Gemini raw response (first 200 chars): {text[:200]}")
                return self.parse_response(text)

            except JudgeResponseError:
                raise

            except Exception as e:
                last_error = e
                error_code = getattr(e, 'code', None) or getattr(e, 'status_code', None)
                if error_code not in RETRY_STATUS_CODES:
                    logger.error(f"Gemini API error (code {error_code}), not retrying: {e}")
                    raise

                if attempt < MAX_RETRY_ATTEMPTS - 1:
                    delay = RETRY_INITIAL_DELAY * (RETRY_EXP_BASE ** attempt)
                    logger.warning(
                        f"Attempt {attempt + 1}/{MAX_RETRY_ATTEMPTS}: Gemini API error {error_code}, "
                        f"retrying in {delay:.1f}s..."
                    )
                    await asyncio.sleep(delay)

        logger.error(f"Gemini judge failed after {MAX_RETRY_ATTEMPTS} attempts: {last_error}")
        raise last_error

    def get_model_info(self) -> dict:
        """Get information about the Gemini judge."""
        return {
            "name": self.model_name,
            "type": "gemini-llm",
            "provider": "Google Vertex AI",
            "project": self.project_id,
            "location": self.location,
            "temperature": self.temperature,
        }

    def close(self):
        """Cleanup (Gemini client doesn't require explicit cleanup)."""
        logger.info("Gemini judge closed")
