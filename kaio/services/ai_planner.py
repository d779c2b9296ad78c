"""AI-powered plan generation with multiple provider support."""

import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Optional, Any

import httpx
from pydantic import ValidationError

from kaio.config import get_settings
from kaio.errors import (
    ConfigurationError,
    TransportError,
    MalformedResponseError,
    SchemaValidationError,
)
from kaio.models.plan import DailyPlan, WeeklyPlanResponse

logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are Kaio, an expert AI life coach specializing in fitness, nutrition, and "
    "lifestyle optimization. You always respond with valid JSON only, no markdown or code blocks."
)

DAILY_PLAN_FORMAT = """{
  "wake_time": "6:00 AM",
  "hydration": "3 liters",
  "meals": [
    {"name": "Breakfast", "calories": 500, "protein": 30, "details": "Specific meal details"}
  ],
  "workout": "Push Day:\\n- Bench Press: 4 sets x 8 reps\\n- Incline Dumbbell Press: 3 sets x 10 reps",
  "checklist": ["Item 1", "Item 2", "Item 3"],
  "beard_care": "Optional beard care routine",
  "lifestyle_tips": ["Tip 1", "Tip 2"]
}"""

_FENCE = re.compile(r"```(?:json)?\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences anywhere in a JSON payload."""
    return _FENCE.sub("", text).strip()


def parse_payload(raw: Any) -> Any:
    """Decode the provider's text into JSON data."""
    if raw is None:
        raw = ""
    if not isinstance(raw, str):
        raise MalformedResponseError(f"expected text from the plan service, got {type(raw).__name__}")
    text = strip_code_fences(raw)
    if not text:
        raise MalformedResponseError("No content received from the plan service")
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.error("JSON parse error: %s; payload starts with %r", e, text[:500])
        raise MalformedResponseError(f"invalid JSON: {e}") from e


class AIProvider(ABC):
    """Abstract base class for AI providers."""

    @abstractmethod
    async def complete(self, system_prompt: str, prompt: str) -> str:
        """Return the raw text of the model's answer."""
        pass


class OpenRouterProvider(AIProvider):
    """OpenRouter chat completions provider."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.api_key = settings.openrouter_api_key if api_key is None else api_key
        self.url = url or settings.openrouter_url
        self.model = model or settings.openrouter_model
        self.timeout = timeout or settings.generation_timeout
        self.transport = transport

    async def complete(self, system_prompt: str, prompt: str) -> str:
        if not self.api_key:
            logger.error("OPENROUTER_API_KEY is not set")
            raise ConfigurationError("OPENROUTER_API_KEY is not set")

        logger.info("Calling OpenRouter with model %s", self.model)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.url,
                    headers={
                        "Authorization": f"Bearer {self.api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "model": self.model,
                        "messages": [
                            {"role": "system", "content": system_prompt},
                            {"role": "user", "content": prompt},
                        ],
                    },
                )
        except httpx.TimeoutException as e:
            raise TransportError(f"request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"request failed: {e}") from e

        if not response.is_success:
            logger.error("OpenRouter API error: %s %s", response.status_code, response.text)
            raise TransportError(
                f"OpenRouter returned {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError("response body is not JSON") from e

        if not isinstance(data, dict):
            raise MalformedResponseError("response body is not a JSON object")
        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content")
        if not content:
            logger.error("No content in response: %s", json.dumps(data)[:500])
            raise MalformedResponseError("No content received from OpenRouter")
        return content


class OllamaProvider(AIProvider):
    """Ollama (local LLM) provider."""

    def __init__(
        self,
        host: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.host = host or settings.ollama_host
        self.model = model or settings.ollama_model
        self.timeout = timeout or settings.generation_timeout
        self.transport = transport

    async def complete(self, system_prompt: str, prompt: str) -> str:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.host}/api/generate",
                    json={
                        "model": self.model,
                        "system": system_prompt,
                        "prompt": prompt,
                        "stream": False,
                        "format": "json",
                    },
                )
        except httpx.TimeoutException as e:
            raise TransportError(f"request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"request failed: {e}") from e

        if not response.is_success:
            raise TransportError(
                f"Ollama returned {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponseError("response body is not JSON") from e
        if not isinstance(data, dict):
            raise MalformedResponseError("response body is not a JSON object")
        return data.get("response", "")


def build_daily_prompt(goals: str) -> str:
    return f"""Based on the following user goals, create a comprehensive, personalized daily plan:

{goals}

Generate a detailed daily plan that includes:
1. Optimal wake time based on their schedule
2. Daily hydration goal (in liters or ounces)
3. 3-5 meals with specific details, calories, and protein content that align with their goals
4. A workout plan for today (exercises, sets and reps, or rest day activities)
5. A daily checklist of 5-8 actionable items to complete today
6. Beard care routine if mentioned in goals (optional)
7. 3-5 lifestyle tips relevant to their goals (optional)

Return ONLY a valid JSON object with this exact structure:
{DAILY_PLAN_FORMAT}

The "workout" field MUST be a single string with line breaks (\\n), NOT an object or array."""


def build_weekly_prompt(goals: str, user_notes: Optional[str] = None) -> str:
    notes = ""
    if user_notes:
        notes = f"\n\nADDITIONAL NOTES/GOALS:\n{user_notes}\n\nIncorporate these notes into the plan."

    return f"""Based on the following user information, create a comprehensive, personalized WEEKLY plan (Monday through Sunday):

{goals}{notes}

For EACH DAY include a wake time, a hydration goal, 3-5 meals with calories and protein,
a workout (or rest day activities), a checklist of 5-8 actionable items, an optional beard
care routine and 3-5 optional lifestyle tips. Vary meals and workout focus across the week.

Additionally, generate a grocery list with ALL ingredients needed for the entire week,
each with a lowercase category such as produce, protein, dairy, grains or other.

Return ONLY a valid JSON object with this structure:
{{
  "Monday": {DAILY_PLAN_FORMAT},
  "Tuesday": {{ ... }},
  "Wednesday": {{ ... }},
  "Thursday": {{ ... }},
  "Friday": {{ ... }},
  "Saturday": {{ ... }},
  "Sunday": {{ ... }},
  "groceryList": [{{"name": "Chicken breast", "category": "protein"}}]
}}

The "workout" field MUST be a single string with line breaks (\\n), NOT an object or array."""


class AIPlanner:
    """Main AI planner that uses configured provider."""

    def __init__(self, provider: Optional[AIProvider] = None, timeout: Optional[float] = None):
        settings = get_settings()
        self.timeout = timeout or settings.generation_timeout

        if provider is not None:
            self.provider = provider
        elif settings.ai_provider == "ollama":
            self.provider = OllamaProvider()
        else:
            self.provider = OpenRouterProvider()

    async def _request(self, prompt: str) -> Any:
        try:
            raw = await asyncio.wait_for(
                self.provider.complete(SYSTEM_PROMPT, prompt), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise TransportError(f"generation timed out after {self.timeout}s") from e
        logger.info("Plan service answered with %d characters", len(raw or ""))
        return parse_payload(raw)

    async def generate_daily_plan(self, goals: str) -> DailyPlan:
        """Generate a single day's plan."""
        data = await self._request(build_daily_prompt(goals))
        try:
            plan = DailyPlan.model_validate(data)
        except ValidationError as e:
            logger.error("Daily plan failed validation: %s", e)
            raise SchemaValidationError("daily plan failed validation", errors=e.errors()) from e
        logger.info("Daily plan generated and validated")
        return plan

    async def generate_weekly_plan(self, goals: str, user_notes: Optional[str] = None) -> WeeklyPlanResponse:
        """Generate seven daily plans and a grocery list."""
        data = await self._request(build_weekly_prompt(goals, user_notes))
        try:
            plan = WeeklyPlanResponse.model_validate(data)
        except ValidationError as e:
            logger.error("Weekly plan failed validation: %s", e)
            raise SchemaValidationError("weekly plan failed validation", errors=e.errors()) from e
        logger.info("Weekly plan generated and validated")
        return plan
