import json
import logging
import re
from typing import List, Optional
import httpx
from google import genai
from google.genai import types
from pydantic import ValidationError
from app.core.prompts import BiasPrompts
from app.schemas.analysis import BiasAnalysis, CategoryRubric, CategoryScore

logger = logging.getLogger(__name__)

THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)
FENCE_START = re.compile(r"^```(?:json)?[ \t]*\n?", re.IGNORECASE)
FENCE_END = re.compile(r"\n?[ \t]*```$")
JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

SENTENCE_TERMINATORS = ".!?"
# The sentence cut is only taken inside the last 20% of the window
SENTENCE_CUT_RATIO = 0.8


def clean_response_text(text: str) -> str:
    """Removes reasoning blocks and markdown fences around a model answer."""
    text = THINK_BLOCK.sub("", text).strip()
    text = FENCE_START.sub("", text)
    text = FENCE_END.sub("", text)
    return text.strip()


def extract_json_payload(text: str) -> Optional[dict]:
    """Decodes the JSON object in a raw model answer.

    Falls back to the widest {...} span when the cleaned answer still carries
    surrounding prose.

    Returns:
        Optional[dict]: The decoded object, None when nothing decodes to a dict.
    """
    cleaned = clean_response_text(text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError:
        match = JSON_OBJECT.search(cleaned)
        if not match:
            return None
        try:
            payload = json.loads(match.group(0))
        except json.JSONDecodeError:
            return None

    return payload if isinstance(payload, dict) else None


def parse_analysis(text: str, model: str) -> Optional[BiasAnalysis]:
    payload = extract_json_payload(text)
    if payload is None:
        logger.warning("No JSON object found in response from %s", model)
        return None

    raw_scores = payload.get("scores")
    if not isinstance(raw_scores, list):
        logger.warning("Response from %s has no scores list", model)
        return None

    # Entries are checked one by one so a single bad row keeps its siblings
    scores = []
    for entry in raw_scores:
        try:
            scores.append(CategoryScore.model_validate(entry))
        except ValidationError as e:
            logger.warning("Skipping malformed score from %s: %s", model, e)

    if not scores:
        logger.warning("Response from %s has no usable scores", model)
        return None

    summary = payload.get("summary")
    if summary is not None and not isinstance(summary, str):
        logger.warning("Ignoring non-text summary from %s", model)
        summary = None

    return BiasAnalysis(scores=scores, summary=summary, model=model)


def truncate_content(content: str, max_chars: int) -> str:
    """Cuts content down to max_chars characters.

    Prefers ending on a sentence terminator when one sits in the last 20% of
    the window, otherwise cuts hard at max_chars.
    """
    if len(content) <= max_chars:
        return content

    window = content[:max_chars]
    boundary = max(window.rfind(ch) for ch in SENTENCE_TERMINATORS)
    if boundary >= int(max_chars * SENTENCE_CUT_RATIO):
        return window[:boundary + 1]
    return window


class ModelAdapter:
    """One hosted model binding. score_article never raises."""

    name: str = "model"

    async def score_article(self, content: str, categories: List[CategoryRubric]) -> Optional[BiasAnalysis]:
        raise NotImplementedError


class GeminiAdapter(ModelAdapter):
    """Google Gemini, walking a list of fallback models until one answers."""

    def __init__(self, client: genai.Client, models: List[str], name: str = "gemini"):
        self.client = client
        self.models = list(models)
        self.name = name

    async def score_article(self, content: str, categories: List[CategoryRubric]) -> Optional[BiasAnalysis]:
        prompt = f"{BiasPrompts.GUIDELINES}\n{BiasPrompts.get_prompt(content, categories)}"

        for model in self.models:
            try:
                response = await self.client.aio.models.generate_content(
                    model=model,
                    contents=prompt,
                    config=types.GenerateContentConfig(temperature=0.0),
                )
            except Exception as e:
                logger.error(f"Gemini model {model} failed: {e}")
                continue

            text = getattr(response, "text", None)
            if not text or not text.strip():
                logger.warning(f"Gemini model {model} returned no text")
                continue

            # First model with text decides the outcome
            try:
                analysis = parse_analysis(text, model)
            except Exception as e:
                logger.error(f"Could not parse Gemini response from {model}: {e}")
                return None
            if analysis:
                logger.info(f"Gemini analysis succeeded with {model}: {len(analysis.scores)} scores")
            return analysis

        logger.error("All Gemini models failed")
        return None


class GroqAdapter(ModelAdapter):
    """A single Groq hosted model behind the OpenAI compatible chat API.

    These models have small context windows, so the article is truncated
    before it goes into the prompt.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        model: str,
        name: str,
        base_url: str = "https://api.groq.com/openai/v1",
        max_content_chars: int = 8000,
        timeout: Optional[float] = 60.0,
    ):
        self.client = client
        self.api_key = api_key
        self.model = model
        self.name = name
        self.base_url = base_url.rstrip("/")
        self.max_content_chars = max_content_chars
        self.timeout = timeout

    async def score_article(self, content: str, categories: List[CategoryRubric]) -> Optional[BiasAnalysis]:
        try:
            truncated = truncate_content(content, self.max_content_chars)
            if len(truncated) < len(content):
                logger.info(f"Truncated content for {self.model}: {len(content)} -> {len(truncated)} chars")

            payload = {
                "model": self.model,
                "messages": [
                    {"role": "system", "content": BiasPrompts.GUIDELINES},
                    {"role": "user", "content": BiasPrompts.get_prompt(truncated, categories)},
                ],
                "temperature": 0.0,
                "stream": False,
            }
            response = await self.client.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()

            data = response.json()
            text = data["choices"][0]["message"]["content"]
            if not text or not text.strip():
                logger.warning(f"Groq model {self.model} returned no text")
                return None

            analysis = parse_analysis(text, self.model)
            if analysis:
                logger.info(f"Groq analysis succeeded with {self.model}: {len(analysis.scores)} scores")
            return analysis

        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error {e.response.status_code} from {self.model}: {e}")
            return None
        except httpx.RequestError as e:
            logger.error(f"Network error calling {self.model}: {e}")
            return None
        except Exception as e:
            logger.error(f"Groq analysis error for {self.model}: {e}")
            return None
