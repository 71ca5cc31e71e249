from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from openai import APIError, AuthenticationError, OpenAIError, RateLimitError
from pydantic import ValidationError
import json
from loguru import logger

from ..schemas import GenerateRequest
from ..services.llm import llm
from ..services.parse import strip_code_fences
from ..settings import settings

router = APIRouter()

def build_prompt(topic: str, n: int) -> list[dict]:
    sys = (
        "You are a quiz expert. Return only a JSON array, no Markdown and no extra text. "
        "Schema: [{\"id\":\"<uuid4>\",\"content\":\"...\",\"options\":["
        "{\"id\":\"<uuid4>\",\"content\":\"...\",\"is_correct\":false}]}]."
    )
    user = (
        f"Write {n} single-choice questions about \"{topic}\".\n"
        "Rules:\n"
        "1. Every question has exactly 4 options.\n"
        "2. Exactly one option is correct and its position among the 4 must be random.\n"
        "3. Every question and option id is a fresh random UUID."
    )
    return [
        {"role": "system", "content": sys},
        {"role": "user", "content": user},
    ]

def extract_question_array(raw: str) -> list:
    """Validate model output is a JSON array of questions; unwraps {"questions": [...]}."""
    data = json.loads(strip_code_fences(raw))
    if isinstance(data, dict) and isinstance(data.get("questions"), list):
        data = data["questions"]
    if not isinstance(data, list):
        raise ValueError("AI response is not a JSON array")
    return data

def _error(msg: str) -> JSONResponse:
    return JSONResponse({"error": msg}, status_code=400)

@router.post("/generate-quiz")
async def generate_quiz(request: Request):
    try:
        req = GenerateRequest.model_validate(await request.json())
    except (ValidationError, ValueError) as e:
        logger.warning(f"[generate] bad request body: {e}")
        return _error("Request body must be {\"topic\": string, \"numberOfQuestions\": integer}")

    n = max(1, min(req.numberOfQuestions, settings.MAX_QUESTIONS))
    logger.info(f"[generate] topic={req.topic!r} n={n}")

    try:
        raw = await llm(build_prompt(req.topic, n), mock_count=n)
        questions = extract_question_array(raw or "")
    except AuthenticationError:
        return _error("OpenAI auth failed.")
    except RateLimitError:
        return _error("OpenAI quota/rate limit exceeded.")
    except APIError as e:
        return _error(f"OpenAI API error: {getattr(e, 'message', str(e))}")
    except OpenAIError as e:
        # e.g. no API key configured
        logger.error(f"[generate] OpenAI client error: {e}")
        return _error(f"OpenAI client error: {e}")
    except (ValueError, RecursionError) as e:
        # JSONDecodeError is a ValueError; deep nesting raises RecursionError
        logger.warning(f"[generate] unusable model output: {e}")
        return _error(str(e))
    except Exception as e:
        logger.exception(f"[generate] unexpected failure: {e}")
        return _error(f"Server error: {str(e)}")

    logger.info(f"[generate] returning {len(questions)} questions")
    return JSONResponse(questions)
