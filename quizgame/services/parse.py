import json, re, uuid
from typing import Any, Optional
from loguru import logger
from ..errors import GenerationError
from ..schemas import AIOption, AIQuestion, Question

_FENCE = re.compile(r"```(json|JSON)?|```")

def strip_code_fences(s: str) -> str:
    return _FENCE.sub("", s or "").strip()

def _as_uuid(val: Any) -> Optional[uuid.UUID]:
    if not isinstance(val, str):
        return None
    try:
        return uuid.UUID(val)
    except ValueError:
        return None

def normalize_is_correct(val: Any) -> bool:
    """Models send true/false, 0/1 or a float; anything else counts as wrong."""
    if isinstance(val, bool):
        return val
    if isinstance(val, int):
        return val == 1
    if isinstance(val, float):
        return val != 0
    return False

def _parse_option(raw: Any) -> Optional[AIOption]:
    if not isinstance(raw, dict):
        return None
    opt_id = _as_uuid(raw.get("id"))
    content = raw.get("content")
    if opt_id is None or not isinstance(content, str) or "is_correct" not in raw:
        return None
    return AIOption(id=opt_id, content=content, is_correct=normalize_is_correct(raw["is_correct"]))

def _parse_question(raw: Any) -> Optional[AIQuestion]:
    if not isinstance(raw, dict):
        return None
    q_id = _as_uuid(raw.get("id"))
    content = raw.get("content")
    options = raw.get("options")
    if q_id is None or not isinstance(content, str) or not isinstance(options, list):
        return None

    parsed = []
    for opt in options:
        o = _parse_option(opt)
        if o is None:
            logger.warning(f"[parse] dropping option in question {q_id}: {opt!r}")
            continue
        parsed.append(o)
    return AIQuestion(id=q_id, content=content, options=parsed)

def parse_ai_questions(s: str) -> list[Question]:
    """
    Turn raw model output into Questions.

    Broken entries are skipped one by one; the batch only fails when the text
    is not a JSON array at all or nothing in it survives.
    """
    try:
        data = json.loads(strip_code_fences(s))
    except (ValueError, RecursionError):
        # JSONDecodeError, oversized int literals, pathological nesting
        raise GenerationError("malformed JSON")

    if isinstance(data, dict) and isinstance(data.get("error"), str):
        raise GenerationError(data["error"])
    if not isinstance(data, list):
        raise GenerationError("malformed JSON")

    questions: list[Question] = []
    for idx, item in enumerate(data):
        q = _parse_question(item)
        if q is None:
            logger.warning(f"[parse] question #{idx} is missing id/content/options, skipped")
            continue
        questions.append(q.to_question())

    if not questions:
        raise GenerationError("no usable questions")
    logger.info(f"[parse] kept {len(questions)}/{len(data)} questions")
    return questions
