import asyncio, json, uuid
from openai import OpenAI
from ..settings import settings

_client: OpenAI | None = None

def openai_client() -> OpenAI:
    global _client
    if _client is None:
        _client = OpenAI(api_key=settings.OPENAI_API_KEY)
    return _client

def _mock_quiz(n: int) -> str:
    out = []
    for i in range(n):
        out.append({
            "id": str(uuid.uuid4()),
            "content": f"Mock question {i + 1}: which layer handles routing on the Internet?",
            "options": [
                {"id": str(uuid.uuid4()), "content": c, "is_correct": c == "Network"}
                for c in ("Physical", "Data Link", "Network", "Transport")
            ],
        })
    return "```json\n" + json.dumps(out, ensure_ascii=False) + "\n```"

def _llm_sync(messages, *, max_tokens=2000, temperature=0.7, mock_count=2):
    if settings.MOCK_MODE:
        return _mock_quiz(mock_count)
    resp = openai_client().chat.completions.create(
        model=settings.OPENAI_MODEL,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
    )
    return resp.choices[0].message.content

async def llm(messages, **kw):
    return await asyncio.to_thread(_llm_sync, messages, **kw)
