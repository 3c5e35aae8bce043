import asyncio
import logging

from openai import AsyncOpenAI

from interview_flow.core.config import (
    LLM_RETRIES,
    LLM_TEMPERATURE,
    LLM_TIMEOUT_SEC,
    MODEL_NAME,
    OPENAI_API_KEY,
)

logger = logging.getLogger("interview_flow.ai_reasoning.llm")

client = AsyncOpenAI(api_key=OPENAI_API_KEY)

DEFAULT_SYSTEM_PROMPT = "You are an expert technical interviewer. Follow the output format exactly."
RETRY_BACKOFF_SEC = 0.35


def _messages(prompt: str, system_prompt: str) -> list[dict]:
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": prompt},
    ]


async def _complete_once(prompt: str, system_prompt: str, timeout_sec: float) -> str:
    response = await asyncio.wait_for(
        client.chat.completions.create(
            model=MODEL_NAME,
            messages=_messages(prompt, system_prompt),
            temperature=LLM_TEMPERATURE,
        ),
        timeout=timeout_sec,
    )
    return str(response.choices[0].message.content or "").strip()


async def call_llm(
    prompt: str,
    system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    timeout_sec: float = LLM_TIMEOUT_SEC,
    retries: int = LLM_RETRIES,
) -> str:
    """
    Sends prompt to the chat model and returns the raw text.
    Returns "" when every attempt fails; callers own the fallback.
    """
    if not str(prompt or "").strip():
        return ""

    attempts = max(1, retries + 1)
    last_error: Exception | None = None
    for attempt in range(1, attempts + 1):
        try:
            return await _complete_once(prompt, system_prompt, timeout_sec)
        except asyncio.TimeoutError as exc:
            last_error = exc
            logger.warning("call_llm timeout | attempt=%s/%s", attempt, attempts)
        except Exception as exc:
            last_error = exc
            logger.warning("call_llm failure | attempt=%s/%s err=%s", attempt, attempts, exc)

        if attempt < attempts:
            await asyncio.sleep(RETRY_BACKOFF_SEC * attempt)

    logger.warning("call_llm giving up | err=%s", last_error)
    return ""
