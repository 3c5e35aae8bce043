from __future__ import annotations

from typing import Protocol

from interview_flow.ai_reasoning.llm import call_llm


class TextGenerator(Protocol):
    async def generate(self, prompt: str) -> str:
        ...


class LLMTextGenerator:
    """Text-generation collaborator backed by the OpenAI chat client."""

    def __init__(self, system_prompt: str | None = None):
        self.system_prompt = system_prompt

    async def generate(self, prompt: str) -> str:
        if self.system_prompt:
            return await call_llm(prompt, system_prompt=self.system_prompt)
        return await call_llm(prompt)
