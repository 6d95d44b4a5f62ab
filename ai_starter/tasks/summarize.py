import re
from typing import List

from pydantic import BaseModel, Field

from ai_starter.llm.prompts import SUMMARIZE_SYSTEM
from ai_starter.tasks.base import Task
from ai_starter.tasks.registry import register


"""
Summarize task.

What it does:
- Summarizes a block of text into a few sentences plus key points
- Offline fallback keeps the leading sentences (extractive)
"""

_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


class SummarizeInput(BaseModel):
    text: str = Field(..., min_length=1, max_length=50_000)
    max_sentences: int = Field(3, ge=1, le=10)


class SummarizeOutput(BaseModel):
    summary: str = Field(..., min_length=1)
    key_points: List[str] = []


def _sentences(text: str) -> List[str]:
    return [s.strip() for s in _SENTENCE_END.split(" ".join(text.split())) if s.strip()]


def build_summarize_prompt(data: SummarizeInput) -> str:
    return (
        f"Summarize the text below in at most {data.max_sentences} sentence(s) "
        f"and list up to 5 key points.\n\nTEXT:\n{data.text}"
    )


def summarize_fallback(data: SummarizeInput) -> SummarizeOutput:
    sentences = _sentences(data.text)
    if not sentences:
        # whitespace-only input still passes min_length
        return SummarizeOutput(summary=data.text, key_points=[])
    lead = sentences[: data.max_sentences]
    return SummarizeOutput(
        summary=" ".join(lead),
        key_points=[s.rstrip(".!?")[:80] for s in lead],
    )


summarize_task = register(
    Task(
        name="summarize",
        input_schema=SummarizeInput,
        output_schema=SummarizeOutput,
        prompt=build_summarize_prompt,
        fallback=summarize_fallback,
        system=SUMMARIZE_SYSTEM,
        description="Short summary plus key points; extractive fallback.",
    )
)
