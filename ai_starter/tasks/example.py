from pydantic import BaseModel, Field

from ai_starter.llm.prompts import EXAMPLE_SYSTEM
from ai_starter.tasks.base import Task
from ai_starter.tasks.registry import register


"""
Example task.

What it does:
- Takes a short free-text input and returns one result string
- Falls back to echoing the input when the model is unavailable
Main purpose:
Template to copy when adding a new task.
"""


class ExampleInput(BaseModel):
    input: str = Field(..., min_length=1, description="Free text to process")


class ExampleOutput(BaseModel):
    result: str = Field(..., description="Processed result")


def build_example_prompt(data: ExampleInput) -> str:
    return f"Process the following input and return the result.\n\nInput:\n{data.input}"


def example_fallback(data: ExampleInput) -> ExampleOutput:
    return ExampleOutput(result=f"Processed: {data.input}")


example_task = register(
    Task(
        name="example",
        input_schema=ExampleInput,
        output_schema=ExampleOutput,
        prompt=build_example_prompt,
        fallback=example_fallback,
        system=EXAMPLE_SYSTEM,
        description="Echo-style example task with an offline fallback.",
    )
)
