"""
Typed AI task contract.
What it defines:
- Input / output schemas for one unit of AI work
- A pure prompt builder
- An optional offline fallback (explicit per-task policy)

And, the main purpose:
Reusable units of AI work that any route can call, where a model failure
either degrades to the fallback or surfaces as a GenerationError.
"""


from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ai_starter.core.errors import GenerationError, ValidationError
from ai_starter.core.logging import get_logger
from ai_starter.llm.provider import LLMClient

log = get_logger("tasks")

InT = TypeVar("InT", bound=BaseModel)
OutT = TypeVar("OutT", bound=BaseModel)

SOURCE_MODEL = "model"
SOURCE_FALLBACK = "fallback"


@dataclass(frozen=True)
class TaskResult(Generic[OutT]):
    output: OutT
    source: str  # model | fallback


@dataclass(frozen=True)
class Task(Generic[InT, OutT]):
    name: str
    input_schema: Type[InT]
    output_schema: Type[OutT]
    prompt: Callable[[InT], str]
    fallback: Optional[Callable[[InT], Any]] = None
    system: Optional[str] = None
    description: str = ""

    def validate_input(self, raw: Any) -> InT:
        if isinstance(raw, self.input_schema):
            return raw
        try:
            return self.input_schema.model_validate(raw)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e, raw) from e

    def build_prompt(self, data: InT) -> str:
        return self.prompt(data)

    def run_fallback(self, data: InT) -> OutT:
        if self.fallback is None:
            raise GenerationError(f"Task '{self.name}' has no fallback")
        try:
            return self.output_schema.model_validate(self.fallback(data))
        except PydanticValidationError as e:
            # a fallback that breaks its own output schema is a bug in the task
            raise GenerationError(f"Fallback for task '{self.name}' produced invalid output: {e}") from e

    async def execute(self, data: InT, client: LLMClient) -> TaskResult[OutT]:
        prompt = self.build_prompt(data)
        try:
            raw = await client.generate_object(self.output_schema, prompt, self.system)
            output = self.output_schema.model_validate(raw)
        except Exception as e:
            if self.fallback is None:
                raise GenerationError(f"Task '{self.name}' generation failed: {e}") from e
            log.warning(f"Task '{self.name}' generation failed ({type(e).__name__}: {e}); using fallback")
            return TaskResult(output=self.run_fallback(data), source=SOURCE_FALLBACK)
        return TaskResult(output=output, source=SOURCE_MODEL)

    async def invoke(self, data: InT, client: LLMClient) -> OutT:
        result = await self.execute(data, client)
        return result.output

    def describe(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "has_fallback": self.fallback is not None,
            "input_schema": self.input_schema.model_json_schema(),
            "output_schema": self.output_schema.model_json_schema(),
        }
