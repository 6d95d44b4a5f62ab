"""
API request and response schemas.
What it defines:
- Uniform success / error envelopes
- Input payloads for the generation endpoints

And, the main purpose:
Ensure structured communication between client and server.
"""


from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

class SuccessEnvelope(BaseModel):
    success: bool = True
    data: Any = None

class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str
    details: Optional[Any] = None  # development only
    timestamp: str

class MethodNotAllowedEnvelope(BaseModel):
    success: bool = False
    error: str = "Method not allowed"
    allowedMethods: List[str]

class GenerateTextRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    system: Optional[str] = None

class TaskRunOut(BaseModel):
    id: str
    task: str
    source: str
    input: Dict[str, Any]
    output: Dict[str, Any]
    at: str
