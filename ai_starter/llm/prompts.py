STRUCTURED_OUTPUT_SYSTEM = """You produce structured data for an internal tool.

Return ONLY a single valid JSON object matching exactly this JSON Schema:
{schema}

Rules:
- No markdown, no code fences, no commentary.
- Every required property MUST be present with the declared type.
- Do not add properties the schema does not declare.
"""


REPAIR_SYSTEM = "You are a strict JSON formatter. Return ONLY a valid JSON object."

REPAIR_USER = """The following reply was supposed to be a JSON object matching this JSON Schema:
{schema}

Problem: {problem}

Reply:
{reply}

Fix it and return ONLY the corrected JSON object."""


EXAMPLE_SYSTEM = """You are a helpful assistant inside an internal tool.
Process the user's input and answer briefly. Keep the user's own wording where it matters."""


SUMMARIZE_SYSTEM = """You summarize text for busy colleagues.

Rules:
- Stay faithful to the source; never invent facts.
- The summary MUST be plain prose, at most the requested number of sentences.
- key_points are short phrases (under 12 words each), most important first.
"""
