"""
System default LLM config: prompt text, schemas and invocation values.

build_default_llm_config() is what the resolver seeds (or resurrects) when
the stored config list is empty or has lost its isSystem entry.
"""
import copy
import uuid
from typing import Any, Dict

from django.utils import timezone

from mathtutor_console.constants import (
    DEFAULT_CONFIG_VERSION,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_PROVIDER,
    DEFAULT_RESPONSE_MIME_TYPE,
    DEFAULT_TEMPERATURE,
    DEFAULT_THINKING_BUDGET,
)

SYSTEM_PROMPT_BASE = """You are an educational AI that diagnoses a student's \
state of math learning using Polya's four-step problem-solving approach \
(1. Understand the problem, 2. Devise a plan, 3. Carry out the plan, \
4. Look back).
Analyze the student's response together with the problem data and do the \
following:

### **Input data**
- **Problem**: {problem text, e.g. "Find the roots of x^2 - 5x + 6 = 0."}
- **Student response**: {answer, working, or question, e.g. "I don't know \
what a root is", "x = 2, 4", or "(x-2)(x-4) = 0"}
- **Context** (optional): {previous conversation, past error patterns}

### **Tasks**
1. **Diagnose the student**:
   - **Problem understanding**: did the student grasp what the problem asks? \
(low/medium/high)
   - **Concept knowledge**: understanding of the related concepts, e.g. \
quadratic equations, factoring (low/medium/high)
   - **Error pattern**: calculation error, logical error, concept confusion, \
approach error, or none
   - **Confidence level**: attitude shown in the answer (low: frustrated or \
hesitant, medium: neutral, high: confident)

2. **Recommend a Polya stage**:
   - Recommend the stage (1-4) that fits the diagnosis
   - Briefly explain why that stage is recommended

3. **Suggest the next question**:
   - A follow-up question or hint suited to the student's state (e.g. \
"Can you explain what a root is?", "Shall we check the calculation again?")
   - For stage 4 (Look back), instead summarize the key points of the \
problem and of the solution process the student should take away.

4. **Decide whether feedback is complete**:
   - Whether the student has received enough feedback (e.g. no further \
questions and the student appears to understand the problem)
   - Answer true or false

### **Output format**
{
  "diagnosis": {
    "problem_understanding": "low/medium/high",
    "concept_knowledge": "low/medium/high",
    "error_pattern": "none/calculation_error/logical_error/concept_confusion/approach_error",
    "confidence_level": "low/medium/high"
  },
  "recommended_stage": "1/2/3/4",
  "stage_reason": "why this stage is recommended",
  "next_question": "question or hint to suggest to the student",
  "feedback_completed": true/false
}"""

DEFAULT_INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "problem": {
            "type": "string",
            "description": (
                "Problem text (a short description for image problems)"
            ),
        },
        "explanation": {
            "type": "string",
            "description": "Official explanation text of the problem",
        },
        "userMessage": {
            "type": "string",
            "description": (
                "Latest student input (answer, question, working, etc.)"
            ),
        },
        "context": {
            "type": "string",
            "description": (
                "Summary of previous conversation, learning style, "
                "error patterns"
            ),
            "default": "",
        },
    },
    "required": ["userMessage"],
    "additionalProperties": False,
}

LEVELS = ("low", "medium", "high")
ERROR_PATTERNS = (
    "none",
    "calculation_error",
    "logical_error",
    "concept_confusion",
    "approach_error",
)
STAGES = ("1", "2", "3", "4")

DEFAULT_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "diagnosis": {
            "type": "OBJECT",
            "properties": {
                "problem_understanding": {
                    "type": "STRING", "enum": list(LEVELS),
                },
                "concept_knowledge": {"type": "STRING", "enum": list(LEVELS)},
                "error_pattern": {
                    "type": "STRING", "enum": list(ERROR_PATTERNS),
                },
                "confidence_level": {"type": "STRING", "enum": list(LEVELS)},
            },
            "required": [
                "problem_understanding",
                "concept_knowledge",
                "error_pattern",
                "confidence_level",
            ],
        },
        "recommended_stage": {"type": "STRING", "enum": list(STAGES)},
        "stage_reason": {"type": "STRING"},
        "next_question": {"type": "STRING"},
        "feedback_completed": {"type": "BOOLEAN"},
    },
    "required": [
        "diagnosis",
        "recommended_stage",
        "stage_reason",
        "next_question",
        "feedback_completed",
    ],
}

DEFAULT_CONFIG_NAME = "Default LLM config"
DEFAULT_CONFIG_DESCRIPTION = "Gemini API call"


def new_id() -> str:
    return uuid.uuid4().hex


def now_timestamp() -> str:
    """Current time as timezone-aware ISO-8601 string."""
    return timezone.now().isoformat()


def default_input_schema() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_INPUT_SCHEMA)


def default_response_schema() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_RESPONSE_SCHEMA)


def build_default_llm_config() -> Dict[str, Any]:
    """
    Build a fresh system default config (new id and timestamps).
    Always isActive and isSystem.
    """
    now = now_timestamp()
    return {
        "id": new_id(),
        "name": DEFAULT_CONFIG_NAME,
        "description": DEFAULT_CONFIG_DESCRIPTION,
        "version": DEFAULT_CONFIG_VERSION,
        "systemPrompt": SYSTEM_PROMPT_BASE,
        "userPrompt": "",
        "inputSchema": default_input_schema(),
        "outputSchema": default_response_schema(),
        "responseMimeType": DEFAULT_RESPONSE_MIME_TYPE,
        "provider": DEFAULT_PROVIDER,
        "model": DEFAULT_MODEL,
        "temperature": DEFAULT_TEMPERATURE,
        "maxOutputTokens": DEFAULT_MAX_OUTPUT_TOKENS,
        "thinkingBudget": DEFAULT_THINKING_BUDGET,
        "createdAt": now,
        "updatedAt": now,
        "isActive": True,
        "isSystem": True,
    }
