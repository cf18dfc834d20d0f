"""
Tool definitions for LLM function calling.

There is one logical tool, `generate_final_prompt`. Its parameter schema is
declared once below and serialized into each vendor's dialect, so the two
representations always describe the same contract.
"""
from copy import deepcopy
from typing import Any, Dict, List

GENERATE_FINAL_PROMPT = "generate_final_prompt"

TOOL_DESCRIPTION = (
    "Call this function when you have gathered enough information to create a "
    "comprehensive application prompt. Only call this when you are confident you "
    "understand the project requirements."
)

REQUIREMENTS_PROPERTIES: Dict[str, Dict[str, Any]] = {
    "purpose": {
        "type": "string",
        "description": "Clear description of what the application does and why it exists",
    },
    "targetUsers": {
        "type": "string",
        "description": "Who will use the application and their key needs or characteristics",
    },
    "features": {
        "type": "array",
        "items": {"type": "string"},
        "description": "List of key features and functionality the application should have",
    },
    "dataModel": {
        "type": "string",
        "description": "What types of data the application manages and their relationships",
    },
    "persistence": {
        "type": "string",
        "description": "How and where data should be stored (database, sessions, external APIs, etc.)",
    },
    "userFlows": {
        "type": "string",
        "description": "Main user journeys and how users will interact with the application",
    },
    "security": {
        "type": "string",
        "description": (
            'Authentication and authorization requirements (e.g., "public", '
            '"user login required", "role-based access")'
        ),
    },
    "constraints": {
        "type": "string",
        "description": "Technical requirements, preferences, or constraints (frameworks, deployment, APIs, etc.)",
    },
}

REQUIRED_FIELDS: List[str] = list(REQUIREMENTS_PROPERTIES)


def _parameters_schema() -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": deepcopy(REQUIREMENTS_PROPERTIES),
        "required": list(REQUIRED_FIELDS),
    }


def openai_tool_definitions() -> List[Dict[str, Any]]:
    """`tools` array for the Chat Completions API."""
    return [
        {
            "type": "function",
            "function": {
                "name": GENERATE_FINAL_PROMPT,
                "description": TOOL_DESCRIPTION,
                "parameters": _parameters_schema(),
            },
        }
    ]


def anthropic_tool_definitions() -> List[Dict[str, Any]]:
    """`tools` array for the Messages API."""
    return [
        {
            "name": GENERATE_FINAL_PROMPT,
            "description": TOOL_DESCRIPTION,
            "input_schema": _parameters_schema(),
        }
    ]


def get_tool_definitions() -> Dict[str, List[Dict[str, Any]]]:
    """Returns fresh copies of both wire representations, keyed by provider name."""
    return {
        "openai": openai_tool_definitions(),
        "anthropic": anthropic_tool_definitions(),
    }
