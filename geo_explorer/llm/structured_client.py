import json
import logging
import re
import time
from typing import Any, Dict, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from geo_explorer.config import (
    OPENAI_API_KEY,
    OPENAI_MODEL,
    OPENAI_TEMPERATURE,
    OPENAI_TIMEOUT_SECONDS,
)
from geo_explorer.exceptions import ConfigurationError, RequestFailed, SchemaMismatch, ValidationError
from geo_explorer.prompts.base_prompt import StructuredPromptTemplate

logger = logging.getLogger("geo_explorer.llm")


# JSON schema primitive type -> accepted Python types
_JSON_TYPES = {
    "string": (str,),
    "number": (int, float),
    "integer": (int,),
    "boolean": (bool,),
    "array": (list,),
    "object": (dict,),
}

_SCHEMA_NAME_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,64}$')


def check_schema_descriptor(schema: Dict[str, Any]) -> None:
    """
    Check that ``schema`` describes a JSON object with typed properties.

    Raises:
        ValueError: If the descriptor is not usable as an output schema
    """
    if not isinstance(schema, dict) or schema.get("type") != "object":
        raise ValueError("Output schema must describe a JSON object")

    properties = schema.get("properties")
    if not isinstance(properties, dict) or not properties:
        raise ValueError("Output schema must declare named properties")

    for name, field_schema in properties.items():
        if not isinstance(field_schema, dict) or field_schema.get("type") not in _JSON_TYPES:
            raise ValueError(f"Property '{name}' has no supported type")

    unknown = [name for name in schema.get("required", []) if name not in properties]
    if unknown:
        raise ValueError(f"Required fields not declared as properties: {unknown}")


def _matches_type(value: Any, type_name: str) -> bool:
    # bool is an int subclass in Python but not a JSON number
    if type_name in ("number", "integer") and isinstance(value, bool):
        return False
    if type_name == "integer" and isinstance(value, float):
        return value.is_integer()
    return isinstance(value, _JSON_TYPES[type_name])


def validate_structure(data: Any, schema: Dict[str, Any]) -> None:
    """
    Top-level structural validation of a parsed response.

    Required fields must be present and non-null; every present field must
    carry its declared primitive type. Nested contents are left to callers.

    Raises:
        SchemaMismatch: On the first structural violation found
    """
    if not isinstance(data, dict):
        raise SchemaMismatch(f"Expected a JSON object, got {type(data).__name__}")

    missing = [name for name in schema.get("required", []) if data.get(name) is None]
    if missing:
        raise SchemaMismatch(f"Response missing required fields: {missing}")

    for name, field_schema in schema["properties"].items():
        value = data.get(name)
        if value is None:
            continue
        if not _matches_type(value, field_schema["type"]):
            raise SchemaMismatch(
                f"Field '{name}' must be of type {field_schema['type']}, got {type(value).__name__}"
            )


def parse_json_response(text: str) -> Any:
    """
    Parse untrusted model output as JSON.

    Handles responses wrapped in markdown code fences.

    Raises:
        RequestFailed: If the text is not valid JSON
    """
    content = (text or "").strip()
    if content.startswith("```json"):
        content = content[7:]
    elif content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    content = content.strip()

    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning(f"Model response is not valid JSON: {e}")
        logger.debug(f"Raw response: {text}")
        raise RequestFailed(f"Model returned malformed JSON: {e}") from e


class StructuredQueryClient:
    """
    Sends a prompt plus an output schema to the chat model and returns
    structurally validated JSON.

    No retries and no caching; retry policy belongs to the caller.
    """

    def __init__(self, llm: Optional[Any] = None):
        if llm is None:
            if not OPENAI_API_KEY:
                raise ConfigurationError("OPENAI_API_KEY environment variable is not set")
            llm = ChatOpenAI(
                model=OPENAI_MODEL,
                temperature=OPENAI_TEMPERATURE,
                api_key=OPENAI_API_KEY,
                timeout=OPENAI_TIMEOUT_SECONDS,
            )
        self.llm = llm

    async def invoke(
        self,
        prompt: str,
        output_schema: Dict[str, Any],
        system_prompt: Optional[str] = None,
        schema_name: str = "structured_output",
    ) -> Dict[str, Any]:
        """
        Run one structured request.

        Args:
            prompt: User message for the model (must be non-empty)
            output_schema: JSON schema describing the expected object
            system_prompt: Optional system instructions
            schema_name: Name reported to the model for the schema

        Returns:
            Parsed JSON object whose top-level shape matches output_schema

        Raises:
            ValidationError: If the prompt is empty
            RequestFailed: If the call fails or returns unparseable text
            SchemaMismatch: If the parsed object lacks the declared structure
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt must be a non-empty string")
        check_schema_descriptor(output_schema)
        if not _SCHEMA_NAME_PATTERN.match(schema_name):
            raise ValueError(f"Invalid schema name: {schema_name!r}")

        messages = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))

        structured_llm = self.llm.bind(
            response_format={
                "type": "json_schema",
                "json_schema": {"name": schema_name, "schema": output_schema},
            }
        )

        logger.info(f"Structured request '{schema_name}' ({len(prompt)} chars)")
        start_time = time.time()

        try:
            response = await structured_llm.ainvoke(messages)
        except Exception as e:
            logger.error(f"Model request '{schema_name}' failed: {e}")
            raise RequestFailed(f"Model request failed: {e}") from e

        elapsed_ms = (time.time() - start_time) * 1000
        content = response.content if isinstance(response.content, str) else str(response.content)
        logger.info(f"Response for '{schema_name}' received ({len(content)} chars) in {elapsed_ms:.2f}ms")

        data = parse_json_response(content)
        validate_structure(data, output_schema)
        return data

    async def request(self, template: StructuredPromptTemplate, **kwargs):
        """
        Format ``template`` with ``kwargs``, run it and return its typed result.

        Raises:
            ValidationError, RequestFailed, SchemaMismatch
        """
        prompt = template.format_user_message(**kwargs)
        data = await self.invoke(
            prompt,
            template.OUTPUT_SCHEMA,
            system_prompt=template.get_system_prompt(),
            schema_name=template.SCHEMA_NAME,
        )
        return template.validate_response(data)


# Singleton instance
_structured_query_client = None


def get_structured_query_client() -> StructuredQueryClient:
    """Get the singleton structured query client."""
    global _structured_query_client
    if _structured_query_client is None:
        _structured_query_client = StructuredQueryClient()
    return _structured_query_client
