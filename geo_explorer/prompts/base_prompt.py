import logging
import re
import unicodedata
from abc import ABC, abstractmethod
from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from geo_explorer.exceptions import SchemaMismatch, ValidationError

logger = logging.getLogger(__name__)


class StructuredPromptTemplate(ABC):
    """
    Abstract base class for structured geographic prompt templates.

    A template bundles everything one kind of model request needs:
    - the system instructions (TEMPLATE)
    - the JSON output schema handed to the model (OUTPUT_SCHEMA)
    - sanitization and delimited placement of user input
    - response checks beyond the client's top-level structural validation

    User input is never interpolated directly into instructions. Subclasses
    place it with build_user_section():

        def _format_message(self, place_name: str) -> str:
            return "Locate this place:\\n\\n" + self.build_user_section(
                "PLACE_NAME", place_name
            )
    """

    # Subclasses must define these
    TEMPLATE: str = ""
    SCHEMA_NAME: str = ""
    OUTPUT_SCHEMA: Dict[str, Any] = {}

    MAX_INPUT_LENGTH: int = 5000
    ENABLE_UNICODE_NORMALIZATION: bool = True

    def __init__(self):
        if not self.TEMPLATE:
            raise ValueError(f"{self.__class__.__name__} defines no TEMPLATE")
        if not self.OUTPUT_SCHEMA:
            raise ValueError(f"{self.__class__.__name__} defines no OUTPUT_SCHEMA")

    def get_system_prompt(self) -> str:
        return str(self.TEMPLATE)

    def format_user_message(self, **kwargs) -> str:
        """
        Format the user message, sanitizing every string argument first.

        Complex values (lists of coordinates, numbers) pass through unchanged
        and are rendered by the subclass's _format_message().
        """
        sanitized_kwargs = {}
        for key, value in kwargs.items():
            if isinstance(value, str):
                sanitized_kwargs[key] = self._sanitize_user_input(value)
            else:
                sanitized_kwargs[key] = value
        return self._format_message(**sanitized_kwargs)

    @abstractmethod
    def _format_message(self, **kwargs) -> str:
        pass

    def _sanitize_user_input(self, text: str) -> str:
        r"""
        Clean free-text user input before it reaches a prompt.

        Layers:
        1. Unicode NFKC normalization
        2. Null byte and control character removal (keeps \n, \r, \t)
        3. Excessive newline normalization (max 2 consecutive)
        4. Whitespace trim
        5. Length validation on the cleaned text

        Raises:
            ValidationError: If the input is empty after cleaning or too long
        """
        if not isinstance(text, str):
            text = str(text)

        if self.ENABLE_UNICODE_NORMALIZATION:
            text = unicodedata.normalize('NFKC', text)

        text = text.replace('\x00', '')
        text = ''.join(
            char for char in text
            if ord(char) >= 32 or char in '\n\r\t'
        )

        text = re.sub(r'\n{3,}', '\n\n', text)
        text = text.strip()

        if not text:
            raise ValidationError("Input cannot be empty")

        # NFKC can expand a string, so the limit applies to the cleaned text
        if len(text) > self.MAX_INPUT_LENGTH:
            logger.warning(f"Input too long: {len(text)} chars (max: {self.MAX_INPUT_LENGTH})")
            raise ValidationError(
                f"Input exceeds maximum length of {self.MAX_INPUT_LENGTH} characters"
            )

        return text

    def build_user_section(self, section_id: str, user_input: str, header: str | None = None) -> str:
        """
        Wrap user input in an XML-style delimited section.

        ``user_input`` is expected to come from format_user_message(), which
        has already sanitized it.
        """
        sanitized_input = str(user_input)

        safe_section_id = re.sub(r'[^A-Z0-9_]', '', section_id.upper())
        if not safe_section_id:
            raise ValueError("section_id must contain alphanumeric characters")

        lines = [f"<{safe_section_id}>"]
        if header:
            lines.append(f"Header: {self._sanitize_user_input(header)}")
            lines.append("---")
        lines.append(sanitized_input)
        lines.append(f"</{safe_section_id}>")

        return "\n".join(lines)

    def validate_response(self, data: Dict[str, Any]):
        """
        Turn a structurally valid response into its typed result.

        Raises:
            SchemaMismatch: If the response fails the result model's checks
        """
        try:
            return self._build_result(data)
        except PydanticValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            location = ".".join(str(part) for part in first.get("loc", ()))
            reason = first.get("msg", str(e))
            logger.warning(f"{self.__class__.__name__} response rejected at '{location}': {reason}")
            raise SchemaMismatch(
                f"Invalid {self.SCHEMA_NAME} data received from the model: {location or 'response'}: {reason}"
            ) from e

    @abstractmethod
    def _build_result(self, data: Dict[str, Any]):
        """Build the typed result; pydantic validation errors propagate."""
        pass
