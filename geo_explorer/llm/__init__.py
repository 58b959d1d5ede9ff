from geo_explorer.llm.structured_client import (
    StructuredQueryClient,
    get_structured_query_client,
    parse_json_response,
    validate_structure,
)

__all__ = [
    "StructuredQueryClient",
    "get_structured_query_client",
    "parse_json_response",
    "validate_structure",
]
