"""
Prompt templates for structured geographic requests.

Each template carries its system instructions, the JSON output schema sent
to the model, sanitized placement of user input and the response checks
that turn parsed JSON into typed results.
"""

from geo_explorer.prompts.base_prompt import StructuredPromptTemplate
from geo_explorer.prompts.place_prompts import CoordinatesPrompt, AreaPrompt
from geo_explorer.prompts.route_prompts import RouteAnalysisPrompt
from geo_explorer.prompts.knowledge_prompts import PlaceKnowledgePrompt, AreaKnowledgePrompt

__all__ = [
    'StructuredPromptTemplate',
    'CoordinatesPrompt',
    'AreaPrompt',
    'RouteAnalysisPrompt',
    'PlaceKnowledgePrompt',
    'AreaKnowledgePrompt',
]
