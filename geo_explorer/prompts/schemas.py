"""
JSON output schemas handed to the model with each structured request.

``description`` entries are guidance for the model only; they are not
checked at runtime.
"""

LOCATION_SCHEMA = {
    "type": "object",
    "properties": {
        "latitude": {
            "type": "number",
            "description": "The latitude of the location, ranging from -90 to 90.",
        },
        "longitude": {
            "type": "number",
            "description": "The longitude of the location, ranging from -180 to 180.",
        },
    },
    "required": ["latitude", "longitude"],
}

AREA_SCHEMA = {
    "type": "object",
    "properties": {
        "area": {
            "type": "array",
            "description": "An array of coordinate points that make up the boundary polygon.",
            "items": LOCATION_SCHEMA,
        },
    },
    "required": ["area"],
}

CHART_DATA_SCHEMA = {
    "type": "object",
    "description": (
        "Data for a chart, if relevant. Omit if the query is not about quantifiable data "
        "(e.g., historical population, economic stats)."
    ),
    "properties": {
        "title": {"type": "string", "description": "A title for the chart."},
        "type": {"type": "string", "description": "Type of chart. Only 'bar' is currently supported."},
        "data": {
            "type": "array",
            "description": "Data points for the chart.",
            "items": {
                "type": "object",
                "properties": {
                    "label": {"type": "string", "description": "The label for the data point (e.g., a year)."},
                    "value": {"type": "number", "description": "The numerical value."},
                },
                "required": ["label", "value"],
            },
        },
        "xAxisLabel": {"type": "string", "description": "Optional label for the X-axis."},
        "yAxisLabel": {"type": "string", "description": "Optional label for the Y-axis."},
    },
    "required": ["title", "type", "data"],
}

KNOWLEDGE_SCHEMA = {
    "type": "object",
    "properties": {
        "locationName": {
            "type": "string",
            "description": "The name of the primary geographical location identified in the query.",
        },
        "area": {
            "type": "array",
            "description": "An array of coordinate points that make up the boundary polygon for the identified location.",
            "items": LOCATION_SCHEMA,
        },
        "answer": {
            "type": "string",
            "description": "A concise, direct answer to the user's question about the location.",
        },
        "source": {
            "type": "string",
            "description": (
                "The primary source URL or name (e.g., 'Wikipedia', 'World Bank Data') from which "
                "the answer was derived. Be as specific as possible."
            ),
        },
        "reasoning": {
            "type": "array",
            "description": "A step-by-step breakdown of how the answer was derived.",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string", "description": "A short title for the reasoning step (e.g., 'Identifying Location')."},
                    "details": {"type": "string", "description": "A brief description of what was done in this step."},
                },
                "required": ["title", "details"],
            },
        },
        "chartData": CHART_DATA_SCHEMA,
    },
    "required": ["locationName", "area", "answer", "reasoning", "source"],
}

ROUTE_ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "routes": {
            "type": "array",
            "description": "An array of 2-3 distinct driving route options.",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "A descriptive name for the route, e.g., 'Via I-5 N'."},
                    "distance": {"type": "string", "description": "Total distance in kilometers, e.g., '52 km'."},
                    "time": {"type": "string", "description": "Estimated travel time, e.g., '45 min'."},
                    "traffic": {"type": "string", "description": "Current traffic conditions, e.g., 'Light', 'Moderate', 'Heavy'."},
                    "path": {
                        "type": "array",
                        "description": "A detailed array of coordinate points for the route path.",
                        "items": LOCATION_SCHEMA,
                    },
                },
                "required": ["name", "distance", "time", "traffic", "path"],
            },
        },
        "recommendation": {
            "type": "object",
            "description": "The recommendation for the best route.",
            "properties": {
                "bestRouteIndex": {
                    "type": "integer",
                    "description": "The 0-based index of the recommended route in the 'routes' array.",
                },
                "reason": {"type": "string", "description": "A brief explanation for why this route is recommended."},
            },
            "required": ["bestRouteIndex", "reason"],
        },
    },
    "required": ["routes", "recommendation"],
}
