"""
Geo Explorer: AI-driven map exploration service.

A generative model supplies coordinates, boundary polygons, route options
and narrative answers; this package sequences those requests, reports a
live thought timeline and turns results into map view state.
"""

__version__ = "1.0.0"
