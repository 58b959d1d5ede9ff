#!/usr/bin/env python3
"""
Main entry point for the Geo Explorer API.
Handles server startup with environment-based configuration.
"""
import uvicorn
from geo_explorer.config import APP_PORT

if __name__ == "__main__":
    print(f"🚀 Starting Geo Explorer API on port {APP_PORT}")
    uvicorn.run(
        "geo_explorer.explorer_api:app",
        host="0.0.0.0",
        port=APP_PORT,
        reload=True,
        log_level="info"
    )
