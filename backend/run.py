#!/usr/bin/env python3
# backend/run.py
"""
Development server runner for the planner API.

Reads DATABASE_URL / REDIS_URL / LOG_LEVEL from the environment or
backend/.env like the app itself.
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

import uvicorn

from planner.core.config import settings

if __name__ == "__main__":
    print(f"Starting planner API ({settings.environment})")
    print("Access at: http://localhost:8000")
    print("API Docs: http://localhost:8000/docs")

    uvicorn.run(
        "planner.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=not settings.is_production,
        log_level=settings.log_level.lower(),
    )
