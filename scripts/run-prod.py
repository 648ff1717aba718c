"""
FastAPI Production Server

Run the Portfolio Agent API in production mode.

Usage:
    python scripts/run-prod.py
    # OR
    uv run python scripts/run-prod.py
"""

import sys
import os
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
os.chdir(project_root)

import uvicorn
from loguru import logger


def main():
    """Start the FastAPI production server"""
    logger.info("="*80)
    logger.info("Portfolio Agent - API Server (Production)")
    logger.info("="*80)
    logger.info("Server will be available at: http://localhost:8000")
    logger.info("Health Check: http://localhost:8000/health")
    logger.info("Ask: POST http://localhost:8000/api/ask")
    logger.info("="*80)

    uvicorn.run(
        "portfolio_agent.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info",
        access_log=False
    )


if __name__ == "__main__":
    main()
