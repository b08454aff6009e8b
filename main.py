"""Entrypoint for running the finance tracker FastAPI backend locally."""
from __future__ import annotations

import logging

import uvicorn

from finance_tracker.config import load_config


if __name__ == "__main__":
    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "finance_tracker.api:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
