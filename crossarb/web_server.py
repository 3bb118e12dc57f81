#!/usr/bin/env python3
"""
FastAPI Web Server for Arbitrage Scanner

JSON API over the scan pipeline:
    GET /api/arbitrage?limit=&minSpread=&sort=
    GET /health
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .embeddings import EmbeddingCache
from .scanner import ArbitrageScanner
from .utils import setup_logging

logger = logging.getLogger(__name__)

app = FastAPI(title="Arbitrage Scanner", version="0.1.0")

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Embeddings outlive a single request
embedding_cache = EmbeddingCache()

_scanner: Optional[ArbitrageScanner] = None


def get_scanner() -> ArbitrageScanner:
    global _scanner
    if _scanner is None:
        _scanner = ArbitrageScanner(embedding_cache=embedding_cache)
    return _scanner


def set_scanner(scanner: Optional[ArbitrageScanner]) -> None:
    """Replace the scanner used by the API (None rebuilds the default one)."""
    global _scanner
    _scanner = scanner


@app.get("/api/arbitrage")
async def arbitrage(
    limit: int = Query(config.DEFAULT_SCAN_LIMIT, ge=1),
    min_spread: float = Query(config.DEFAULT_MIN_SPREAD, alias="minSpread", ge=0),
    sort: str = Query(config.DEFAULT_SORT, pattern="^(similarity|spread|volume)$"),
):
    """Scan markets and return opportunities."""
    try:
        opportunities = await get_scanner().scan(limit=limit, min_spread=min_spread, sort_by=sort)
    except Exception as e:
        logger.error(f"Error fetching arbitrage opportunities: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to fetch arbitrage opportunities"},
        )

    return {
        "opportunities": [opp.to_dict() for opp in opportunities],
        "count": len(opportunities),
        "timestamp": datetime.now().isoformat(),
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok", "timestamp": datetime.now().isoformat()}


if __name__ == "__main__":
    import uvicorn

    setup_logging()
    uvicorn.run(app, host="0.0.0.0", port=8000)
