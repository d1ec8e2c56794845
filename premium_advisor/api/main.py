"""FastAPI application exposing the analysis engine."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from premium_advisor import __version__
from premium_advisor.engine import AllSourcesExhausted, AnalysisEngine, InvalidRequest
from premium_advisor.models import (
    AnalysisResult,
    QuoteResult,
    SupportedSymbols,
    serialize_analysis_result,
    serialize_quote_result,
)

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


class AnalyzePayload(BaseModel):
    """Analysis request body; missing values are rejected by the engine with a 400."""

    model_config = ConfigDict(populate_by_name=True)

    symbol: Optional[str] = None
    strategy: Optional[str] = None
    risk_tolerance: Optional[str] = Field(default=None, alias="riskTolerance")


class HealthResponse(BaseModel):
    status: str
    sources: Dict[str, Any]


def _get_engine(request: Request) -> AnalysisEngine:
    engine: Optional[AnalysisEngine] = getattr(request.app.state, "engine", None)
    if engine is None:
        engine = AnalysisEngine.from_settings()
        request.app.state.engine = engine
    return engine


def create_app(engine: Optional[AnalysisEngine] = None) -> FastAPI:
    """Build the API; ``engine`` defaults to one built from settings on first use."""

    app = FastAPI(title="Premium Advisor API", version=__version__)
    app.state.engine = engine

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request) -> Dict[str, Any]:
        return {"status": "ok", "sources": _get_engine(request).describe()}

    @app.get("/supported-symbols", response_model=SupportedSymbols)
    async def supported_symbols() -> Dict[str, Any]:
        """Symbols with tuned reference prices for simulated data."""

        return AnalysisEngine.supported_symbols().model_dump(mode="json", by_alias=True)

    @app.get("/quote/{symbol}", response_model=QuoteResult)
    async def quote(symbol: str, request: Request) -> Dict[str, Any]:
        engine = _get_engine(request)
        try:
            result = await engine.lookup_quote(symbol)
        except InvalidRequest as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except AllSourcesExhausted as exc:
            logger.error(f"No quote source answered for {symbol}: {exc}")
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return serialize_quote_result(result)

    @app.post("/analyze", response_model=AnalysisResult)
    async def analyze(payload: AnalyzePayload, request: Request) -> Dict[str, Any]:
        """Recommend contracts to sell for the submitted strategy."""

        engine = _get_engine(request)
        try:
            result = await engine.analyze(payload.symbol, payload.strategy, payload.risk_tolerance)
        except InvalidRequest as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except AllSourcesExhausted as exc:
            logger.error(f"All data sources failed for {payload.symbol}: {exc}")
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return serialize_analysis_result(result)

    return app


app = create_app()
