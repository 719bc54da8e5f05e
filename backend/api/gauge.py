"""
Gauge API
Live summary, ranked history and a health probe.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool

from services import AnalysisService, PriceFetchError


router = APIRouter(tags=["Gauge"])


def get_analysis(request: Request) -> AnalysisService:
    return request.app.state.analysis


@router.get("/summary")
async def get_summary(request: Request):
    """
    Current price multiple for every horizon.

    Returns:
        {asOfUTC, currentPriceUSD, priceSource, priceAsOfUTC,
         horizons: {"365d": PriceMultiple, "30d": PriceMultiple}}
    """
    analysis = get_analysis(request)
    try:
        # Fetch runs in a worker thread; the aggregator is only touched here
        sample = await run_in_threadpool(analysis.feed.current_price)
    except PriceFetchError as exc:
        raise HTTPException(
            status_code=502,
            detail={"error": "Failed to analyze Bitcoin price", "message": str(exc)},
        ) from exc
    return analysis.summary(sample=sample).to_dict()


@router.get("/history")
async def get_history(request: Request):
    """Ranked history series backing the chart, one list per horizon"""
    analysis = get_analysis(request)
    history = analysis.history()
    return {
        "horizons": {
            name: [p.to_dict() for p in points]
            for name, points in history.items()
        }
    }


@router.get("/health")
async def health():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "Bitcoin Price Gauge",
    }
