"""
Data Export API
Download endpoints for the ranked history series.

Formats:
    - CSV (default): same layout as the precomputed tables
    - JSON: the HistoryPoint shape served by /history
"""

import io
import json
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from analytics.batch import history_frame
from config import get_horizon

router = APIRouter(prefix="/export", tags=["Export"])


@router.get("/history/{horizon_name}")
async def export_history(
    request: Request,
    horizon_name: str,
    format: str = Query(default="csv", description="csv or json")
):
    """
    Export the history series of one horizon.

    Returns:
        CSV or JSON file download
    """
    try:
        horizon = get_horizon(horizon_name)
    except KeyError as exc:
        raise HTTPException(404, str(exc.args[0])) from exc

    if format not in ("csv", "json"):
        raise HTTPException(400, "format must be 'csv' or 'json'")

    points = request.app.state.analysis.horizon_history(horizon)
    if not points:
        raise HTTPException(404, f"No history for horizon {horizon.name}")

    filename = f"history_{horizon.name}_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"

    if format == "json":
        content = json.dumps([p.to_dict() for p in points], indent=2)
        return StreamingResponse(
            io.BytesIO(content.encode()),
            media_type="application/json",
            headers={"Content-Disposition": f"attachment; filename={filename}.json"}
        )

    output = io.StringIO()
    history_frame(points, horizon.granularity).to_csv(output, index=False, na_rep="")
    return StreamingResponse(
        io.BytesIO(output.getvalue().encode()),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}.csv"}
    )
