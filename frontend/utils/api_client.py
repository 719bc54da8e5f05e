"""
Backend API Client
Connects the Streamlit dashboard to the gauge API.
"""

import requests
import pandas as pd
from typing import Dict, Optional


class APIClient:
    """Client for backend API communication"""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 15):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = requests.Session()

    def _get(self, endpoint: str, params: dict = None) -> dict:
        """Make GET request"""
        try:
            resp = self.session.get(f"{self.base_url}{endpoint}", params=params, timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.ConnectionError:
            return {"error": "Backend not connected. Start backend with: uvicorn main:app --reload"}
        except requests.exceptions.HTTPError as e:
            detail = None
            try:
                detail = e.response.json().get("detail")
            except ValueError:
                pass
            if isinstance(detail, dict):
                return {"error": detail.get("message") or str(e)}
            return {"error": detail or str(e)}
        except requests.exceptions.RequestException as e:
            return {"error": str(e)}

    # =========================================================================
    # Health & Status
    # =========================================================================

    def health(self) -> dict:
        """Check backend health"""
        return self._get("/health")

    def is_connected(self) -> bool:
        """Check if backend is reachable"""
        return "error" not in self.health()

    # =========================================================================
    # Gauge
    # =========================================================================

    def summary(self) -> dict:
        """Current price analysis for every horizon"""
        return self._get("/api/summary")

    def history(self) -> dict:
        """Ranked history per horizon, as returned by the API"""
        return self._get("/api/history")

    def history_frames(self) -> Dict[str, pd.DataFrame]:
        """History per horizon as DataFrames indexed by timestamp"""
        result = self.history()
        if "error" in result:
            return {}

        frames = {}
        for name, points in result.get("horizons", {}).items():
            df = pd.DataFrame(points)
            if df.empty:
                frames[name] = df
                continue
            df["t"] = pd.to_datetime(df["t"], utc=True)
            frames[name] = df.set_index("t").astype(float)
        return frames

    def export_url(self, horizon: str, fmt: str = "csv") -> str:
        return f"{self.base_url}/api/export/history/{horizon}?format={fmt}"

    def export_history(self, horizon: str, fmt: str = "csv") -> Optional[bytes]:
        """Download a horizon's history in the given format"""
        try:
            resp = self.session.get(self.export_url(horizon, fmt), timeout=self.timeout)
            resp.raise_for_status()
            return resp.content
        except requests.exceptions.RequestException:
            return None
