"""
Price Freshness Indicator
Shows how old the served price is, with color coding.
"""

from datetime import datetime, timezone
from typing import Optional

import pandas as pd
import streamlit as st


# (max age seconds, label, color)
FRESHNESS_LEVELS = (
    (60, "LIVE", "#10b981"),
    (300, "DELAYED", "#f59e0b"),
)
STALE = ("STALE", "#ef4444")


def price_age_seconds(price_as_of: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    if not price_as_of:
        return None
    now = now or datetime.now(timezone.utc)
    return (pd.Timestamp(now) - pd.Timestamp(price_as_of)).total_seconds()


def freshness_level(age_seconds: Optional[float]):
    if age_seconds is None:
        return "OFFLINE", "#64748b"
    for max_age, label, color in FRESHNESS_LEVELS:
        if age_seconds < max_age:
            return label, color
    return STALE


def render_freshness_badge(price_as_of: Optional[str], source: str = "") -> None:
    """
    Render a badge for the price timestamp.

    The price is LIVE under a minute old and DELAYED under five minutes;
    older prices come from the last-known fallback.
    """
    age = price_age_seconds(price_as_of)
    label, color = freshness_level(age)
    age_text = f"{age:.0f}s ago" if age is not None else ""

    st.markdown(f"""
    <div style="display: flex; align-items: center; justify-content: space-between; padding: 8px 12px; background: {color}15; border: 1px solid {color}30; border-radius: 10px;">
        <div style="display: flex; align-items: center; gap: 8px;">
            <div style="width: 8px; height: 8px; background: {color}; border-radius: 50%; box-shadow: 0 0 8px {color};"></div>
            <span style="font-family: 'JetBrains Mono', monospace; font-size: 11px; color: {color}; font-weight: 600;">{label}</span>
        </div>
        <div style="text-align: right;">
            <div style="font-family: 'JetBrains Mono', monospace; font-size: 12px; color: #f0f4f8;">{age_text}</div>
            <div style="font-family: 'JetBrains Mono', monospace; font-size: 10px; color: #64748b;">{source}</div>
        </div>
    </div>
    """, unsafe_allow_html=True)
