from .charts import ChartBuilder, LABEL_ORDER, format_multiple
from .freshness import render_freshness_badge, price_age_seconds, freshness_level

__all__ = [
    'ChartBuilder',
    'LABEL_ORDER',
    'format_multiple',
    'render_freshness_badge',
    'price_age_seconds',
    'freshness_level',
]
