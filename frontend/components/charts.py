"""
Chart Components for the Price Gauge Dashboard
Plotly figures for the percentile gauge and the ranked history.
"""

import math
from typing import Optional

import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots


# Ordered from deepest dip to biggest pump
LABEL_ORDER = (
    "Extreme dip",
    "Very big dip",
    "Big dip",
    "Dip",
    "Small dip",
    "Around average",
    "Small pump",
    "Pump",
    "Big pump",
    "Extreme pump",
)


class ChartBuilder:
    """Build gauge and history charts"""

    COLORS = {
        'bg': '#0a0e17',
        'paper': '#0f1419',
        'grid': '#1e2530',
        'text': '#e6edf3',
        'text_muted': '#7d8590',
        'dip': '#3fb950',
        'average': '#d29922',
        'pump': '#f85149',
        'accent': '#58a6ff',
        'accent2': '#a371f7',
    }

    # Gauge bands, 0-100, one per label bucket
    BAND_COLORS = (
        '#1a7f37', '#2da44e', '#3fb950', '#56d364', '#7ee787',
        '#d29922', '#f0883e', '#fb8f44', '#f85149', '#da3633',
    )

    @staticmethod
    def get_layout_template() -> dict:
        """Get consistent layout template for all charts"""
        return {
            'paper_bgcolor': ChartBuilder.COLORS['paper'],
            'plot_bgcolor': ChartBuilder.COLORS['bg'],
            'font': {
                'family': 'JetBrains Mono, SF Mono, Consolas, monospace',
                'color': ChartBuilder.COLORS['text'],
                'size': 11
            },
            'margin': {'l': 60, 'r': 40, 't': 40, 'b': 40},
            'legend': {
                'bgcolor': 'rgba(15, 20, 25, 0.8)',
                'bordercolor': ChartBuilder.COLORS['grid'],
                'borderwidth': 1,
                'font': {'size': 10}
            },
            'hovermode': 'x unified',
        }

    @staticmethod
    def label_color(label: Optional[str]) -> str:
        """Green for dips, amber around average, red for pumps"""
        if label in LABEL_ORDER:
            index = LABEL_ORDER.index(label)
            if index < 5:
                return ChartBuilder.COLORS['dip']
            if index > 5:
                return ChartBuilder.COLORS['pump']
        return ChartBuilder.COLORS['average']

    @staticmethod
    def create_gauge_chart(horizon: dict, title: str, height: int = 280) -> go.Figure:
        """
        Percentile gauge for one horizon of the summary response.

        The needle sits at the raw percentile (0-100); the delta shows how far
        the volatility-adjusted percentile is from it.
        """
        percentile = horizon.get('percentile')
        value = percentile * 100 if percentile is not None else 50.0
        vol_adj = horizon.get('volAdjPercentile')

        steps = [
            {'range': [i * 10, (i + 1) * 10], 'color': color}
            for i, color in enumerate(ChartBuilder.BAND_COLORS)
        ]

        indicator = go.Indicator(
            mode='gauge+number+delta' if vol_adj is not None else 'gauge+number',
            value=value,
            number={'suffix': '%', 'valueformat': '.1f'},
            title={'text': f"{title}<br><span style='font-size:12px'>{horizon.get('label', '')}</span>"},
            gauge={
                'axis': {'range': [0, 100], 'tickcolor': ChartBuilder.COLORS['text_muted']},
                'bar': {'color': ChartBuilder.COLORS['text'], 'thickness': 0.15},
                'steps': steps,
                'threshold': {
                    'line': {'color': ChartBuilder.COLORS['accent'], 'width': 3},
                    'value': vol_adj if vol_adj is not None else value,
                },
            },
        )
        if vol_adj is not None:
            indicator.delta = {'reference': vol_adj, 'valueformat': '.1f'}

        fig = go.Figure(indicator)
        layout = ChartBuilder.get_layout_template()
        layout['height'] = height
        layout['margin'] = {'l': 30, 'r': 30, 't': 60, 'b': 20}
        fig.update_layout(**layout)
        return fig

    @staticmethod
    def create_history_chart(df: pd.DataFrame, title: str = "History", height: int = 560) -> go.Figure:
        """
        Price with its trailing SMA on top, raw and volatility-adjusted
        percentiles below.

        Args:
            df: History indexed by timestamp with price, sma, percentile and
                volAdjPercentile columns
        """
        fig = make_subplots(
            rows=2, cols=1,
            shared_xaxes=True,
            vertical_spacing=0.05,
            row_heights=[0.6, 0.4],
        )

        if df.empty:
            fig.update_layout(**ChartBuilder.get_layout_template(), height=height, title=title)
            return fig

        fig.add_trace(
            go.Scatter(x=df.index, y=df['price'], name='Price',
                       line={'color': ChartBuilder.COLORS['accent'], 'width': 1.5}),
            row=1, col=1,
        )
        fig.add_trace(
            go.Scatter(x=df.index, y=df['sma'], name='Trailing SMA',
                       line={'color': ChartBuilder.COLORS['average'], 'width': 1, 'dash': 'dot'}),
            row=1, col=1,
        )
        fig.add_trace(
            go.Scatter(x=df.index, y=df['percentile'], name='Percentile',
                       line={'color': ChartBuilder.COLORS['text'], 'width': 1}),
            row=2, col=1,
        )
        fig.add_trace(
            go.Scatter(x=df.index, y=df['volAdjPercentile'], name='Vol-adjusted',
                       line={'color': ChartBuilder.COLORS['accent2'], 'width': 1}),
            row=2, col=1,
        )

        for level, color in ((10, ChartBuilder.COLORS['dip']), (90, ChartBuilder.COLORS['pump'])):
            fig.add_hline(y=level, line_dash='dash', line_color=color, opacity=0.5, row=2, col=1)

        layout = ChartBuilder.get_layout_template()
        layout['height'] = height
        layout['title'] = {'text': title, 'font': {'size': 14}}
        fig.update_layout(**layout)
        fig.update_yaxes(title_text='USD', type='log', gridcolor=ChartBuilder.COLORS['grid'], row=1, col=1)
        fig.update_yaxes(title_text='Pctl', range=[0, 100], gridcolor=ChartBuilder.COLORS['grid'], row=2, col=1)
        fig.update_xaxes(gridcolor=ChartBuilder.COLORS['grid'])
        return fig


def format_multiple(value: Optional[float]) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return "n/a"
    return f"{value:.3f}x"
