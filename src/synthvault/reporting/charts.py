"""Chart generation using Plotly."""

import pandas as pd
import plotly.graph_objects as go

from ..engine.ledger import LedgerSnapshot
from .export import ledger_frame

THEME = {
    "text": "#e8eaed",
    "text_secondary": "#9aa0a6",
    "grid": "rgba(30, 33, 36, 0.8)",
    "cyan": "#00d4ff",
    "amber": "#ffab00",
    "red": "#ff5252",
    "green": "#00e676",
    "slate": "#5f6368",
}

FONT = "Inter, -apple-system, sans-serif"
MONO = "SF Mono, Consolas, monospace"


def apply_dark_layout(fig: go.Figure, title: str, x_title: str, y_title: str, showlegend: bool = True) -> None:
    """Apply the dark theme layout shared by all charts."""
    axis = dict(
        gridcolor=THEME["grid"],
        zerolinecolor=THEME["grid"],
        tickfont=dict(size=10, family=MONO),
        title_font=dict(size=10, color=THEME["text_secondary"])
    )
    fig.update_layout(
        title={
            "text": title,
            "x": 0,
            "xanchor": "left",
            "font": {"size": 11, "color": THEME["text_secondary"], "family": FONT}
        },
        xaxis_title=x_title,
        yaxis_title=y_title,
        hovermode="x unified",
        template="plotly_dark",
        height=340,
        margin=dict(l=50, r=20, t=40, b=40),
        showlegend=showlegend,
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="left", x=0,
                    font=dict(size=10, family=FONT), bgcolor="rgba(0,0,0,0)"),
        plot_bgcolor="rgba(8, 9, 10, 1)",
        paper_bgcolor="rgba(8, 9, 10, 1)",
        font={"color": THEME["text"], "family": FONT, "size": 11},
        xaxis=axis,
        yaxis=axis,
    )


def create_curve_chart(sweep: pd.DataFrame) -> go.Figure:
    """Target CR and clamped offset/discount targets against current CR."""
    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=sweep['cr'], y=sweep['cr'],
        name="No adjustment (target = CR)",
        line=dict(color=THEME["slate"], dash="dot", width=1)
    ))
    fig.add_trace(go.Scatter(
        x=sweep['cr'], y=sweep['target'],
        name="Target CR",
        line=dict(color=THEME["cyan"], width=2)
    ))
    fig.add_trace(go.Scatter(
        x=sweep['cr'], y=sweep['offset_target'],
        name="Offset target",
        line=dict(color=THEME["red"], width=1.5)
    ))
    fig.add_trace(go.Scatter(
        x=sweep['cr'], y=sweep['discount_target'],
        name="Discount target",
        line=dict(color=THEME["green"], width=1.5)
    ))

    apply_dark_layout(fig, "TARGET COLLATERALIZATION", "Current CR", "Target CR")
    return fig


def create_adjustment_chart(sweep: pd.DataFrame) -> go.Figure:
    """Share of a probe trade withheld (redeem) or waived (mint) at each CR."""
    fig = go.Figure()

    fig.add_trace(go.Scatter(
        x=sweep['cr'], y=sweep['offset_fraction'] * 100,
        name="Offset (redeem)",
        line=dict(color=THEME["red"], width=2)
    ))
    fig.add_trace(go.Scatter(
        x=sweep['cr'], y=sweep['discount_fraction'] * 100,
        name="Discount (mint)",
        line=dict(color=THEME["green"], width=2)
    ))

    apply_dark_layout(fig, "CURVE ADJUSTMENT", "Current CR", "Adjustment (%)")
    return fig


def create_collateral_chart(snapshot: LedgerSnapshot) -> go.Figure:
    """Collateral and outstanding value per variant."""
    frame = ledger_frame(snapshot)
    fig = go.Figure()

    fig.add_trace(go.Bar(
        x=frame['name'], y=frame['total_raw_collateral'],
        name="Raw collateral",
        marker_color=THEME["cyan"]
    ))
    fig.add_trace(go.Bar(
        x=frame['name'], y=frame['total_outstanding'],
        name="Outstanding value",
        marker_color=THEME["amber"]
    ))

    apply_dark_layout(fig, "LEDGER BY VARIANT", "Variant", "Amount")
    fig.update_layout(barmode="group", hovermode="closest")
    return fig
