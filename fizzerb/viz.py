# fizzerb/viz.py
from __future__ import annotations
from typing import Iterable

import numpy as np
import plotly.graph_objects as go
from scipy.signal import spectrogram as _spec

from .space import Space
from .tracing import RayPurpose, Recording

# -----------------------------
# Colors / styles
# -----------------------------

WALL_COLOR = "rgb(0,255,128)"
GRID_C = "rgba(120,160,130,0.18)"
BOUNCE_RAY_COLOR = "rgba(162,174,187,0.8)"
TRACE_RAY_COLOR = "rgba(236,87,64,0.9)"
SPEAKER_COLOR = "rgb(255,32,64)"
MICROPHONE_COLOR = "rgb(255,255,255)"


def _segment_lines(segments: Iterable[tuple]):
    xs, ys = [], []
    for a, b in segments:
        xs += [float(a[0]), float(b[0]), None]
        ys += [float(a[1]), float(b[1]), None]
    return xs, ys


def _dark_layout(fig: "go.Figure", **extra) -> None:
    axis = dict(gridcolor=GRID_C, zerolinecolor=GRID_C, color="#cfd8dc")
    fig.update_layout(
        paper_bgcolor="#000", plot_bgcolor="#000",
        font=dict(color="#e6edf3"),
        xaxis=dict(axis, **extra.pop("xaxis", {})),
        yaxis=dict(axis, **extra.pop("yaxis", {})),
        margin=dict(l=40, r=20, b=40, t=30),
        legend=dict(font=dict(color="#e6edf3")),
        **extra,
    )

# -----------------------------
# Room + rays
# -----------------------------

def make_fig(space: Space) -> "go.Figure":
    """Walls, speakers and microphones of a space, to scale."""
    fig = go.Figure()

    xs, ys = _segment_lines((w.start, w.end) for w in space.walls)
    fig.add_trace(go.Scatter(x=xs, y=ys, mode="lines",
                             line=dict(width=3, color=WALL_COLOR), name="Walls"))

    if space.speakers:
        pos = np.array([s.position for s in space.speakers])
        fig.add_trace(go.Scatter(x=pos[:, 0], y=pos[:, 1], mode="markers",
                                 marker=dict(size=10, color=SPEAKER_COLOR), name="Speakers"))
    if space.microphones:
        pos = np.array([m.position for m in space.microphones])
        fig.add_trace(go.Scatter(x=pos[:, 0], y=pos[:, 1], mode="markers",
                                 marker=dict(size=10, color=MICROPHONE_COLOR), name="Microphones"))

    _dark_layout(fig, yaxis=dict(scaleanchor="x", scaleratio=1))
    return fig


def add_recording(fig: "go.Figure", recording: Recording) -> "go.Figure":
    """Overlay the rays of a recording traced with ``record_rays``."""
    bounce = [(r.ray.start, r.hit.position) for r in recording.rays if r.purpose.is_bounce]
    trace = [(r.ray.start, r.hit.position) for r in recording.rays if r.purpose is RayPurpose.TRACE]

    if bounce:
        xs, ys = _segment_lines(bounce)
        fig.add_trace(go.Scatter(x=xs, y=ys, mode="lines",
                                 line=dict(width=1, color=BOUNCE_RAY_COLOR), name="Bounce rays"))
        hits = np.array([b for _, b in bounce])
        fig.add_trace(go.Scatter(x=hits[:, 0], y=hits[:, 1], mode="markers",
                                 marker=dict(size=4, color=BOUNCE_RAY_COLOR),
                                 name="Hit points", showlegend=False))
    if trace:
        xs, ys = _segment_lines(trace)
        fig.add_trace(go.Scatter(x=xs, y=ys, mode="lines",
                                 line=dict(width=1, color=TRACE_RAY_COLOR, dash="dot"),
                                 name="Speaker traces"))
    return fig

# -----------------------------
# Impulse response
# -----------------------------

def impulse_figure(y: np.ndarray, sr: int, title: str = "Impulse response") -> "go.Figure":
    y = np.asarray(y, dtype=np.float32)
    t = np.arange(y.size, dtype=float) / float(sr)
    fig = go.Figure(data=[go.Scatter(x=t, y=y, mode="lines",
                                     line=dict(width=1, color=WALL_COLOR), name="IR")])
    _dark_layout(fig, title=title, xaxis=dict(title="Time (s)"), yaxis=dict(title="Amplitude"))
    return fig


def spectrogram_figure(y: np.ndarray, sr: int, title: str,
                       nperseg: int = 1024, noverlap: int = 768) -> "go.Figure":
    y = np.asarray(y, dtype=np.float32)
    if y.size < nperseg:
        return go.Figure()

    f, t, S = _spec(y, fs=sr, window="hann",
                    nperseg=nperseg, noverlap=noverlap,
                    mode="magnitude", detrend=False, scaling="density")
    S_db = 20 * np.log10(S + 1e-12)

    mask = f > 0
    f = f[mask]
    S_db = S_db[mask, :]
    top = float(np.max(S_db)) if S_db.size else 0.0

    fig = go.Figure(data=[go.Heatmap(
        x=t, y=f, z=S_db,
        colorscale="Cividis",
        colorbar=dict(title="dB"),
        zmin=top - 80, zmax=top
    )])
    _dark_layout(fig, title=title,
                 xaxis=dict(title="Time (s)"),
                 yaxis=dict(title="Freq (Hz)", type="log"))
    return fig
