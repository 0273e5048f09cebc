# src/room_mode_eq/plot/response_plot.py

"""Static report figure of a room correction run."""

import numpy as np
from matplotlib.figure import Figure

from ..optimization.filters import compute_eq_curve


def plot_eq_result(result, path=None, title="Room Mode EQ"):
    """
    Draw the room response, target, corrected response and EQ profile.

    Two panels: the curves on a log frequency axis, and the RMS error
    after each pass. The figure is saved to ``path`` when given.

    Returns:
        The matplotlib Figure.
    """
    fig = Figure(figsize=(11, 8))
    ax_freq, ax_error = fig.subplots(2, 1, gridspec_kw={"height_ratios": [3, 1]})

    freqs = result.room_response.freqs
    ax_freq.semilogx(freqs, result.room_response.db, color="#1f77b4", label="Room response")
    ax_freq.semilogx(freqs, result.target_response.db, color="#2ca02c", linewidth=2.0, label="Target")
    ax_freq.semilogx(freqs, result.corrected_response.db, color="#ff7f0e", label="Corrected")

    bands = result.settings.bands
    if bands:
        eq_curve = compute_eq_curve(freqs, bands)
        ax_freq.semilogx(freqs, result.target_response.db + eq_curve, color="0.5", linestyle="--",
                         label="EQ profile (on target)")
        for band in bands:
            level = np.interp(band.frequency, freqs, result.target_response.db)
            ax_freq.vlines(band.frequency, level, level + band.gain,
                           colors="#d62728" if band.gain < 0 else "#ffa500", linewidth=1.5)

    ax_freq.set_title(title)
    ax_freq.set_xlabel("Frequency (Hz)")
    ax_freq.set_ylabel("Magnitude (dB)")
    if len(freqs):
        ax_freq.set_xlim(freqs[0], freqs[-1])
    ax_freq.grid(True, which="both", alpha=0.3)
    ax_freq.legend(loc="best")

    steps = [0] + [p.number for p in result.passes]
    errors = [result.initial_error.rms_error] + [p.rms_error for p in result.passes]
    ax_error.plot(steps, errors, marker="o", color="#2ca02c")
    ax_error.set_xlabel("Pass")
    ax_error.set_ylabel("RMS Error (dB)")
    ax_error.set_xticks(steps)
    ax_error.grid(True, alpha=0.3)

    fig.tight_layout()
    if path is not None:
        fig.savefig(path, dpi=100)
    return fig
