"""Plotting utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


def save_multi_format(
    fig,
    base_path: str | Path,
    formats: Sequence[str] | None = ("png", "pdf"),
    dpi: int = 300,
):
    """Save a Matplotlib figure to multiple formats.

    Parameters
    ----------
    fig:
        Matplotlib figure instance.
    base_path:
        Path without extension where figures should be written.
    formats:
        Iterable of extensions (without leading dots). Defaults to
        ``("png", "pdf")``.
    dpi:
        Dots per inch for raster formats (png, jpg). Ignored for vector
        formats.
    """
    base = Path(base_path)
    base.parent.mkdir(parents=True, exist_ok=True)
    saved = []
    for ext in formats or []:
        ext = ext.lstrip(".")
        path = base.with_suffix(f".{ext}")
        dpi_val = dpi if ext.lower() in {"png", "jpg", "jpeg"} else None
        fig.savefig(path, dpi=dpi_val)
        saved.append(path)
    return saved


def parse_formats(value: str) -> list[str]:
    """Parse a comma-separated list of formats."""
    return [fmt.strip() for fmt in value.split(",") if fmt.strip()]


def plot_replay(df, title: str | None = None):
    """Draw the DR, TX power index and NbTrans timeline of a replay.

    ``df`` is the frame returned by :func:`alitecs_adr.replay.replay`.  Lost
    uplinks are marked on the data rate axis.
    """
    import matplotlib.pyplot as plt

    fig, (ax_dr, ax_power, ax_nb) = plt.subplots(3, 1, sharex=True, figsize=(8, 6))
    f_cnt = df["f_cnt"]

    ax_dr.step(f_cnt, df["dr"], where="post")
    lost = df[~df["received"].astype(bool)]
    if not lost.empty:
        ax_dr.plot(lost["f_cnt"], lost["dr"], "x", color="tab:red", label="lost")
        ax_dr.legend(loc="best")
    ax_dr.set_ylabel("DR")

    ax_power.step(f_cnt, df["tx_power_index"], where="post", color="tab:orange")
    ax_power.set_ylabel("TX power index")

    ax_nb.step(f_cnt, df["nb_trans"], where="post", color="tab:green")
    ax_nb.set_ylabel("NbTrans")
    ax_nb.set_xlabel("FCnt")

    if title:
        ax_dr.set_title(title)
    fig.tight_layout()
    return fig
