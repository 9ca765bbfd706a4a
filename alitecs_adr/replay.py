"""Replay an uplink trace through an ADR handler.

The harness plays the part of the network server for a single device: it
decides whether each uplink of the trace reaches the server with the device's
current configuration, keeps the bounded uplink history the server would
store, asks the handler for a decision after every received uplink and applies
the answer to the device.

Traces are :class:`pandas.DataFrame` objects with one row per frame counter:

``f_cnt``
    Frame counter of the uplink.
``snr_db``
    SNR the link would give with TX power index 0.  The replay subtracts the
    power reduction of the index in use.
``lost_copies``
    Optional, number of leading transmissions of the frame dropped by the
    channel (0 to 3).  The frame gets through when the device repeats it more
    often than that.
"""

from __future__ import annotations

import logging
from collections import deque
from pathlib import Path
from typing import Any, Deque

import numpy as np
import pandas as pd

from .engine import MAX_NB_TRANS, REQUIRED_HISTORY_COUNT
from .handler import Handler
from .models import DecisionRequest, UplinkObservation
from .region import (
    DEFAULT_INSTALLATION_MARGIN,
    MAX_DR,
    MAX_TX_POWER_INDEX,
    power_reduction_db,
    required_snr_for_dr,
)
from .rng import RngManager

logger = logging.getLogger(__name__)

TRACE_COLUMNS = ("f_cnt", "snr_db")
REPLAY_COLUMNS = ("f_cnt", "received", "snr_db", "dr", "tx_power_index", "nb_trans", "changed")


def synthetic_trace(
    n_uplinks: int,
    link_snr_db: float,
    *,
    snr_std_db: float = 0.0,
    loss_probability: float = 0.0,
    seed: int = 0,
    device_id: int = 0,
    first_f_cnt: int = 0,
) -> pd.DataFrame:
    """Return a trace of ``n_uplinks`` consecutive frames.

    ``snr_db`` is drawn from a normal law centred on ``link_snr_db``.  Every
    transmission of a frame is dropped independently with probability
    ``loss_probability``; ``lost_copies`` counts the leading drops.
    """

    if n_uplinks <= 0:
        raise ValueError("n_uplinks must be > 0")
    if not (0.0 <= loss_probability <= 1.0):
        raise ValueError("loss_probability must be within [0, 1]")
    if snr_std_db < 0:
        raise ValueError("snr_std_db must be >= 0")

    manager = RngManager(seed)
    snr_rng = manager.get_stream("snr", device_id)
    loss_rng = manager.get_stream("loss", device_id)

    if snr_std_db:
        snr = link_snr_db + snr_rng.normal(0.0, snr_std_db, n_uplinks)
    else:
        snr = np.full(n_uplinks, float(link_snr_db))
    dropped = loss_rng.random((n_uplinks, MAX_NB_TRANS)) < loss_probability
    # Number of leading True values on each row
    lost_copies = np.cumprod(dropped, axis=1).sum(axis=1)

    return pd.DataFrame(
        {
            "f_cnt": np.arange(first_f_cnt, first_f_cnt + n_uplinks, dtype=np.int64),
            "snr_db": snr,
            "lost_copies": lost_copies.astype(np.int64),
        }
    )


def load_trace(path: str | Path) -> pd.DataFrame:
    """Load a CSV trace and check its columns."""

    df = pd.read_csv(path)
    missing = [col for col in TRACE_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"trace {path} lacks column(s): {', '.join(missing)}")
    if "lost_copies" not in df.columns:
        df["lost_copies"] = 0
    return df


def replay(
    trace: pd.DataFrame,
    *,
    dr: int = 0,
    tx_power_index: int = 0,
    nb_trans: int = 1,
    max_dr: int = MAX_DR,
    max_tx_power_index: int = MAX_TX_POWER_INDEX,
    installation_margin: float = DEFAULT_INSTALLATION_MARGIN,
    handler: Handler | None = None,
) -> pd.DataFrame:
    """Replay ``trace`` and return the configuration after each frame.

    The limits must stay within the regional tables of :mod:`alitecs_adr.region`
    since the replay looks up the required SNR and power reduction of every
    configuration the handler may choose.
    """

    if not (0 <= max_dr <= MAX_DR):
        raise ValueError(f"max_dr must be within [0, {MAX_DR}]")
    if not (0 <= max_tx_power_index <= MAX_TX_POWER_INDEX):
        raise ValueError(f"max_tx_power_index must be within [0, {MAX_TX_POWER_INDEX}]")

    if handler is None:
        handler = Handler()
    history: Deque[UplinkObservation] = deque(maxlen=REQUIRED_HISTORY_COUNT)
    has_losses = "lost_copies" in trace.columns

    rows: list[dict[str, Any]] = []
    for record in trace.itertuples(index=False):
        f_cnt = int(record.f_cnt)
        snr = float(record.snr_db) - power_reduction_db(tx_power_index)
        lost_copies = int(record.lost_copies) if has_losses else 0
        received = lost_copies < nb_trans and snr >= required_snr_for_dr(dr)
        changed = False

        if received:
            history.append(UplinkObservation(f_cnt=f_cnt, max_snr=snr, tx_power_index=tx_power_index))
            req = DecisionRequest(
                adr=True,
                dr=dr,
                tx_power_index=tx_power_index,
                nb_trans=nb_trans,
                max_dr=max_dr,
                max_tx_power_index=max_tx_power_index,
                required_snr_for_dr=required_snr_for_dr(dr),
                installation_margin=installation_margin,
                uplink_history=tuple(history),
            )
            resp = handler.handle(req)
            changed = (resp.dr, resp.tx_power_index, resp.nb_trans) != (dr, tx_power_index, nb_trans)
            if changed:
                logger.debug(
                    "FCnt %d: LinkADRReq DR%d TXPower %d NbTrans %d",
                    f_cnt,
                    resp.dr,
                    resp.tx_power_index,
                    resp.nb_trans,
                )
            dr, tx_power_index, nb_trans = resp.dr, resp.tx_power_index, resp.nb_trans

        rows.append(
            {
                "f_cnt": f_cnt,
                "received": received,
                "snr_db": snr,
                "dr": dr,
                "tx_power_index": tx_power_index,
                "nb_trans": nb_trans,
                "changed": changed,
            }
        )

    return pd.DataFrame(rows, columns=list(REPLAY_COLUMNS))


def summarize(df: pd.DataFrame) -> dict[str, Any]:
    """Return aggregate metrics of a :func:`replay` result."""

    if df.empty:
        return {
            "uplinks": 0,
            "received": 0,
            "pdr": 0.0,
            "changes": 0,
            "final_dr": None,
            "final_tx_power_index": None,
            "final_nb_trans": None,
            "mean_dr": 0.0,
        }
    received = df["received"].to_numpy(dtype=bool)
    last = df.iloc[-1]
    return {
        "uplinks": int(len(df)),
        "received": int(np.count_nonzero(received)),
        "pdr": float(np.mean(received)),
        "changes": int(np.count_nonzero(df["changed"].to_numpy(dtype=bool))),
        "final_dr": int(last["dr"]),
        "final_tx_power_index": int(last["tx_power_index"]),
        "final_nb_trans": int(last["nb_trans"]),
        "mean_dr": float(np.mean(df["dr"].to_numpy(dtype=float))),
    }
