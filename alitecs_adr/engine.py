"""ADR decision engine.

Given the current device configuration and the recent uplink history, the
engine computes the data rate, TX power index and number of transmissions the
network server should send to the device with the next ``LinkADRReq``.

The decision is made in three parts:

* ``nb_trans`` follows the packet loss observed over the history window,
  using the :data:`PKT_LOSS_RATE_TABLE` lookup;
* the SNR margin (best SNR of the window minus the required SNR of the data
  rate and the installation margin) is converted into a number of 3 dB steps;
* positive steps first raise the data rate then lower the TX power, negative
  steps first raise the TX power then lower the data rate.  Negative steps are
  only applied once the whole window was received at the current TX power.

Every function in this module is pure and may be called concurrently.
"""

from __future__ import annotations

from typing import Tuple

from .models import DecisionRequest, DecisionResult

# Paramètres ADR (valeurs fixées par l'interopérabilité avec les équipements)
REQUIRED_HISTORY_COUNT = 20
STEP_DB = 3.0
# SNR used when no uplink is known: far below anything a gateway reports
MIN_SNR_SENTINEL = -999.0
# Frame counters are unsigned 32-bit values on the wire
FCNT_MODULO = 2**32

MIN_NB_TRANS = 1
MAX_NB_TRANS = 3

# Upper bounds (exclusive, in %) of the first three packet loss bands; any
# loss at or above the last threshold falls into the fourth band.
PKT_LOSS_BAND_THRESHOLDS: Tuple[float, ...] = (5.0, 10.0, 30.0)

# Rows: loss band, columns: current nb_trans (1, 2, 3)
PKT_LOSS_RATE_TABLE: Tuple[Tuple[int, int, int], ...] = (
    (1, 1, 2),
    (1, 2, 3),
    (2, 3, 3),
    (3, 3, 3),
)


def get_max_snr(req: DecisionRequest) -> float:
    """Return the best SNR of the uplink history.

    :data:`MIN_SNR_SENTINEL` is returned for an empty history so that the
    resulting margin is always negative.
    """

    snr_m = MIN_SNR_SENTINEL
    for uplink in req.uplink_history:
        if uplink.max_snr > snr_m:
            snr_m = uplink.max_snr
    return snr_m


def get_history_count(req: DecisionRequest) -> int:
    """Return the number of history entries sent with the current TX power index."""

    return sum(1 for uplink in req.uplink_history if uplink.tx_power_index == req.tx_power_index)


def get_packet_loss_percentage(req: DecisionRequest) -> float:
    """Return the packet loss (in %) derived from frame counter gaps.

    A history shorter than :data:`REQUIRED_HISTORY_COUNT` is considered
    loss-free.  Consecutive frame counters are expected to differ by exactly
    one.  The lost frame total is kept modulo 2**32, as an unsigned 32-bit
    counter would be, so that a counter roll-over is not reported as loss.
    """

    history = req.uplink_history
    if len(history) < REQUIRED_HISTORY_COUNT:
        return 0.0

    lost_packets = 0
    previous_f_cnt = history[0].f_cnt
    for uplink in history[1:]:
        lost_packets = (lost_packets + uplink.f_cnt - previous_f_cnt - 1) % FCNT_MODULO
        previous_f_cnt = uplink.f_cnt

    return lost_packets / len(history) * 100


def get_loss_band(pkt_loss_rate: float) -> int:
    """Return the row of :data:`PKT_LOSS_RATE_TABLE` for ``pkt_loss_rate``."""

    for band, threshold in enumerate(PKT_LOSS_BAND_THRESHOLDS):
        if pkt_loss_rate < threshold:
            return band
    return len(PKT_LOSS_BAND_THRESHOLDS)


def get_nb_trans(current_nb_trans: int, pkt_loss_rate: float) -> int:
    """Return the recommended number of transmissions."""

    current_nb_trans = min(max(current_nb_trans, MIN_NB_TRANS), MAX_NB_TRANS)
    return PKT_LOSS_RATE_TABLE[get_loss_band(pkt_loss_rate)][current_nb_trans - 1]


def get_steps(snr_margin: float) -> int:
    """Convert ``snr_margin`` (dB) into a number of ADR steps.

    The division result is truncated toward zero: a margin of -2.9 dB gives no
    step while -3.0 dB gives one negative step.
    """

    return int(snr_margin / STEP_DB)


def get_ideal_tx_power_index_and_dr(
    n_step: int,
    tx_power_index: int,
    dr: int,
    max_tx_power_index: int,
    max_dr: int,
) -> Tuple[int, int]:
    """Apply ``n_step`` ADR steps and return ``(tx_power_index, dr)``.

    Each positive step raises the data rate or, once ``max_dr`` is reached,
    increments the TX power index (lowers the radiated power).  Each negative
    step decrements the TX power index or, at index 0, lowers the data rate.
    A step that cannot change anything is still consumed.
    """

    while n_step > 0:
        if dr < max_dr:
            dr += 1
        elif tx_power_index < max_tx_power_index:
            tx_power_index += 1
        n_step -= 1

    while n_step < 0:
        if tx_power_index > 0:
            tx_power_index -= 1
        elif tx_power_index == 0 and dr > 0:
            dr -= 1
        n_step += 1

    return tx_power_index, dr


def decide(req: DecisionRequest) -> DecisionResult:
    """Return the configuration the device should use next."""

    # Without ADR the device keeps its current configuration
    if not req.adr:
        return DecisionResult(dr=req.dr, tx_power_index=req.tx_power_index, nb_trans=req.nb_trans)

    # Only lower the DR when it exceeds the regional maximum
    dr = min(req.dr, req.max_dr)
    nb_trans = get_nb_trans(req.nb_trans, get_packet_loss_percentage(req))

    snr_margin = get_max_snr(req) - req.required_snr_for_dr - req.installation_margin
    n_step = get_steps(snr_margin)

    # Raising the TX power on a partial or mixed-power window leads to
    # up/down/up power changes: wait for a full window at the current power.
    if n_step < 0 and get_history_count(req) != REQUIRED_HISTORY_COUNT:
        return DecisionResult(dr=dr, tx_power_index=req.tx_power_index, nb_trans=nb_trans)

    tx_power_index, dr = get_ideal_tx_power_index_and_dr(
        n_step, req.tx_power_index, dr, req.max_tx_power_index, req.max_dr
    )
    return DecisionResult(dr=dr, tx_power_index=tx_power_index, nb_trans=nb_trans)
