"""Default regional tables (EU868 style) used to build decision requests.

The engine never reads these values itself: the network server supplies the
limits and the required SNR with each request.  They are used by the request
loader, the replay harness and the CLI.
"""

from __future__ import annotations

from typing import Dict

# DR0 = SF12 ... DR5 = SF7 (125 kHz)
DR_TO_SF: Dict[int, int] = {0: 12, 1: 11, 2: 10, 3: 9, 4: 8, 5: 7}
SF_TO_DR: Dict[int, int] = {sf: dr for dr, sf in DR_TO_SF.items()}

# Paramètres ADR (valeurs issues de la spécification LoRaWAN)
REQUIRED_SNR: Dict[int, float] = {7: -7.5, 8: -10.0, 9: -12.5, 10: -15.0, 11: -17.5, 12: -20.0}

TX_POWER_INDEX_TO_DBM: Dict[int, float] = {
    0: 14.0,
    1: 12.0,
    2: 10.0,
    3: 8.0,
    4: 6.0,
    5: 4.0,
    6: 2.0,
}
DBM_TO_TX_POWER_INDEX: Dict[int, int] = {int(v): k for k, v in TX_POWER_INDEX_TO_DBM.items()}

MAX_DR = max(DR_TO_SF)
MAX_TX_POWER_INDEX = max(TX_POWER_INDEX_TO_DBM)
DEFAULT_INSTALLATION_MARGIN = 10.0


def required_snr_for_dr(dr: int) -> float:
    """Return the demodulation floor (dB) of data rate ``dr``."""

    try:
        return REQUIRED_SNR[DR_TO_SF[dr]]
    except KeyError:
        raise ValueError(f"unknown data rate: DR{dr}") from None


def power_reduction_db(tx_power_index: int) -> float:
    """Return how many dB below TX power index 0 ``tx_power_index`` transmits."""

    try:
        return TX_POWER_INDEX_TO_DBM[0] - TX_POWER_INDEX_TO_DBM[tx_power_index]
    except KeyError:
        raise ValueError(f"unknown TX power index: {tx_power_index}") from None
