"""Load ADR decision requests from JSON or INI files.

JSON files hold a single object accepted by
:meth:`~alitecs_adr.models.DecisionRequest.from_dict`.  INI files use a
``[device]`` section for the current configuration and an
``[uplink_history]`` section listing one uplink per option, oldest first::

    [device]
    adr = yes
    dr = 3
    tx_power_index = 1
    nb_trans = 1

    [uplink_history]
    u1 = 10, 4.5, 1
    u2 = 11, 5.0, 1

History values are ``f_cnt, max_snr, tx_power_index``.  Limits and SNR values
that are not given fall back to the defaults of :mod:`alitecs_adr.region`.
"""

from __future__ import annotations

import configparser
import json
from pathlib import Path
from typing import List

from .models import DecisionRequest, UplinkObservation
from . import region


def load_request(path: str | Path) -> DecisionRequest:
    """Read the decision request stored in *path*."""

    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(p)

    suffix = p.suffix.lower()
    if suffix == ".json":
        with p.open("r", encoding="utf8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError("JSON request must be an object")
        try:
            return DecisionRequest.from_dict(data)
        except KeyError as exc:
            raise ValueError(f"missing request field {exc.args[0]!r}") from exc

    if suffix in {".ini", ".cfg"}:
        cp = configparser.ConfigParser()
        cp.read(p, encoding="utf8")
        return _request_from_config(cp)

    raise ValueError("Unsupported file format; use JSON or INI")


def _request_from_config(cp: configparser.ConfigParser) -> DecisionRequest:
    if not cp.has_section("device"):
        raise ValueError("INI request must contain a [device] section")
    device = cp["device"]
    try:
        dr = device.getint("dr")
        tx_power_index = device.getint("tx_power_index")
        if dr is None or tx_power_index is None:
            raise ValueError("[device] requires dr and tx_power_index")
        required = device.getfloat("required_snr_for_dr", fallback=None)
        if required is None:
            required = region.required_snr_for_dr(dr)
        return DecisionRequest(
            adr=device.getboolean("adr", fallback=True),
            dr=dr,
            tx_power_index=tx_power_index,
            nb_trans=device.getint("nb_trans", fallback=1),
            max_dr=device.getint("max_dr", fallback=region.MAX_DR),
            max_tx_power_index=device.getint(
                "max_tx_power_index", fallback=region.MAX_TX_POWER_INDEX
            ),
            required_snr_for_dr=required,
            installation_margin=device.getfloat(
                "installation_margin", fallback=region.DEFAULT_INSTALLATION_MARGIN
            ),
            uplink_history=_history_from_config(cp),
        )
    except configparser.Error as exc:
        raise ValueError(str(exc)) from exc


def _history_from_config(cp: configparser.ConfigParser) -> List[UplinkObservation]:
    if not cp.has_section("uplink_history"):
        return []
    history: List[UplinkObservation] = []
    for key, raw in cp.items("uplink_history"):
        parts = [x for x in raw.replace(",", " ").split() if x]
        if len(parts) != 3:
            raise ValueError(
                f"uplink {key!r} must contain f_cnt, max_snr and tx_power_index"
            )
        history.append(
            UplinkObservation(
                f_cnt=int(parts[0]),
                max_snr=float(parts[1]),
                tx_power_index=int(parts[2]),
            )
        )
    return history
