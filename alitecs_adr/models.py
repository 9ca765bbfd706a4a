"""Plain data exchanged with the ADR engine.

The host network server owns these records: it builds a
:class:`DecisionRequest` from the stored device session and applies the
returned :class:`DecisionResult` back to it.  The engine only reads them.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Tuple


@dataclass(frozen=True)
class UplinkObservation:
    """One received uplink as recorded by the network server."""

    f_cnt: int
    max_snr: float
    tx_power_index: int

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UplinkObservation":
        return cls(
            f_cnt=int(_pick(data, "f_cnt", "fCnt", "frameCounter")),
            max_snr=float(_pick(data, "max_snr", "maxSNR")),
            tx_power_index=int(
                _pick(data, "tx_power_index", "txPowerIndex", "txPowerIndexAtReceipt")
            ),
        )


@dataclass(frozen=True)
class DecisionRequest:
    """Current device state, regional limits and uplink history."""

    adr: bool
    dr: int
    tx_power_index: int
    nb_trans: int
    max_dr: int
    max_tx_power_index: int
    required_snr_for_dr: float
    installation_margin: float
    uplink_history: Tuple[UplinkObservation, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Accept any iterable of observations but store an immutable tuple
        if not isinstance(self.uplink_history, tuple):
            object.__setattr__(self, "uplink_history", tuple(self.uplink_history))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DecisionRequest":
        """Build a request from a mapping.

        Both the snake_case attribute names and the camelCase names used on
        the plugin wire contract (``adrEnabled``, ``currentDataRate``,
        ``maxTxPowerIndex``...) are accepted.  A :class:`KeyError` is raised
        when a field is missing and a :class:`ValueError` when ``adr`` is not
        a boolean.
        """

        history = _pick(data, "uplink_history", "uplinkHistory", default=())
        return cls(
            adr=_as_bool(_pick(data, "adr", "adrEnabled", "ADR"), "adr"),
            dr=int(_pick(data, "dr", "currentDataRate", "DR")),
            tx_power_index=int(
                _pick(data, "tx_power_index", "currentTxPowerIndex", "txPowerIndex")
            ),
            nb_trans=int(_pick(data, "nb_trans", "currentNbTrans", "nbTrans")),
            max_dr=int(_pick(data, "max_dr", "maxDataRate", "maxDR")),
            max_tx_power_index=int(
                _pick(data, "max_tx_power_index", "maxTxPowerIndex")
            ),
            required_snr_for_dr=float(
                _pick(data, "required_snr_for_dr", "requiredSNRForDataRate", "requiredSNRForDR")
            ),
            installation_margin=float(
                _pick(data, "installation_margin", "installationMargin")
            ),
            uplink_history=tuple(
                entry if isinstance(entry, UplinkObservation) else UplinkObservation.from_dict(entry)
                for entry in history
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["uplink_history"] = [asdict(entry) for entry in self.uplink_history]
        return data


@dataclass(frozen=True)
class DecisionResult:
    """Configuration the device should be instructed to use next."""

    dr: int
    tx_power_index: int
    nb_trans: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


_MISSING = object()


def _pick(data: Mapping[str, Any], *keys: str, default: Any = _MISSING) -> Any:
    """Return the value of the first key of *keys* present in *data*."""

    for key in keys:
        if key in data:
            return data[key]
    if default is _MISSING:
        raise KeyError(keys[0])
    return default


def _as_bool(value: Any, name: str) -> bool:
    """Return ``value`` when it is a real boolean, raise :class:`ValueError` otherwise."""

    if not isinstance(value, bool):
        raise ValueError(f"{name} must be a boolean, got {value!r}")
    return value
