from __future__ import annotations

import logging

from .engine import decide
from .models import DecisionRequest, DecisionResult

__all__ = ["Handler"]

logger = logging.getLogger(__name__)


class Handler:
    """ADR handler exposed to the network server.

    The network server identifies an ADR algorithm by its :meth:`id` and shows
    :meth:`name` to operators; :meth:`handle` is called for every uplink of a
    device with ADR state attached.
    """

    ID = "alitecs-adr"
    NAME = "ALITECS ADR algorithm"

    def id(self) -> str:
        return self.ID

    def name(self) -> str:
        return self.NAME

    def handle(self, req: DecisionRequest) -> DecisionResult:
        """Return the new device configuration for ``req``."""

        resp = decide(req)
        if (resp.dr, resp.tx_power_index, resp.nb_trans) != (
            req.dr,
            req.tx_power_index,
            req.nb_trans,
        ):
            logger.debug(
                "Handler %s: DR %d -> %d, TX power index %d -> %d, NbTrans %d -> %d (%d uplinks).",
                self.ID,
                req.dr,
                resp.dr,
                req.tx_power_index,
                resp.tx_power_index,
                req.nb_trans,
                resp.nb_trans,
                len(req.uplink_history),
            )
        else:
            logger.debug(
                "Handler %s: configuration unchanged (%d uplinks).",
                self.ID,
                len(req.uplink_history),
            )
        return resp
