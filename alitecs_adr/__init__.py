# Initialisation du package ALITECS ADR
from .models import DecisionRequest, DecisionResult, UplinkObservation
from .engine import (
    MIN_SNR_SENTINEL,
    PKT_LOSS_BAND_THRESHOLDS,
    PKT_LOSS_RATE_TABLE,
    REQUIRED_HISTORY_COUNT,
    STEP_DB,
    decide,
)
from .handler import Handler
from .request_loader import load_request
from . import region

# Mapping of ADR handler identifiers to their implementation classes
HANDLERS = {
    Handler.ID: Handler,
}

__all__ = [
    "DecisionRequest",
    "DecisionResult",
    "UplinkObservation",
    "MIN_SNR_SENTINEL",
    "PKT_LOSS_BAND_THRESHOLDS",
    "PKT_LOSS_RATE_TABLE",
    "REQUIRED_HISTORY_COUNT",
    "STEP_DB",
    "decide",
    "Handler",
    "load_request",
    "region",
    "HANDLERS",
]
