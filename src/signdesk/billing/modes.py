"""Processing modes and quota-bearing action kinds."""

import enum


class ProcessingMode(str, enum.Enum):
    """How an action runs.

    LIVE actions have real effects and consume quota. PREVIEW actions are
    simulations with no quota impact.
    """

    PREVIEW = "preview"
    LIVE = "live"


class ActionKind(str, enum.Enum):
    """Actions that must pass the mode admission gate in LIVE mode."""

    CREATE_DOCUMENT = "create_document"
    UPDATE_DOCUMENT_MODE = "update_document_mode"
    SIGN = "sign"
    UPLOAD = "upload"
    SEND_AGREEMENT = "send_agreement"
