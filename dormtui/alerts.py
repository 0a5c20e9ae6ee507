"""Alert dialog options shared by every screen."""
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

from . import palette

ALERT_TYPES = ("success", "error", "info")


class AlertIcon(NamedTuple):
    name: str
    glyph: str
    color: Optional[str]  # None -> theme primary


@dataclass
class AlertOptions:
    title: str
    description: str
    type: str = "success"
    button_text: str = "OK"
    cancel_text: str = "Cancel"
    show_cancel: bool = False
    on_confirm: Optional[Callable[[], None]] = None

    def __post_init__(self) -> None:
        if self.type not in ALERT_TYPES:
            self.type = "success"


def alert_icon(alert_type: str) -> AlertIcon:
    if alert_type == "error":
        return AlertIcon("alert-circle", "✖", palette.DANGER)
    if alert_type == "info":
        return AlertIcon("information-circle", "ℹ", palette.INFO)
    return AlertIcon("checkmark-circle", "✔", None)
