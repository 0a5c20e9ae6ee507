"""Wallet transaction display rules.

The history list and the detail dialog both render transactions through
``classify`` so a transaction always gets the same title, icon and amount
styling wherever it appears.
"""
from dataclasses import dataclass
from typing import Dict, NamedTuple, Optional

from . import palette
from .data_models import Transaction

CURRENCY = "₦"


class TransactionIcon(NamedTuple):
    name: str
    glyph: str
    color: str
    bg: str


TYPE_TITLES: Dict[str, str] = {
    "topup": "Top Up",
    "withdrawal": "Withdrawal",
    "rent_payment": "Rent Payment",
    "rent_receive": "Rent Received",
    "tour_payment": "Inspection Fee",
    "tour_receive": "Inspection Fee Received",
    "escrow_hold": "Market Purchase",
    "escrow_release": "Market Sale Revenue",
    "contestant_fee": "Contestant Fee",
}

TYPE_ICONS: Dict[str, TransactionIcon] = {
    "topup": TransactionIcon("add", "+", "#10b981", "#10b98120"),
    "withdrawal": TransactionIcon("arrow-down", "↓", "#ef4444", "#ef444420"),
    "transfer_in": TransactionIcon("arrow-down-outline", "⇣", "#3b82f6", "#3b82f620"),
    "transfer_out": TransactionIcon("arrow-up-outline", "⇡", "#f59e0b", "#f59e0b20"),
    "rent_payment": TransactionIcon("home-outline", "⌂", "#8b5cf6", "#8b5cf620"),
    "rent_receive": TransactionIcon("home", "⌂", "#10b981", "#10b98120"),
    "tour_payment": TransactionIcon("eye-outline", "◎", "#6366f1", "#6366f120"),
    "tour_receive": TransactionIcon("eye", "◉", "#10b981", "#10b98120"),
    "escrow_hold": TransactionIcon("cart-outline", "⊡", "#ec4899", "#ec489920"),
    "escrow_release": TransactionIcon("checkmark-circle-outline", "✓", "#10b981", "#10b98120"),
    "contestant_fee": TransactionIcon("trophy-outline", "★", "#f97316", "#f9731620"),
}

DEFAULT_ICON_NAME = "wallet-outline"
DEFAULT_ICON_GLYPH = "▣"


def transaction_title(tx: Transaction) -> str:
    if tx.related_user is not None and tx.related_user.name:
        return tx.related_user.name
    return TYPE_TITLES.get(tx.type, tx.description)


def transaction_icon(tx_type: str, colors: Optional[Dict[str, str]] = None) -> TransactionIcon:
    icon = TYPE_ICONS.get(tx_type)
    if icon is not None:
        return icon
    colors = colors or palette.palette_for("light")
    return TransactionIcon(DEFAULT_ICON_NAME, DEFAULT_ICON_GLYPH, colors["subtext"], colors["card"])


def is_credit(amount: float) -> bool:
    return amount > 0


def _format_number(value: float) -> str:
    value = abs(value)
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def format_amount(amount: float, detail: bool = False) -> str:
    """``+₦1,500`` for credits; debits are unsigned in the list, ``-`` in detail."""
    if is_credit(amount):
        sign = "+"
    else:
        sign = "-" if detail else ""
    return f"{sign}{CURRENCY}{_format_number(amount)}"


def amount_color(amount: float, colors: Optional[Dict[str, str]] = None) -> str:
    colors = colors or palette.palette_for("light")
    return palette.SUCCESS if is_credit(amount) else colors["text"]


def status_color(status: str) -> str:
    if status == "completed":
        return palette.SUCCESS
    if status == "pending":
        return palette.WARNING
    return palette.DANGER


@dataclass
class TransactionDisplay:
    title: str
    icon: TransactionIcon
    credit: bool
    list_amount: str
    detail_amount: str
    amount_color: str
    status: str
    status_color: str
    reference: str
    counterpart_role: Optional[str]


def classify(tx: Transaction, colors: Optional[Dict[str, str]] = None) -> TransactionDisplay:
    counterpart_role = None
    if tx.related_user is not None:
        counterpart_role = "Recipient" if tx.type == "transfer_out" else "Sender"
    return TransactionDisplay(
        title=transaction_title(tx),
        icon=transaction_icon(tx.type, colors),
        credit=is_credit(tx.amount),
        list_amount=format_amount(tx.amount),
        detail_amount=format_amount(tx.amount, detail=True),
        amount_color=amount_color(tx.amount, colors),
        status=tx.status.upper(),
        status_color=status_color(tx.status),
        reference=tx.reference or tx.id[:8].upper(),
        counterpart_role=counterpart_role,
    )
