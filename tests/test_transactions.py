"""
tests/test_transactions.py: Wallet transaction display rules.
"""

from __future__ import annotations

import pytest

from dormtui import palette
from dormtui.data_models import RelatedUser, Transaction
from dormtui.transactions import (
    TYPE_ICONS,
    TYPE_TITLES,
    amount_color,
    classify,
    format_amount,
    status_color,
    transaction_icon,
    transaction_title,
)


def tx(**overrides) -> Transaction:
    fields = dict(id="64f0c2a9e1b2c3d4", type="topup", amount=1500, status="completed", description="Wallet funding")
    fields.update(overrides)
    return Transaction(**fields)


# ---------------------------------------------------------------------------
# Titles
# ---------------------------------------------------------------------------

class TestTitle:
    @pytest.mark.parametrize("tx_type,title", sorted(TYPE_TITLES.items()))
    def test_known_types_use_fixed_titles(self, tx_type, title):
        assert transaction_title(tx(type=tx_type)) == title

    def test_unknown_type_falls_back_to_description(self):
        assert transaction_title(tx(type="refund", description="Order #12 refunded")) == "Order #12 refunded"

    def test_transfer_types_have_no_fixed_title(self):
        assert transaction_title(tx(type="transfer_in", description="From Ada")) == "From Ada"

    def test_related_user_name_wins(self):
        t = tx(type="transfer_out", related_user=RelatedUser(id="u2", name="Chidi Okafor"))
        assert transaction_title(t) == "Chidi Okafor"


# ---------------------------------------------------------------------------
# Icons
# ---------------------------------------------------------------------------

class TestIcon:
    def test_every_known_type_has_icon(self):
        for name in ("topup", "withdrawal", "transfer_in", "transfer_out", "rent_payment", "rent_receive",
                     "tour_payment", "tour_receive", "escrow_hold", "escrow_release", "contestant_fee"):
            assert name in TYPE_ICONS

    def test_topup_icon(self):
        icon = transaction_icon("topup")
        assert icon.name == "add"
        assert icon.color == "#10b981"

    def test_unknown_type_uses_theme_colours(self):
        dark = palette.palette_for("dark")
        icon = transaction_icon("mystery", dark)
        assert icon.name == "wallet-outline"
        assert icon.color == dark["subtext"]
        assert icon.bg == dark["card"]


# ---------------------------------------------------------------------------
# Amounts and status
# ---------------------------------------------------------------------------

class TestAmounts:
    def test_credit_has_plus_sign_in_both_views(self):
        assert format_amount(1500) == "+₦1,500"
        assert format_amount(1500, detail=True) == "+₦1,500"

    def test_debit_is_unsigned_in_list_and_negative_in_detail(self):
        assert format_amount(-2500) == "₦2,500"
        assert format_amount(-2500, detail=True) == "-₦2,500"

    def test_fractional_amounts_drop_trailing_zeros(self):
        assert format_amount(12.5) == "+₦12.5"
        assert format_amount(1500.5) == "+₦1,500.5"
        assert format_amount(-1500.25, detail=True) == "-₦1,500.25"

    def test_fractions_round_to_three_places(self):
        assert format_amount(0.1 + 0.2) == "+₦0.3"
        assert format_amount(2.0004) == "+₦2"

    def test_zero_is_not_a_credit(self):
        assert format_amount(0) == "₦0"
        assert amount_color(0) == palette.palette_for("light")["text"]

    def test_credit_colour_is_success(self):
        assert amount_color(10) == palette.SUCCESS
        assert amount_color(-10, palette.palette_for("dark")) == palette.palette_for("dark")["text"]

    @pytest.mark.parametrize("status,colour", [
        ("completed", palette.SUCCESS),
        ("pending", palette.WARNING),
        ("failed", palette.DANGER),
        ("reversed", palette.DANGER),
    ])
    def test_status_colours(self, status, colour):
        assert status_color(status) == colour


# ---------------------------------------------------------------------------
# classify()
# ---------------------------------------------------------------------------

class TestClassify:
    def test_list_and_detail_agree(self):
        d = classify(tx(type="withdrawal", amount=-3000, status="pending"))
        assert d.title == "Withdrawal"
        assert d.credit is False
        assert d.list_amount == "₦3,000"
        assert d.detail_amount == "-₦3,000"
        assert d.status == "PENDING"
        assert d.status_color == palette.WARNING

    def test_reference_falls_back_to_short_id(self):
        assert classify(tx(reference="")).reference == "64F0C2A9"
        assert classify(tx(reference="REF-991")).reference == "REF-991"

    def test_counterpart_role(self):
        friend = RelatedUser(id="u9", name="Ada")
        assert classify(tx(type="transfer_out", amount=-100, related_user=friend)).counterpart_role == "Recipient"
        assert classify(tx(type="transfer_in", related_user=friend)).counterpart_role == "Sender"
        assert classify(tx()).counterpart_role is None
