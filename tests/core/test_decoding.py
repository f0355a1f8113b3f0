"""Tests for the response decoder and the strict timestamp profile."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from easybuy.core.decoding import decode
from easybuy.core.errors import DecodeError
from easybuy.schemas.cart import CartLine
from easybuy.schemas.common import Timestamp, WireModel, format_timestamp, parse_timestamp
from easybuy.schemas.orders import Order, OrderRequest
from easybuy.schemas.user import User
from tests.conftest import USER_PAYLOAD


class Stamped(WireModel):
    created_at: Timestamp


class MaybeStamped(WireModel):
    created_at: Optional[Timestamp] = None


class TestTimestamps:
    def test_fractional_utc(self) -> None:
        record = decode(Stamped, b'{"createdAt":"2024-03-01T12:34:56.789Z"}')
        assert record.created_at == datetime(2024, 3, 1, 12, 34, 56, 789000, tzinfo=timezone.utc)

    def test_offset_designator(self) -> None:
        value = parse_timestamp("2024-03-01T20:34:56.789+08:00")
        assert value.utcoffset() == timedelta(hours=8)
        assert value == datetime(2024, 3, 1, 12, 34, 56, 789000, tzinfo=timezone.utc)

    def test_long_fraction_truncates_to_microseconds(self) -> None:
        assert parse_timestamp("2024-03-01T12:34:56.1234567Z").microsecond == 123456

    @pytest.mark.parametrize("raw", [
        "2024-03-01",
        "2024-03-01T12:34:56Z",
        "2024-03-01T12:34:56.789",
        "2024-13-01T12:34:56.789Z",
        "2024-03-01T12:34:56.789Z\n",
        " 2024-03-01T12:34:56.789Z",
        "٢٠٢٤-03-01T12:34:56.789Z",
    ])
    def test_rejects_other_profiles(self, raw: str) -> None:
        with pytest.raises(DecodeError) as excinfo:
            decode(Stamped, json.dumps({"createdAt": raw}))
        assert raw in excinfo.value.detail

    def test_non_string_rejected(self) -> None:
        with pytest.raises(DecodeError):
            decode(Stamped, b'{"createdAt": 1709296496}')

    def test_null_allowed_when_optional(self) -> None:
        assert decode(MaybeStamped, b'{"createdAt": null}').created_at is None

    def test_format_round_trip(self) -> None:
        raw = "2024-03-01T12:34:56.789Z"
        assert format_timestamp(parse_timestamp(raw)) == raw


class TestDecode:
    def test_user_payload(self) -> None:
        user = decode(User, json.dumps(USER_PAYLOAD))
        assert user.id == "u1"
        assert [line.product_id for line in user.cart] == ["p1", "p2", "p3"]
        assert user.cart[0].product.name == "Scarf"
        assert user.orders[0].review.rating == 5
        assert user.orders[1].created_at.utcoffset() == timedelta(hours=8)

    def test_list_target(self) -> None:
        lines = decode(List[CartLine], b'[{"productId": "p1", "quantity": 4}]')
        assert lines[0].quantity == 4

    def test_malformed_json(self) -> None:
        with pytest.raises(DecodeError):
            decode(User, b"{not json")

    def test_missing_required_field(self) -> None:
        with pytest.raises(DecodeError) as excinfo:
            decode(Order, b'{"status": "pending"}')
        assert "id" in excinfo.value.detail


class TestOrderRequestRoundTrip:
    def test_echoed_order_matches_request(self) -> None:
        request = OrderRequest(
            items=[{"productId": "p1", "quantity": 2, "price": 10.0}],
            shipping_address="1 Main St",
            payment_method="card",
            note="ring twice",
        )
        echoed = json.loads(request.to_json_bytes())
        assert echoed["shippingAddress"] == "1 Main St"
        echoed.update({"_id": "o-new", "status": "pending", "createdAt": "2024-03-01T12:34:56.789Z"})

        order = decode(Order, json.dumps(echoed))
        assert order.items == request.items
        assert order.shipping_address == request.shipping_address
        assert order.payment_method == request.payment_method
        assert order.note == request.note

    def test_empty_sentinel(self) -> None:
        assert OrderRequest.empty().is_empty
        assert OrderRequest(items=[{"productId": "p1"}], shipping_address="  ").is_empty
        assert not OrderRequest(items=[{"productId": "p1"}], shipping_address="x").is_empty
