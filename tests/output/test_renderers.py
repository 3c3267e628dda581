"""Tests for the operation-specific Rich renderers."""

from __future__ import annotations

from typing import Any

from bcl.output.renderers import NOTHING_FOUND, render_quiet, render_result
from bcl.services.result import ServiceError, ServiceResult

_META = {"limit": 10, "currency": "UAH", "unit": "km"}


def _listing(kind: str, items: list[dict[str, Any]]) -> ServiceResult:
    return ServiceResult(
        ok=True,
        op=f"list_{kind}",
        data={"kind": kind, "count": len(items), "items": items},
        meta=_META,
    )


def _ride(dyn_id: int, ride_id: int, **extra: Any) -> dict[str, Any]:
    item = {
        "dyn_id": dyn_id,
        "id": ride_id,
        "bike": "G:1",
        "datestamp": "2024-05-02",
        "distance": 20.0,
        "annotation": None,
        "tags": [],
    }
    item.update(extra)
    return item


class TestListing:
    def test_ride_table(self) -> None:
        output = render_result(
            _listing("ride", [_ride(1, 17, tags=["road", "commute"], annotation="trail loop")])
        )
        for header in ("#", "ID", "Date", "Bike", "Distance", "Note", "Tags"):
            assert header in output
        assert "17" in output
        assert "20.00 km" in output
        assert "#road #commute" in output
        assert "trail loop" in output
        assert output.endswith("1 record")

    def test_plural_footer(self) -> None:
        output = render_result(_listing("ride", [_ride(1, 5), _ride(2, 4)]))
        assert output.endswith("2 records")

    def test_empty_listing(self) -> None:
        assert render_result(_listing("ride", [])) == NOTHING_FOUND

    def test_buy_price_uses_currency(self) -> None:
        item = {
            "dyn_id": 1,
            "id": 2,
            "name": "Chain",
            "price": 450.0,
            "datestamp": "2024-05-01",
            "category": "G",
            "bike": "G:1",
            "tags": [],
        }
        output = render_result(_listing("buy", [item]))
        assert "450.00 UAH" in output
        assert "Chain" in output

    def test_bike_reference(self) -> None:
        item = {
            "dyn_id": 1,
            "id": 3,
            "category": "MTB",
            "id_in_cat": 1,
            "name": "Stumpjumper",
            "datestamp": "2022-08-20",
        }
        output = render_result(_listing("bike", [item]))
        assert "MTB:1" in output
        assert "Stumpjumper" in output


class TestMutations:
    def test_generic_mutation(self) -> None:
        data = {"id": 4, "bike": "G:3", "name": "Diverge"}
        result = ServiceResult(ok=True, op="add_bike", data=data)
        output = render_result(result)
        assert output.startswith("OK  add_bike")
        assert "  id: 4" in output
        assert "bike: G:3" in output

    def test_add_ride_reports_lubrication(self) -> None:
        data = {
            "id": 9,
            "bike": "G:1",
            "date": "2024-06-10",
            "distance": 8.0,
            "since_lub": 63.5,
            "lub_level": "ok",
            "unit": "km",
        }
        output = render_result(ServiceResult(ok=True, op="add_ride", data=data))
        assert "After last chain lubrication you ride: 63.50 km" in output
        assert "Time to lubricate" not in output
        assert "since_lub" not in output

    def test_add_ride_lubrication_reminder(self) -> None:
        data = {"id": 9, "bike": "G:1", "since_lub": 210.0, "lub_level": "alert", "unit": "km"}
        output = render_result(ServiceResult(ok=True, op="add_ride", data=data))
        assert "Time to lubricate the chain." in output

    def test_deleted_record_echo(self) -> None:
        data = {
            "id": 4,
            "record": _ride(1, 4, annotation="trail loop"),
            "removed_tags": [],
        }
        output = render_result(ServiceResult(ok=True, op="del_ride", data=data))
        assert "del_ride" in output
        assert "trail loop" in output
        assert "removed_tags" not in output

    def test_verbose_shows_meta(self) -> None:
        result = ServiceResult(ok=True, op="add_tag", data={"created": ["a"]}, meta={"took": 1})
        assert "took: 1" in render_result(result, verbose=True)
        assert "took" not in render_result(result)


class TestErrors:
    def test_error_line(self) -> None:
        result = ServiceResult(
            ok=False,
            op="add_ride",
            error=ServiceError(code="NOT_FOUND", message="Bike 'G:9' does not exist."),
        )
        output = render_result(result)
        assert output.startswith("ERROR  add_ride — Bike 'G:9' does not exist.")

    def test_verbose_error_detail(self) -> None:
        result = ServiceResult(
            ok=False,
            op="command",
            error=ServiceError(code="INVALID_VALUE", message="Wrong", detail={"key": "lim"}),
        )
        assert "key: lim" in render_result(result, verbose=True)


class TestRenderQuiet:
    def test_ids_only(self) -> None:
        assert render_quiet(_listing("ride", [_ride(1, 5), _ride(2, 4)])) == "5\n4"

    def test_mutation(self) -> None:
        assert render_quiet(ServiceResult(ok=True, op="add_tag")) == "OK: add_tag"
