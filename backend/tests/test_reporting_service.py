import pytest

from stockledger.services import reporting_service
from stockledger.services.errors import NotFoundError


@pytest.mark.parametrize(
    "total, reorder_level, expected",
    [
        (0, 10, reporting_service.OUT_OF_STOCK),
        (0, 0, reporting_service.OUT_OF_STOCK),
        (9, 10, reporting_service.LOW_STOCK),
        (10, 10, reporting_service.IN_STOCK),
        (3, 0, reporting_service.IN_STOCK),
    ],
)
def test_stock_status(total, reorder_level, expected):
    assert reporting_service.stock_status(total, reorder_level) == expected


class TestDashboard:
    def test_kpis_count_stock_states(self, service, wh_main, product, stocked):
        empty = service.add_product(sku="EMPTY", name="Nothing here", reorder_level=5)
        low = service.add_product(sku="LOW", name="Running out", reorder_level=50)
        adjustment = service.add_adjustment(warehouse_id=wh_main.id, lines=[{"product_id": low.id, "difference": 4}])
        service.validate_adjustment(adjustment.id)

        kpis = reporting_service.dashboard_kpis(service)

        assert kpis["total_products"] == 3
        assert kpis["out_of_stock_count"] == 1
        assert kpis["low_stock_count"] == 1
        assert {r["product_id"] for r in reporting_service.low_stock_products(service)} == {empty.id, low.id}
        assert [r["product_id"] for r in reporting_service.low_stock_products(service, include_out_of_stock=False)] == [low.id]

    def test_pending_documents_by_status(self, service, wh_main, wh_second, product):
        service.add_receipt(warehouse_id=wh_main.id, status="Waiting")
        service.add_receipt(warehouse_id=wh_main.id, status="Ready")
        service.add_delivery(warehouse_id=wh_main.id, status="Ready")
        canceled = service.add_delivery(warehouse_id=wh_main.id)
        service.cancel_delivery(canceled.id)
        service.add_transfer(source_warehouse_id=wh_second.id, destination_warehouse_id=wh_main.id)

        kpis = reporting_service.dashboard_kpis(service)

        assert kpis["pending_receipts"] == 1
        assert kpis["pending_deliveries"] == 1
        assert kpis["scheduled_transfers"] == 1

    def test_warehouse_filter_narrows_stock_and_documents(self, service, wh_main, wh_second, product, stocked):
        service.add_delivery(warehouse_id=wh_main.id)

        kpis = reporting_service.dashboard_kpis(service, warehouse_id=wh_second.id)

        assert kpis["out_of_stock_count"] == 1
        assert kpis["pending_deliveries"] == 0

    def test_unknown_warehouse_filter(self, service):
        with pytest.raises(NotFoundError):
            reporting_service.dashboard_kpis(service, warehouse_id="wh-missing")

    def test_category_totals_and_distribution(self, service, wh_main, product, stocked):
        service.add_product(sku="BOOK", name="Novel", category="Books")

        totals = {row["category"]: row["value"] for row in reporting_service.stock_by_category(service)}
        assert totals == {"Tools": 20, "Books": 0}

        distribution = reporting_service.document_status_distribution(service)
        assert distribution["Adjustment"]["Done"] == 1
        assert distribution["Receipt"] == {"Draft": 0, "Waiting": 0, "Ready": 0, "Done": 0, "Canceled": 0}

    def test_full_dashboard_payload(self, service, wh_main, product, stocked):
        report = reporting_service.dashboard(service, category="Tools")

        assert report["kpis"]["total_products"] == 1
        assert len(report["recent_movements"]) == 1
        assert report["recent_movements"][0]["quantity"] == 20
