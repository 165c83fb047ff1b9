import json

from stockledger.services.key_value_store import SqlKeyValueStore
from stockledger.services.persistence_service import PersistenceGateway


def test_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["inventory", "init", "--user", "dana"])
    assert result.exit_code == 0, result.output
    assert "Initialized user dana" in result.output

    result = runner.invoke(args=["inventory", "init", "--user", "dana"])
    assert "already initialized" in result.output


def test_init_without_defaults(app, db_session):
    runner = app.test_cli_runner()
    runner.invoke(args=["inventory", "init", "--user", "erin", "--no-defaults"])

    assert PersistenceGateway(SqlKeyValueStore(), "erin").load().warehouses == []


def test_export_then_import(app, db_session, tmp_path):
    runner = app.test_cli_runner()
    runner.invoke(args=["inventory", "init", "--user", "src"])
    out = tmp_path / "src.json"

    result = runner.invoke(args=["inventory", "export", "--user", "src", "--out", str(out)])
    assert result.exit_code == 0, result.output
    assert json.loads(out.read_text())["inventory_warehouses"][0]["code"] == "WH-001"

    result = runner.invoke(args=["inventory", "import", "--user", "dst", str(out)])
    assert result.exit_code == 0, result.output
    assert [w.code for w in PersistenceGateway(SqlKeyValueStore(), "dst").load().warehouses] == ["WH-001"]


def test_import_rejects_malformed_file(app, db_session, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"inventory_products": 5}))

    result = app.test_cli_runner().invoke(args=["inventory", "import", "--user", "x", str(bad)])

    assert result.exit_code != 0
    assert "inventory_products must be a list" in result.output


def test_import_rejects_duplicate_stock_rows(app, db_session, tmp_path):
    row = {"product_id": "prod-1", "warehouse_id": "wh-1", "quantity": 4}
    bad = tmp_path / "dupes.json"
    bad.write_text(json.dumps({"inventory_stock_locations": [row, row]}))

    result = app.test_cli_runner().invoke(args=["inventory", "import", "--user", "gus", str(bad)])

    assert result.exit_code != 0
    assert "Duplicate stock location" in result.output
    gateway = PersistenceGateway(SqlKeyValueStore(), "gus")
    assert not gateway.is_initialized()
    assert gateway.load().stock_locations == []


def test_stats_and_clear(app, db_session):
    runner = app.test_cli_runner()
    runner.invoke(args=["inventory", "init", "--user", "fay"])

    result = runner.invoke(args=["inventory", "stats", "--user", "fay"])
    assert "inventory_products" in result.output

    result = runner.invoke(args=["inventory", "clear", "--user", "fay", "--yes"])
    assert result.exit_code == 0
    assert not PersistenceGateway(SqlKeyValueStore(), "fay").is_initialized()
