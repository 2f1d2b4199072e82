import pytest

from orderdesk import main as cli
from orderdesk.config import COMPLETED_KEY, ORDERS_KEY
from orderdesk.models import OrderType
from orderdesk.persistence import SqliteKeyValueStore
from orderdesk.state import AppState


@pytest.fixture
def run(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda *_args, **_kwargs: None)
    db = tmp_path / "desk.db"

    def _run(*argv):
        return cli.main(["--db", str(db), *argv])

    _run.db = db
    return _run


@pytest.fixture
def seeded(run, make_order):
    store = SqliteKeyValueStore(run.db)
    store.bootstrap_schema()
    state = AppState.open(store)
    dine_in = state.orders.upsert(make_order(customer="Ana"))
    delivery = state.orders.upsert(make_order(customer="Cai", order_type=OrderType.DELIVERY))
    state.close()
    return store, dine_in, delivery


def test_menu_commands_add_update_list_delete(run, capsys):
    assert run("menu-add", "Dal", "120") == 0
    item_id = capsys.readouterr().out.split()[0]

    assert run("menu-update", item_id, "--price", "135") == 0
    assert capsys.readouterr().out.strip() == f"{item_id} Dal 135.00"

    assert run("menu-list") == 0
    assert f"{item_id} Dal 135.00" in capsys.readouterr().out

    assert run("menu-delete", item_id) == 0
    assert run("menu-list") == 0
    assert item_id not in capsys.readouterr().out


def test_menu_update_and_delete_unknown_item_fail(run, capsys):
    assert run("menu-update", "m_missing", "--name", "Naan") == 1
    assert run("menu-delete", "m_missing") == 1
    assert "not found" in capsys.readouterr().err


def test_order_update_sets_assignment_payment_and_note(run, seeded):
    store, dine_in, delivery = seeded
    assert run("order-update", dine_in.id, "--assigned", "Table 4", "--payment-type", "CARD") == 0
    assert run("order-update", delivery.id, "--note", "leave at gate") == 0

    stored = {raw["id"]: raw for raw in store.load(ORDERS_KEY)}
    assert stored[dine_in.id]["assigned"] == "Table 4"
    assert stored[dine_in.id]["payment_type"] == "CARD"
    assert stored[delivery.id]["delivery"]["note"] == "leave at gate"
    assert stored[delivery.id]["delivery"]["address"] == "1 Main St"


def test_order_update_note_needs_delivery_order(run, seeded, capsys):
    _store, dine_in, _delivery = seeded
    assert run("order-update", dine_in.id, "--note", "no onions") == 1
    assert "not a delivery order" in capsys.readouterr().err


def test_delivered_then_completed_remove(run, seeded, capsys):
    store, dine_in, _delivery = seeded
    assert run("order-update", dine_in.id, "--status", "Delivered") == 0
    assert [r["id"] for r in store.load(COMPLETED_KEY)] == [dine_in.id]

    assert run("completed-remove", dine_in.id) == 0
    assert store.load(COMPLETED_KEY) == []
    assert run("completed-remove", dine_in.id) == 1
    assert "not found" in capsys.readouterr().err


def test_unknown_status_is_rejected_by_the_parser(run, seeded):
    _store, dine_in, _delivery = seeded
    with pytest.raises(SystemExit):
        run("order-update", dine_in.id, "--status", "Lost")
