import threading

from inventory_api.models.product import Product
from inventory_api.models.stock_movement import StockMovement
from inventory_api.services import stock_ledger


WORKERS = 10


def _run_concurrently(app, product_id, actor_id, quantity, mode):
    barrier = threading.Barrier(WORKERS)
    errors = []

    def worker():
        session = app.state.db.session()
        try:
            barrier.wait()
            stock_ledger.adjust_stock(session, product_id, quantity, mode, actor_id, max_attempts=50)
        except Exception as exc:  # collected and asserted on below
            errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=worker) for _ in range(WORKERS)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)
    return errors


def test_concurrent_additions_are_not_lost(app, db, admin_user, create_product):
    product = create_product(quantityInStock=0)

    errors = _run_concurrently(app, product["id"], admin_user.id, 1, "add")

    assert errors == []
    db.expire_all()
    assert db.get(Product, product["id"]).quantity_in_stock == WORKERS
    assert db.query(StockMovement).filter(StockMovement.product_id == product["id"]).count() == WORKERS
    assert stock_ledger.replay_quantity(db, product["id"]) == WORKERS


def test_concurrent_subtractions_never_go_negative(app, db, admin_user, create_product):
    product = create_product(quantityInStock=3)

    errors = _run_concurrently(app, product["id"], admin_user.id, 1, "subtract")

    # exactly three succeed; the rest are rejected without writing anything
    assert len(errors) == WORKERS - 3
    assert all(str(e) == "Stock cannot be negative" for e in errors)
    db.expire_all()
    assert db.get(Product, product["id"]).quantity_in_stock == 0
    assert stock_ledger.replay_quantity(db, product["id"]) == 0
