"""
Availability snapshot (stock_tersedia) maintenance.

Verifies:
- Rows are created lazily, only for pairs with activity
- resync is idempotent and always a full recompute
- Moving a ledger row resyncs both the old and the new pair
- resync_all repairs drifted rows
"""

from conftest import days_ago
from stoktrack.extensions import db
from stoktrack.models import AvailabilitySnapshot, StockInRecord
from stoktrack.services import snapshot_service, stock_service
from stoktrack.services.availability_service import find_snapshot


def test_no_row_for_pair_without_activity(manager, product, kiosk):
    assert snapshot_service.resync(product.id, kiosk.id, manager.id) is None
    assert db.session.query(AvailabilitySnapshot).count() == 0


def test_row_created_on_first_movement(field_actor, product, kiosk):
    stock_service.record_stock_in(
        field_actor,
        user_id=field_actor.user_id,
        kios_id=kiosk.id,
        product_id=product.id,
        quantity=12,
        business_date=days_ago(2),
    )

    snapshot = find_snapshot(product.id, kiosk.id)
    assert snapshot is not None
    assert snapshot.quantity_in == 12
    assert snapshot.quantity_out == 0
    assert snapshot.quantity_available == 12
    assert snapshot.last_in_date == days_ago(2)
    assert snapshot.last_out_date is None
    assert snapshot.created_by_user_id == field_actor.user_id


def test_resync_is_idempotent(field_actor, manager, product, kiosk):
    stock_service.record_stock_in(
        field_actor,
        user_id=field_actor.user_id,
        kios_id=kiosk.id,
        product_id=product.id,
        quantity=9,
        business_date=days_ago(1),
    )

    first = snapshot_service.resync(product.id, kiosk.id, manager.id)
    db.session.commit()
    figures = (first.quantity_in, first.quantity_out, first.quantity_available, first.version_id)

    second = snapshot_service.resync(product.id, kiosk.id, manager.id)
    db.session.commit()

    assert second.id == first.id
    assert (second.quantity_in, second.quantity_out, second.quantity_available, second.version_id) == figures
    assert db.session.query(AvailabilitySnapshot).count() == 1


def test_row_kept_at_zero_after_everything_is_deleted(field_actor, product, kiosk):
    row = stock_service.record_stock_in(
        field_actor,
        user_id=field_actor.user_id,
        kios_id=kiosk.id,
        product_id=product.id,
        quantity=4,
        business_date=days_ago(1),
    )
    stock_service.soft_delete_stock_in(field_actor, row.id)

    snapshot = find_snapshot(product.id, kiosk.id)
    assert snapshot is not None
    assert snapshot.quantity_in == 0
    assert snapshot.quantity_available == 0
    assert snapshot.last_in_date is None


def test_moving_a_row_resyncs_both_pairs(field_actor, product, other_product, kiosk):
    row = stock_service.record_stock_in(
        field_actor,
        user_id=field_actor.user_id,
        kios_id=kiosk.id,
        product_id=product.id,
        quantity=8,
        business_date=days_ago(1),
    )

    stock_service.edit_stock_in(
        field_actor,
        row.id,
        kios_id=kiosk.id,
        product_id=other_product.id,
        quantity=8,
        business_date=days_ago(1),
    )

    assert find_snapshot(product.id, kiosk.id).quantity_available == 0
    assert find_snapshot(other_product.id, kiosk.id).quantity_available == 8


def test_resync_all_repairs_drift(field_user, manager, product, kiosk):
    # Ledger rows written behind the service's back
    db.session.add(StockInRecord(
        user_id=field_user.id,
        kios_id=kiosk.id,
        product_id=product.id,
        quantity=21,
        business_date=days_ago(3),
        created_by_user_id=field_user.id,
    ))
    db.session.commit()
    assert find_snapshot(product.id, kiosk.id) is None

    visited = snapshot_service.resync_all(manager.id)

    assert visited == 1
    snapshot = find_snapshot(product.id, kiosk.id)
    assert snapshot.quantity_available == 21
    assert snapshot.updated_by_user_id == manager.id
