# Overview: Service-layer operations for stock availability; encapsulates business logic and database work.

"""
Availability Aggregator.

Pure reads over the ledgers. Given a scope and a (product, kiosk) key it
derives:

    total_in      = SUM(quantity) over active stock-in rows      (0 if none)
    total_out     = SUM(quantity) over active stock-out rows     (0 if none)
    available     = max(0, total_in - total_out)
    last_in_date  = MAX(business_date) over those stock-in rows  (None if none)
    last_out_date = MAX(business_date) over those stock-out rows (None if none)

The scope is either GLOBAL (every user's rows) or RestrictedScope(user_id);
this module does not know why a scope applies.

Read paths used by the public operations:
- Restricted role: recomputed live from the user's own ledger rows.
- Everyone else:   served from the AvailabilitySnapshot table, which
                   snapshot_service keeps equal to the GLOBAL aggregate.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import func

from ..extensions import db
from ..models import Product, Kiosk, StockInRecord, StockOutRecord, AvailabilitySnapshot
from stoktrack.time_utils import month_bucket, to_iso_date, to_utc_z
from .ledger_service import active_query, pair_query
from .scope import Actor, Scope, GLOBAL, RestrictedScope, scope_for


def available_from(total_in: int, total_out: int) -> int:
    """Available stock is clamped at zero, never a raw subtraction."""
    return max(0, int(total_in) - int(total_out))


@dataclass(frozen=True)
class AvailabilityFigures:
    product_id: int
    kios_id: int
    total_in: int
    total_out: int
    available: int
    last_in_date: date | None
    last_out_date: date | None

    @property
    def has_activity(self) -> bool:
        return self.total_in > 0 or self.total_out > 0

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "kios_id": self.kios_id,
            "total_in": self.total_in,
            "total_out": self.total_out,
            "available": self.available,
            "last_in_date": to_iso_date(self.last_in_date),
            "last_out_date": to_iso_date(self.last_out_date),
        }


def _sum_and_latest(model, scope: Scope, product_id: int, kios_id: int) -> tuple[int, date | None]:
    q = pair_query(model, scope, product_id, kios_id).with_entities(
        func.coalesce(func.sum(model.quantity), 0),
        func.max(model.business_date),
    )
    total, latest = q.one()
    return int(total or 0), latest


def aggregate(scope: Scope, product_id: int, kios_id: int) -> AvailabilityFigures:
    """Aggregate one (product, kiosk) pair under the given scope."""
    total_in, last_in = _sum_and_latest(StockInRecord, scope, product_id, kios_id)
    total_out, last_out = _sum_and_latest(StockOutRecord, scope, product_id, kios_id)
    return AvailabilityFigures(
        product_id=product_id,
        kios_id=kios_id,
        total_in=total_in,
        total_out=total_out,
        available=available_from(total_in, total_out),
        last_in_date=last_in,
        last_out_date=last_out,
    )


def _later(*values):
    present = [v for v in values if v is not None]
    return max(present) if present else None


def _grouped_totals(model, scope: Scope) -> dict[tuple[int, int], dict]:
    rows = (
        active_query(model, scope)
        .with_entities(
            model.product_id,
            model.kios_id,
            func.coalesce(func.sum(model.quantity), 0),
            func.max(model.business_date),
            func.max(model.created_at),
            func.max(model.updated_at),
        )
        .group_by(model.product_id, model.kios_id)
        .all()
    )
    return {
        (product_id, kios_id): {
            "total": int(total or 0),
            "last_date": last_date,
            "last_touched": _later(max_created, max_updated),
        }
        for product_id, kios_id, total, last_date, max_created, max_updated in rows
    }


def _live_products(product_ids) -> dict[int, Product]:
    if not product_ids:
        return {}
    rows = db.session.query(Product).filter(
        Product.id.in_(product_ids),
        Product.is_deleted.is_(False),
    )
    return {p.id: p for p in rows}


def _live_kiosks(kios_ids) -> dict[int, Kiosk]:
    if not kios_ids:
        return {}
    rows = db.session.query(Kiosk).filter(
        Kiosk.id.in_(kios_ids),
        Kiosk.is_deleted.is_(False),
    )
    return {k.id: k for k in rows}


def _entry(figures: AvailabilityFigures, latest_activity: datetime | None, product: Product, kiosk: Kiosk) -> dict:
    data = figures.to_dict()
    data.update({
        "latest_activity_at": to_utc_z(latest_activity),
        "month_bucket": month_bucket(latest_activity),
        "product": product.to_summary(),
        "kios": kiosk.to_summary(),
    })
    return data


def aggregate_all_pairs(scope: Scope) -> list[dict]:
    """
    One entry per (product, kiosk) pair with at least one active row under scope.

    Pairs whose product or kiosk is soft-deleted are left out entirely.
    The month bucket is the later of the latest created_at / updated_at of the
    contributing rows; it is a display grouping only.
    """
    ins = _grouped_totals(StockInRecord, scope)
    outs = _grouped_totals(StockOutRecord, scope)
    pairs = sorted(set(ins) | set(outs))

    products = _live_products({p for p, _ in pairs})
    kiosks = _live_kiosks({k for _, k in pairs})

    result = []
    for product_id, kios_id in pairs:
        product = products.get(product_id)
        kiosk = kiosks.get(kios_id)
        if product is None or kiosk is None:
            continue

        in_part = ins.get((product_id, kios_id), {})
        out_part = outs.get((product_id, kios_id), {})
        total_in = in_part.get("total", 0)
        total_out = out_part.get("total", 0)

        figures = AvailabilityFigures(
            product_id=product_id,
            kios_id=kios_id,
            total_in=total_in,
            total_out=total_out,
            available=available_from(total_in, total_out),
            last_in_date=in_part.get("last_date"),
            last_out_date=out_part.get("last_date"),
        )
        latest = _later(in_part.get("last_touched"), out_part.get("last_touched"))
        result.append(_entry(figures, latest, product, kiosk))

    return result


def figures_from_snapshot(snapshot: AvailabilitySnapshot | None, product_id: int, kios_id: int) -> AvailabilityFigures:
    """Snapshot row -> figures. A missing row means the pair never had activity."""
    if snapshot is None:
        return AvailabilityFigures(
            product_id=product_id,
            kios_id=kios_id,
            total_in=0,
            total_out=0,
            available=0,
            last_in_date=None,
            last_out_date=None,
        )
    return AvailabilityFigures(
        product_id=snapshot.product_id,
        kios_id=snapshot.kios_id,
        total_in=int(snapshot.quantity_in),
        total_out=int(snapshot.quantity_out),
        available=int(snapshot.quantity_available),
        last_in_date=snapshot.last_in_date,
        last_out_date=snapshot.last_out_date,
    )


def find_snapshot(product_id: int, kios_id: int) -> AvailabilitySnapshot | None:
    return db.session.query(AvailabilitySnapshot).filter_by(
        product_id=product_id,
        kios_id=kios_id,
        is_deleted=False,
    ).first()


def snapshot_entries() -> list[dict]:
    """Global view served from the snapshot table, live products and kiosks only."""
    rows = (
        db.session.query(AvailabilitySnapshot, Product, Kiosk)
        .join(Product, Product.id == AvailabilitySnapshot.product_id)
        .join(Kiosk, Kiosk.id == AvailabilitySnapshot.kios_id)
        .filter(
            AvailabilitySnapshot.is_deleted.is_(False),
            Product.is_deleted.is_(False),
            Kiosk.is_deleted.is_(False),
        )
        .order_by(AvailabilitySnapshot.product_id, AvailabilitySnapshot.kios_id)
        .all()
    )
    result = []
    for snapshot, product, kiosk in rows:
        figures = figures_from_snapshot(snapshot, snapshot.product_id, snapshot.kios_id)
        latest = _later(snapshot.created_at, snapshot.updated_at)
        result.append(_entry(figures, latest, product, kiosk))
    return result


def get_availability(actor: Actor, product_id: int, kios_id: int) -> AvailabilityFigures:
    """
    Availability of one pair as the actor is allowed to see it.

    Restricted role: live aggregate of the actor's own rows.
    Otherwise: the persisted snapshot (zeros when the pair never had activity).
    """
    scope = scope_for(actor)
    if isinstance(scope, RestrictedScope):
        return aggregate(scope, product_id, kios_id)
    return figures_from_snapshot(find_snapshot(product_id, kios_id), product_id, kios_id)


def summarize(entries: list[dict]) -> dict:
    return {
        "total_products": len(entries),
        "total_in": sum(e["total_in"] for e in entries),
        "total_out": sum(e["total_out"] for e in entries),
        "total_available": sum(e["available"] for e in entries),
    }


def list_availability(
    actor: Actor,
    *,
    kios_id: int | None = None,
    month: tuple[int, int] | None = None,
) -> dict:
    """
    Per-pair availability records plus summary totals over the filtered set.

    month is a (year, month) tuple matched against each entry's month bucket.
    """
    scope = scope_for(actor)
    if isinstance(scope, RestrictedScope):
        entries = aggregate_all_pairs(scope)
    else:
        entries = snapshot_entries()

    if kios_id is not None:
        entries = [e for e in entries if e["kios_id"] == kios_id]
    if month is not None:
        wanted = f"{month[0]:04d}-{month[1]:02d}"
        entries = [e for e in entries if e["month_bucket"] == wanted]

    return {"data": entries, "summary": summarize(entries)}
