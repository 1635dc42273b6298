from __future__ import annotations

from ..extensions import db
from stoktrack.time_utils import to_utc_z, to_iso_date


class StockInRecord(db.Model):
    """
    Stock received at a kiosk (stok masuk).

    LEDGER SEMANTICS:
    - Append-mostly: quantity, business_date, product, kiosk and the receipt
      photo may be corrected; the owning user_id never changes.
    - Never hard-deleted. is_deleted=True retires the row and every aggregate
      ignores it from then on.
    """
    __tablename__ = "stock_masuk"
    __table_args__ = (
        db.Index("ix_stock_masuk_pair_active", "product_id", "kios_id", "is_deleted"),
        db.Index("ix_stock_masuk_user_pair", "user_id", "product_id", "kios_id"),
        db.CheckConstraint("quantity > 0", name="ck_stock_masuk_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Field operative the stock belongs to
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    kios_id = db.Column(db.Integer, db.ForeignKey("master_kios.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)

    # Business date of the movement (calendar day, local timezone)
    business_date = db.Column(db.Date, nullable=False, index=True)

    # Reference to an uploaded receipt photo (storage is handled elsewhere)
    receipt_photo_ref = db.Column(db.String(255), nullable=True)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    updated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", foreign_keys=[user_id])
    kiosk = db.relationship("Kiosk")
    product = db.relationship("Product")

    def __repr__(self) -> str:
        return (
            f"<StockInRecord id={self.id} product_id={self.product_id} "
            f"kios_id={self.kios_id} qty={self.quantity} deleted={self.is_deleted}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "kios_id": self.kios_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "business_date": to_iso_date(self.business_date),
            "receipt_photo_ref": self.receipt_photo_ref,
            "is_deleted": self.is_deleted,
            "created_by_user_id": self.created_by_user_id,
            "updated_by_user_id": self.updated_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "user": self.user.to_summary() if self.user else None,
            "kios": self.kiosk.to_summary() if self.kiosk else None,
            "product": self.product.to_summary() if self.product else None,
        }


class StockOutRecord(db.Model):
    """
    Stock dispatched / sold from a kiosk (stok keluar).

    Same ledger semantics as StockInRecord, without the receipt photo.
    Creation and quantity increases are gated by the sufficiency check in
    movement_validator.
    """
    __tablename__ = "stock_keluar"
    __table_args__ = (
        db.Index("ix_stock_keluar_pair_active", "product_id", "kios_id", "is_deleted"),
        db.Index("ix_stock_keluar_user_pair", "user_id", "product_id", "kios_id"),
        db.CheckConstraint("quantity > 0", name="ck_stock_keluar_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    kios_id = db.Column(db.Integer, db.ForeignKey("master_kios.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    business_date = db.Column(db.Date, nullable=False, index=True)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    updated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", foreign_keys=[user_id])
    kiosk = db.relationship("Kiosk")
    product = db.relationship("Product")

    def __repr__(self) -> str:
        return (
            f"<StockOutRecord id={self.id} product_id={self.product_id} "
            f"kios_id={self.kios_id} qty={self.quantity} deleted={self.is_deleted}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "kios_id": self.kios_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "business_date": to_iso_date(self.business_date),
            "is_deleted": self.is_deleted,
            "created_by_user_id": self.created_by_user_id,
            "updated_by_user_id": self.updated_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "user": self.user.to_summary() if self.user else None,
            "kios": self.kiosk.to_summary() if self.kiosk else None,
            "product": self.product.to_summary() if self.product else None,
        }


class AvailabilitySnapshot(db.Model):
    """
    Persisted availability per (product, kiosk) pair (stok tersedia).

    DERIVED DATA: This table is an index over the stock_masuk / stock_keluar
    ledgers in the global scope (all users). snapshot_service.resync() is its
    only writer and always recomputes from the ledger; nothing patches the
    quantities incrementally.

    - One row per pair that has ever had ledger activity, created lazily.
    - Rows are never deleted, even when quantities fall to zero.
    - quantity_available = max(0, quantity_in - quantity_out).
    - Field Assistants never get rows here; their figures are computed live.

    version_id turns concurrent resyncs of the same pair into a StaleDataError
    instead of a lost update.
    """
    __tablename__ = "stock_tersedia"
    __table_args__ = (
        db.UniqueConstraint("product_id", "kios_id", name="uq_stock_tersedia_product_kios"),
        db.CheckConstraint("quantity_in >= 0", name="ck_stock_tersedia_quantity_in_non_negative"),
        db.CheckConstraint("quantity_out >= 0", name="ck_stock_tersedia_quantity_out_non_negative"),
        db.CheckConstraint(
            "quantity_available >= 0", name="ck_stock_tersedia_quantity_available_non_negative"
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    kios_id = db.Column(db.Integer, db.ForeignKey("master_kios.id"), nullable=False, index=True)

    last_in_date = db.Column(db.Date, nullable=True)
    quantity_in = db.Column(db.Integer, nullable=False, default=0)
    last_out_date = db.Column(db.Date, nullable=True)
    quantity_out = db.Column(db.Integer, nullable=False, default=0)
    quantity_available = db.Column(db.Integer, nullable=False, default=0)

    is_deleted = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    updated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    version_id = db.Column(db.Integer, nullable=False, default=1)

    product = db.relationship("Product")
    kiosk = db.relationship("Kiosk")

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return (
            f"<AvailabilitySnapshot product_id={self.product_id} kios_id={self.kios_id} "
            f"in={self.quantity_in} out={self.quantity_out} available={self.quantity_available}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "kios_id": self.kios_id,
            "last_in_date": to_iso_date(self.last_in_date),
            "quantity_in": self.quantity_in,
            "last_out_date": to_iso_date(self.last_out_date),
            "quantity_out": self.quantity_out,
            "quantity_available": self.quantity_available,
            "is_deleted": self.is_deleted,
            "created_by_user_id": self.created_by_user_id,
            "updated_by_user_id": self.updated_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
