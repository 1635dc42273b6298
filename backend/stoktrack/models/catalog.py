from __future__ import annotations

from ..extensions import db
from stoktrack.time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data.

    Ledger rows reference products by id; once referenced, only the display
    fields (name, package_unit, unit) are expected to change. Products are
    retired with is_deleted, never removed, so historical ledger rows keep a
    valid reference.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_active_name", "is_deleted", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    # Package description shown next to the name, e.g. "Botol 500ml"
    package_unit = db.Column(db.String(255), nullable=False)
    # Optional unit of measure, e.g. "pcs"
    unit = db.Column(db.String(64), nullable=True)

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

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} package_unit={self.package_unit!r}>"

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "package_unit": self.package_unit,
            "unit": self.unit,
        }

    def to_dict(self) -> dict:
        return {
            **self.to_summary(),
            "is_deleted": self.is_deleted,
            "created_by_user_id": self.created_by_user_id,
            "updated_by_user_id": self.updated_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Kiosk(db.Model):
    """Outlet (kios) where stock is received and dispatched."""
    __tablename__ = "master_kios"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

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

    def __repr__(self) -> str:
        return f"<Kiosk id={self.id} name={self.name!r}>"

    def to_summary(self) -> dict:
        return {"id": self.id, "name": self.name}

    def to_dict(self) -> dict:
        return {
            **self.to_summary(),
            "is_deleted": self.is_deleted,
            "created_by_user_id": self.created_by_user_id,
            "updated_by_user_id": self.updated_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
