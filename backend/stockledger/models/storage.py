from __future__ import annotations

from ..extensions import db
from stockledger.time_utils import to_utc_z


class StorageEntry(db.Model):
    """
    One key-value pair in a user's storage scope.

    The inventory core treats this table as an opaque byte store: it reads a
    namespace on load and overwrites it after a mutation. No inventory
    business rules live here.
    """
    __tablename__ = "storage_entries"
    __table_args__ = (
        db.UniqueConstraint("scope_id", "key", name="uq_storage_entries_scope_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    scope_id = db.Column(db.String(128), nullable=False, index=True)
    key = db.Column(db.String(255), nullable=False)
    value = db.Column(db.LargeBinary, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<StorageEntry scope_id={self.scope_id!r} key={self.key!r} size={len(self.value or b'')}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "scope_id": self.scope_id,
            "key": self.key,
            "size": len(self.value or b""),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
