"""Settlement rows for a group. Never commits; the caller owns the transaction."""
from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy.orm import Session, joinedload

from groupsettle.models import Settlement


class SettlementStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, settlement_id: int) -> Optional[Settlement]:
        return self.db.query(Settlement).filter(Settlement.id == settlement_id).first()

    def find_many_by_group(self, group_id: int, settled: Optional[bool] = None) -> list[Settlement]:
        q = (
            self.db.query(Settlement)
            .options(joinedload(Settlement.from_person), joinedload(Settlement.to_person))
            .filter(Settlement.group_id == group_id)
        )
        if settled is not None:
            q = q.filter(Settlement.settled.is_(settled))
        # pending first, newest first
        return q.order_by(
            Settlement.settled.asc(), Settlement.created_at.desc(), Settlement.id.desc()
        ).all()

    def insert_many(self, group_id: int, rows: Iterable[dict]) -> list[Settlement]:
        created = [
            Settlement(
                group_id=group_id,
                from_id=row["from_id"],
                to_id=row["to_id"],
                amount=row["amount"],
                expense_id=row.get("expense_id"),
                settled=False,
            )
            for row in rows
        ]
        self.db.add_all(created)
        self.db.flush()
        return created

    def delete_many(self, group_id: int, settled: bool = False) -> int:
        return (
            self.db.query(Settlement)
            .filter(Settlement.group_id == group_id, Settlement.settled.is_(settled))
            .delete(synchronize_session="fetch")
        )

    def delete_by_id(self, settlement_id: int) -> bool:
        deleted = (
            self.db.query(Settlement)
            .filter(Settlement.id == settlement_id)
            .delete(synchronize_session="fetch")
        )
        return deleted > 0

    def mark_settled(self, settlement_ids: Iterable[int]) -> int:
        ids = list(settlement_ids)
        if not ids:
            return 0
        return (
            self.db.query(Settlement)
            .filter(Settlement.id.in_(ids), Settlement.settled.is_(False))
            .update({Settlement.settled: True}, synchronize_session="fetch")
        )

    def mark_all_settled(self, group_id: int) -> int:
        return (
            self.db.query(Settlement)
            .filter(Settlement.group_id == group_id, Settlement.settled.is_(False))
            .update({Settlement.settled: True}, synchronize_session="fetch")
        )
