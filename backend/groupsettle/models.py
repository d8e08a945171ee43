"""SQLAlchemy models."""
from sqlalchemy import Column, Integer, String, Float, ForeignKey, Table, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from groupsettle.database import Base

group_members = Table(
    "group_members",
    Base.metadata,
    Column("group_id", Integer, ForeignKey("groups.id"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    groups = relationship("Group", secondary=group_members, back_populates="members")
    owned_groups = relationship("Group", back_populates="owner")


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(512), nullable=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("User", back_populates="owned_groups")
    members = relationship("User", secondary=group_members, back_populates="groups")
    people = relationship(
        "Person", back_populates="group", cascade="all, delete-orphan", order_by="Person.id"
    )
    expenses = relationship("Expense", back_populates="group", cascade="all, delete-orphan")
    settlements = relationship("Settlement", back_populates="group", cascade="all, delete-orphan")


class Person(Base):
    __tablename__ = "people"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)

    group = relationship("Group", back_populates="people")


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    paid_by_id = Column(Integer, ForeignKey("people.id"), nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(String(512), nullable=False)
    split_mode = Column(String(20), nullable=False, default="equal")
    settled_amount = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    group = relationship("Group", back_populates="expenses")
    paid_by = relationship("Person", foreign_keys=[paid_by_id])
    shares = relationship(
        "Share", back_populates="expense", cascade="all, delete-orphan", order_by="Share.id"
    )


class Share(Base):
    __tablename__ = "shares"

    id = Column(Integer, primary_key=True, index=True)
    expense_id = Column(Integer, ForeignKey("expenses.id"), nullable=False, index=True)
    person_id = Column(Integer, ForeignKey("people.id"), nullable=False)
    amount = Column(Float, nullable=False)

    expense = relationship("Expense", back_populates="shares")
    person = relationship("Person")


class Settlement(Base):
    __tablename__ = "settlements"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id"), nullable=False, index=True)
    from_id = Column(Integer, ForeignKey("people.id"), nullable=False)
    to_id = Column(Integer, ForeignKey("people.id"), nullable=False)
    amount = Column(Float, nullable=False)
    settled = Column(Boolean, nullable=False, default=False)
    # Expense that gave rise to the debt, for display only
    expense_id = Column(Integer, ForeignKey("expenses.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    group = relationship("Group", back_populates="settlements")
    from_person = relationship("Person", foreign_keys=[from_id])
    to_person = relationship("Person", foreign_keys=[to_id])
