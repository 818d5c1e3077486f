"""
SQLAlchemy models for accounts, relationship declarations and reputation scores.

Ratings are stored as relationships whose relation_type is a letter A-D; every
other relation_type is a social/ownership declaration.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Account(Base):
    """Ledger account known to the directory."""

    __tablename__ = "accounts"

    account_id = Column(String(56), primary_key=True)
    name = Column(String(256), nullable=True)
    total_xlm_value = Column(Numeric(20, 7), nullable=False, default=0)


class Relationship(Base):
    """
    One directed declaration from source to target.

    (source, relation_type, relation_index) is unique: an account may declare
    the same type several times under different indexes.
    """

    __tablename__ = "relationships"

    source_account_id = Column(String(56), primary_key=True)
    relation_type = Column(String(64), primary_key=True)
    relation_index = Column(String(16), primary_key=True, default="")
    target_account_id = Column(String(56), nullable=False, index=True)


class ReputationScoreRow(Base):
    """Persisted batch result; one row per rated account."""

    __tablename__ = "reputation_scores"

    account_id = Column(
        String(56),
        ForeignKey("accounts.account_id", ondelete="CASCADE"),
        primary_key=True,
    )
    weighted_score = Column(Float, nullable=False, default=0.0)
    base_score = Column(Float, nullable=False, default=0.0)
    count_a = Column(Integer, nullable=False, default=0)
    count_b = Column(Integer, nullable=False, default=0)
    count_c = Column(Integer, nullable=False, default=0)
    count_d = Column(Integer, nullable=False, default=0)
    total_ratings = Column(Integer, nullable=False, default=0)
    total_weight = Column(Float, nullable=False, default=0.0)
    calculated_at = Column(DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_id": self.account_id,
            "weighted_score": self.weighted_score,
            "base_score": self.base_score,
            "count_a": self.count_a,
            "count_b": self.count_b,
            "count_c": self.count_c,
            "count_d": self.count_d,
            "total_ratings": self.total_ratings,
            "total_weight": self.total_weight,
            "calculated_at": self.calculated_at,
        }
