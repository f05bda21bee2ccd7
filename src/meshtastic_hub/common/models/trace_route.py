"""Trace route model."""

from typing import Any

from sqlalchemy import JSON, BigInteger, Integer
from sqlalchemy.orm import Mapped, mapped_column

from meshtastic_hub.common.models.base import Base, TimestampMixin


class TraceRoute(TimestampMixin, Base):
    """A route reported by a TRACEROUTE_APP packet (append-only)."""

    __tablename__ = "trace_routes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    node_id: Mapped[int] = mapped_column(BigInteger, index=True)
    route: Mapped[list[Any]] = mapped_column(JSON, default=list)
