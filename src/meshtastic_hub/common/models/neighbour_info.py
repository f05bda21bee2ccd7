"""Neighbour info model."""

from typing import Any, Optional

from sqlalchemy import JSON, BigInteger, Integer
from sqlalchemy.orm import Mapped, mapped_column

from meshtastic_hub.common.models.base import Base, TimestampMixin


class NeighbourInfo(TimestampMixin, Base):
    """Neighbour list reported by a NEIGHBORINFO_APP packet (append-only).

    `neighbours` holds a list of {"node_id": int, "snr": float}.
    """

    __tablename__ = "neighbour_infos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    node_id: Mapped[int] = mapped_column(BigInteger, index=True)
    node_broadcast_interval_secs: Mapped[Optional[int]] = mapped_column(Integer)
    neighbours: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
