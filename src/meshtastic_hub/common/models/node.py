"""Node model: the latest known state of a mesh node."""

from typing import Optional

from sqlalchemy import BigInteger, Boolean, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from meshtastic_hub.common.models.base import Base, TimestampMixin


class Node(TimestampMixin, Base):
    """A mesh node, keyed by its 32-bit node number.

    Identity fields come from NODEINFO_APP packets; position and device
    metrics are updated in place from POSITION_APP and TELEMETRY_APP.
    """

    __tablename__ = "nodes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    node_id: Mapped[int] = mapped_column(BigInteger, unique=True, index=True)

    long_name: Mapped[Optional[str]] = mapped_column(String(255))
    short_name: Mapped[Optional[str]] = mapped_column(String(32))
    hardware_model: Mapped[Optional[int]] = mapped_column(Integer)
    is_licensed: Mapped[bool] = mapped_column(Boolean, default=False)
    role: Mapped[Optional[int]] = mapped_column(Integer)

    latitude: Mapped[Optional[int]] = mapped_column(Integer)
    longitude: Mapped[Optional[int]] = mapped_column(Integer)
    altitude: Mapped[Optional[int]] = mapped_column(Integer)

    battery_level: Mapped[Optional[int]] = mapped_column(Integer)
    voltage: Mapped[Optional[float]] = mapped_column(Float)
    channel_utilization: Mapped[Optional[float]] = mapped_column(Float)
    air_util_tx: Mapped[Optional[float]] = mapped_column(Float)

    def __repr__(self) -> str:
        return f"<Node(node_id={self.node_id!r}, long_name={self.long_name!r})>"
