"""Map report model."""

from typing import Optional

from sqlalchemy import BigInteger, Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from meshtastic_hub.common.models.base import Base, TimestampMixin


class MapReport(TimestampMixin, Base):
    """A MAP_REPORT_APP summary published by a node (append-only)."""

    __tablename__ = "map_reports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    node_id: Mapped[int] = mapped_column(BigInteger, index=True)
    long_name: Mapped[Optional[str]] = mapped_column(String(255))
    short_name: Mapped[Optional[str]] = mapped_column(String(32))
    role: Mapped[Optional[int]] = mapped_column(Integer)
    hardware_model: Mapped[Optional[int]] = mapped_column(Integer)
    firmware_version: Mapped[Optional[str]] = mapped_column(String(64))
    region: Mapped[Optional[int]] = mapped_column(Integer)
    modem_preset: Mapped[Optional[int]] = mapped_column(Integer)
    has_default_channel: Mapped[Optional[bool]] = mapped_column(Boolean)
    latitude: Mapped[Optional[int]] = mapped_column(Integer)
    longitude: Mapped[Optional[int]] = mapped_column(Integer)
    altitude: Mapped[Optional[int]] = mapped_column(Integer)
    position_precision: Mapped[Optional[int]] = mapped_column(Integer)
    num_online_local_nodes: Mapped[Optional[int]] = mapped_column(Integer)
