"""Normalized, database-ready records built from decoded payloads.

Measurements that firmware reports as exactly zero when a sensor is missing
(altitude, battery level, voltage, channel utilization, air util tx) are
stored as None. Coordinates and node numbers keep zero as a real value.
"""

from dataclasses import dataclass
from typing import Optional, TypeVar, Union

from meshtastic.protobuf import mesh_pb2, mqtt_pb2, telemetry_pb2

NumberT = TypeVar("NumberT", int, float)


def zero_as_none(value: NumberT) -> Optional[NumberT]:
    """Map an exactly-zero measurement to None (not reported)."""
    return None if value == 0 else value


@dataclass(frozen=True)
class PositionRecord:
    node_id: int
    latitude: int
    longitude: int
    altitude: Optional[int]


@dataclass(frozen=True)
class NodeInfoRecord:
    node_id: int
    long_name: str
    short_name: str
    hardware_model: int
    is_licensed: bool
    role: int


@dataclass(frozen=True)
class TelemetryRecord:
    node_id: int
    battery_level: Optional[int]
    voltage: Optional[float]
    channel_utilization: Optional[float]
    air_util_tx: Optional[float]

    def metrics(self) -> dict[str, Optional[float]]:
        """Device metric columns to write on the node."""
        return {
            "battery_level": self.battery_level,
            "voltage": self.voltage,
            "channel_utilization": self.channel_utilization,
            "air_util_tx": self.air_util_tx,
        }


@dataclass(frozen=True)
class TraceRouteRecord:
    node_id: int
    route: tuple[int, ...] = ()


@dataclass(frozen=True)
class Neighbour:
    node_id: int
    snr: float


@dataclass(frozen=True)
class NeighbourInfoRecord:
    node_id: int
    node_broadcast_interval_secs: int
    neighbours: tuple[Neighbour, ...] = ()


@dataclass(frozen=True)
class MapReportRecord:
    node_id: int
    long_name: str
    short_name: str
    role: int
    hardware_model: int
    firmware_version: str
    region: int
    modem_preset: int
    has_default_channel: bool
    latitude: int
    longitude: int
    altitude: Optional[int]
    position_precision: int
    num_online_local_nodes: int


NormalizedRecord = Union[
    PositionRecord,
    NodeInfoRecord,
    TelemetryRecord,
    TraceRouteRecord,
    NeighbourInfoRecord,
    MapReportRecord,
]


def normalize_position(
    node_id: int, position: mesh_pb2.Position
) -> Optional[PositionRecord]:
    """Build a position record; None unless both coordinates are present."""
    if not (position.HasField("latitude_i") and position.HasField("longitude_i")):
        return None
    return PositionRecord(
        node_id=node_id,
        latitude=position.latitude_i,
        longitude=position.longitude_i,
        altitude=zero_as_none(position.altitude),
    )


def normalize_user(node_id: int, user: mesh_pb2.User) -> NodeInfoRecord:
    return NodeInfoRecord(
        node_id=node_id,
        long_name=user.long_name,
        short_name=user.short_name,
        hardware_model=user.hw_model,
        is_licensed=user.is_licensed is True,
        role=user.role,
    )


def normalize_telemetry(
    node_id: int, telemetry: telemetry_pb2.Telemetry
) -> Optional[TelemetryRecord]:
    """Build a device metrics record; None for other telemetry variants."""
    if not telemetry.HasField("device_metrics"):
        return None
    metrics = telemetry.device_metrics
    return TelemetryRecord(
        node_id=node_id,
        battery_level=zero_as_none(metrics.battery_level),
        voltage=zero_as_none(metrics.voltage),
        channel_utilization=zero_as_none(metrics.channel_utilization),
        air_util_tx=zero_as_none(metrics.air_util_tx),
    )


def normalize_route_discovery(
    node_id: int, route_discovery: mesh_pb2.RouteDiscovery
) -> TraceRouteRecord:
    return TraceRouteRecord(node_id=node_id, route=tuple(route_discovery.route))


def normalize_neighbor_info(
    node_id: int, neighbor_info: mesh_pb2.NeighborInfo
) -> NeighbourInfoRecord:
    return NeighbourInfoRecord(
        node_id=node_id,
        node_broadcast_interval_secs=neighbor_info.node_broadcast_interval_secs,
        neighbours=tuple(
            Neighbour(node_id=neighbour.node_id, snr=neighbour.snr)
            for neighbour in neighbor_info.neighbors
        ),
    )


def normalize_map_report(
    node_id: int, map_report: mqtt_pb2.MapReport
) -> MapReportRecord:
    return MapReportRecord(
        node_id=node_id,
        long_name=map_report.long_name,
        short_name=map_report.short_name,
        role=map_report.role,
        hardware_model=map_report.hw_model,
        firmware_version=map_report.firmware_version,
        region=map_report.region,
        modem_preset=map_report.modem_preset,
        has_default_channel=map_report.has_default_channel,
        latitude=map_report.latitude_i,
        longitude=map_report.longitude_i,
        altitude=zero_as_none(map_report.altitude),
        position_precision=map_report.position_precision,
        num_online_local_nodes=map_report.num_online_local_nodes,
    )
