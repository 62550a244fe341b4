"""gRPC client for the Starlink dish.

The dish serves a single ``SpaceX.API.Device.Device/Handle`` method whose
request/response are large oneof messages. Message classes are resolved
at runtime through server reflection, so no generated stubs have to be
kept in sync with the firmware.

Usage:
    client = GrpcDeviceClient("192.168.100.1:9200")
    history = client.get_history()
    status = client.get_status()
    client.close()
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional

import grpc
from google.protobuf import message_factory
from google.protobuf.descriptor_pool import DescriptorPool
from grpc_reflection.v1alpha.proto_reflection_descriptor_database import (
    ProtoReflectionDescriptorDatabase,
)

from .base import DeviceError, DeviceTimeout
from .models import (
    DeviceInfo,
    GpsStats,
    HistorySnapshot,
    ObstructionStats,
    StatusSnapshot,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "SpaceX.API.Device.Device"
HANDLE_METHOD = "Handle"
DEFAULT_TIMEOUT_SECONDS = 10.0


def status_from_proto(msg: Any) -> StatusSnapshot:
    """Convert a ``DishGetStatusResponse`` message into a StatusSnapshot."""
    info = msg.device_info
    obstruction = msg.obstruction_stats
    gps = msg.gps_stats
    return StatusSnapshot(
        device_info=DeviceInfo(
            id=info.id,
            hardware_version=info.hardware_version,
            software_version=info.software_version,
            country_code=info.country_code,
            boot_count=int(info.bootcount),
        ),
        uptime_s=int(msg.device_state.uptime_s),
        obstruction_stats=ObstructionStats(
            fraction_obstructed=float(obstruction.fraction_obstructed),
            valid_s=float(obstruction.valid_s),
            time_obstructed=float(obstruction.time_obstructed),
        ),
        downlink_throughput_bps=float(msg.downlink_throughput_bps),
        uplink_throughput_bps=float(msg.uplink_throughput_bps),
        pop_ping_latency_ms=float(msg.pop_ping_latency_ms),
        boresight_azimuth_deg=float(msg.boresight_azimuth_deg),
        boresight_elevation_deg=float(msg.boresight_elevation_deg),
        gps_stats=GpsStats(
            gps_valid=bool(gps.gps_valid),
            gps_sats=int(gps.gps_sats),
        ),
        eth_speed_mbps=int(msg.eth_speed_mbps),
        is_snr_above_noise_floor=bool(msg.is_snr_above_noise_floor),
    )


def _floats(values) -> List[float]:
    return [float(v) for v in values]


def history_from_proto(msg: Any) -> HistorySnapshot:
    """Convert a ``DishGetHistoryResponse`` message into a HistorySnapshot."""
    return HistorySnapshot(
        sequence=int(msg.current),
        downlink_throughput_bps=_floats(msg.downlink_throughput_bps),
        uplink_throughput_bps=_floats(msg.uplink_throughput_bps),
        power_in=_floats(msg.power_in),
        pop_ping_latency_ms=_floats(msg.pop_ping_latency_ms),
        pop_ping_drop_rate=_floats(msg.pop_ping_drop_rate),
    )


class GrpcDeviceClient:
    """Dish client over an insecure gRPC channel.

    Every call carries ``timeout_seconds`` as its deadline; a deadline
    miss raises DeviceTimeout, any other RPC failure raises DeviceError.
    """

    def __init__(
        self,
        address: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        channel: Optional[grpc.Channel] = None,
    ):
        self._address = address
        self._timeout = timeout_seconds
        self._channel = channel or grpc.insecure_channel(address)
        self._resolve_lock = threading.Lock()
        self._request_cls: Optional[type] = None
        self._handle: Optional[Callable[..., Any]] = None

    @property
    def address(self) -> str:
        return self._address

    def close(self) -> None:
        self._channel.close()

    def get_status(self) -> StatusSnapshot:
        resp = self._call("get_status")
        if not resp.HasField("dish_get_status"):
            raise DeviceError("no dish status in response")
        return status_from_proto(resp.dish_get_status)

    def get_history(self) -> HistorySnapshot:
        resp = self._call("get_history")
        if not resp.HasField("dish_get_history"):
            raise DeviceError("no dish history in response")
        return history_from_proto(resp.dish_get_history)

    def _call(self, request_field: str) -> Any:
        handle, request_cls = self._resolve()
        request = request_cls()
        getattr(request, request_field).SetInParent()
        try:
            return handle(request, timeout=self._timeout)
        except grpc.RpcError as e:
            raise self._translate(request_field, e) from e

    def _resolve(self):
        """Look up the Handle method via reflection (once per client)."""
        with self._resolve_lock:
            if self._handle is not None:
                return self._handle, self._request_cls

            try:
                grpc.channel_ready_future(self._channel).result(timeout=self._timeout)
            except grpc.FutureTimeoutError as e:
                raise DeviceTimeout("connect", self._timeout) from e

            try:
                pool = DescriptorPool(ProtoReflectionDescriptorDatabase(self._channel))
                service = pool.FindServiceByName(SERVICE_NAME)
                method = service.FindMethodByName(HANDLE_METHOD)
            except grpc.RpcError as e:
                raise self._translate("reflection", e) from e
            except KeyError as e:
                raise DeviceError(f"service {SERVICE_NAME} not exposed by {self._address}") from e

            request_cls = message_factory.GetMessageClass(method.input_type)
            response_cls = message_factory.GetMessageClass(method.output_type)
            self._handle = self._channel.unary_unary(
                f"/{SERVICE_NAME}/{HANDLE_METHOD}",
                request_serializer=request_cls.SerializeToString,
                response_deserializer=response_cls.FromString,
            )
            self._request_cls = request_cls
            logger.info("[DISH] resolved %s/%s at %s", SERVICE_NAME, HANDLE_METHOD, self._address)
            return self._handle, self._request_cls

    def _translate(self, operation: str, err: grpc.RpcError) -> DeviceError:
        code = err.code() if hasattr(err, "code") else None
        if code == grpc.StatusCode.DEADLINE_EXCEEDED:
            return DeviceTimeout(operation, self._timeout)
        details = err.details() if hasattr(err, "details") else str(err)
        return DeviceError(f"{operation} rpc failed: {code} {details}")
