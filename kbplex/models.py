from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Device:
    key: str

    @classmethod
    def from_payload(cls, payload: dict) -> "Device":
        key = payload.get("key")
        if key is None or key == "":
            raise RuntimeError("Device payload missing key.")
        return cls(key=str(key))


@dataclass(frozen=True)
class Dvr:
    key: str
    devices: list[Device] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict) -> "Dvr":
        key = payload.get("key")
        if key is None or key == "":
            raise RuntimeError("DVR payload missing key.")

        raw_devices = payload.get("Device") or []
        if not isinstance(raw_devices, list):
            raise RuntimeError("DVR payload Device must be a list.")

        return cls(
            key=str(key),
            devices=[Device.from_payload(device) for device in raw_devices],
        )


@dataclass(frozen=True)
class Channel:
    number: int
