from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PairingRequest:
    id: str
    code: str
    created_at: float
    app_name: str

    @classmethod
    def from_payload(
        cls,
        payload: dict,
        *,
        app_name: str,
        created_at: float,
    ) -> "PairingRequest":
        pin_id = payload.get("id")
        code = payload.get("code")

        if pin_id is None or pin_id == "":
            raise RuntimeError("PIN response missing id.")
        if not isinstance(code, str) or not code:
            raise RuntimeError("PIN response missing code.")

        return cls(id=str(pin_id), code=code, created_at=created_at, app_name=app_name)
