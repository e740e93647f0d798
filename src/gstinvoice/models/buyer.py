from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Buyer:
    """Customer receiving the invoice. Only name and address are mandatory."""

    name: str
    address: str
    gstin: str = ""
    phone: str = ""
    email: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> Buyer:
        return cls(
            name=d["name"],
            address=d["address"],
            gstin=str(d.get("gstin") or "").upper(),
            phone=str(d.get("phone") or ""),
            email=d.get("email") or "",
        )

    def to_dict(self) -> dict:
        data = {"name": self.name, "address": self.address}
        optional = {"gstin": self.gstin, "phone": self.phone, "email": self.email}
        data.update({k: v for k, v in optional.items() if v})
        return data
