from __future__ import annotations

from dataclasses import dataclass

DEFAULT_TAGLINE = "AN EVENT MANAGEMENT COMPANY"


@dataclass(frozen=True)
class Company:
    """Seller: the company issuing the invoice or quotation."""

    name: str
    address: str
    phone: str
    gstin: str
    email: str
    pan: str = ""
    tagline: str = ""
    logo_path: str | None = None
    signature_path: str | None = None

    @property
    def effective_pan(self) -> str:
        """PAN as printed: the stored one, else characters 3-12 of the GSTIN."""
        if self.pan:
            return self.pan
        return self.gstin[2:12] if self.gstin else ""

    @property
    def display_tagline(self) -> str:
        return (self.tagline or DEFAULT_TAGLINE).upper()

    @classmethod
    def from_dict(cls, d: dict) -> Company:
        """Create a Company from a YAML-loaded dict, applying defaults for optional fields."""
        return cls(
            name=d["name"],
            address=d["address"],
            phone=str(d["phone"]),
            gstin=str(d["gstin"]).upper(),
            email=d["email"],
            pan=str(d.get("pan") or "").upper(),
            tagline=d.get("tagline") or "",
            logo_path=d.get("logo_path"),
            signature_path=d.get("signature_path"),
        )

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "address": self.address,
            "phone": self.phone,
            "gstin": self.gstin,
            "email": self.email,
        }
        optional = {
            "pan": self.pan,
            "tagline": self.tagline,
            "logo_path": self.logo_path,
            "signature_path": self.signature_path,
        }
        data.update({k: v for k, v in optional.items() if v})
        return data
