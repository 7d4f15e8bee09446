"""Vehicle (Part-B) history entry."""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class VehicleHistoryEntry:
    """One transport-leg update attached to an E-Way Bill."""

    transport_mode: str
    distance: int
    updated_at: datetime
    vehicle_number: str | None = None
    transporter_id: str | None = None
    transporter_name: str | None = None
    vehicle_type: str | None = None
    trans_doc_no: str | None = None
    trans_doc_date: str | None = None
    updated_by: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["updated_at"] = self.updated_at.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VehicleHistoryEntry":
        values = dict(data)
        values["updated_at"] = datetime.fromisoformat(values["updated_at"])
        return cls(**values)
