"""Domain models for NanoDLP plates, status snapshots and command results."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from nanodlp_bridge.models.parsing import (
    first_present,
    format_hms,
    parse_bool,
    parse_duration,
    parse_float,
    parse_int,
    parse_layer_height_mm,
    parse_volume_ml,
)

# NanoDLP reports CurrentHeight in device steps; 6400 steps per millimetre.
DEVICE_UNITS_PER_MM = 6400.0

PLATE_ID_KEYS = ("PlateID", "plate_id", "Plateid", "plateId")

STATUS_FILE_KEYS = (
    "file",
    "File",
    "plate",
    "Plate",
    "file_data",
    "FileData",
    "fileData",
    "current_file",
    "CurrentFile",
    "job",
    "Job",
)

_USED_MATERIAL_KEYS = (
    "used_material",
    "usedMaterial",
    "UsedMaterial",
    "UsedMaterialMl",
    "UsedResin",
    "ResinVolume",
    "UsedVolume",
    "Volume",
    "TotalSolidArea",
)


class CanonicalStatus(str, Enum):
    """Status strings exposed to UI clients."""

    PRINTING = "Printing"
    PAUSING = "Pausing"
    PAUSED = "Paused"
    CANCELING = "Canceling"
    IDLE = "Idle"


class PlateRecord(BaseModel):
    """A printable plate as listed by ``/plates/list/json``."""

    model_config = ConfigDict(frozen=True)

    plate_id: Optional[int] = None
    path: str = ""
    name: str = ""
    last_modified: Optional[int] = None
    layer_count: Optional[int] = None
    used_material: Optional[float] = None
    print_time: Optional[float] = None
    preview_available: bool = False
    parent_path: str = ""
    file_size: Optional[int] = None
    material_name: str = "N/A"
    layer_height: Optional[float] = None
    location_category: str = "Local"

    @property
    def resolved_path(self) -> str:
        return self.path or self.name or ""

    @classmethod
    def from_json(cls, entry: Dict[str, Any]) -> "PlateRecord":
        path = first_present(entry, ("path", "Path", "file_path", "File"))
        path = str(path) if path is not None else None
        name = first_present(entry, ("name", "Name"))
        name = str(name) if name is not None else None
        if name is None and path is not None:
            name = path.split("/")[-1]
        if path is None and name is not None:
            path = name
        resolved_path = path or ""

        parent_path = first_present(entry, ("parent_path", "parentPath"))
        parent_path = str(parent_path) if parent_path is not None else ""
        if not parent_path and "/" in resolved_path:
            parent_path = resolved_path.rsplit("/", 1)[0]

        layer_height = parse_layer_height_mm(first_present(entry, ("layer_height", "layerHeight", "PlateHeight")))
        if layer_height is None:
            layer_height = parse_layer_height_mm(entry.get("LayerThickness"), assume_microns=True)
        if layer_height is None:
            layer_height = parse_layer_height_mm(entry.get("ZRes"), assume_microns=True)

        location = first_present(entry, ("location_category", "location"))
        material = entry.get("ProfileName")
        used_material = first_present(entry, _USED_MATERIAL_KEYS)

        return cls(
            plate_id=parse_int(first_present(entry, ("PlateID", "plate_id"))),
            path=resolved_path,
            name=name or resolved_path,
            last_modified=parse_int(
                first_present(entry, ("last_modified", "LastModified", "Updated", "UpdatedOn", "CreatedDate"))
            ),
            layer_count=parse_int(first_present(entry, ("layer_count", "LayerCount", "layerCount"))),
            used_material=parse_volume_ml(used_material if used_material is not None else 0),
            print_time=parse_duration(first_present(entry, ("print_time", "printTime", "PrintTime"))),
            preview_available=parse_bool(first_present(entry, ("Preview", "preview", "HasPreview"))),
            parent_path=parent_path,
            file_size=parse_int(first_present(entry, ("file_size", "FileSize", "size", "Size"))),
            material_name=str(material) if material is not None else "N/A",
            layer_height=layer_height,
            location_category=str(location) if location is not None else "Local",
        )

    def _file_data(self) -> Dict[str, Any]:
        return {
            "path": self.resolved_path,
            "name": self.name or self.resolved_path,
            "last_modified": self.last_modified or 0,
            "parent_path": self.parent_path,
            "file_size": self.file_size,
        }

    def to_file_entry(self) -> Dict[str, Any]:
        """Shape used by the file listing."""
        entry: Dict[str, Any] = {
            "file_data": self._file_data(),
            "location_category": self.location_category,
            "material_name": self.material_name,
            "used_material": self.used_material or 0.0,
            "print_time": self.print_time or 0.0,
            "layer_count": self.layer_count or 0,
            "preview_available": self.preview_available,
        }
        if self.print_time is not None:
            entry["print_time_formatted"] = format_hms(self.print_time)
        if self.layer_height is not None:
            entry["layer_height"] = self.layer_height
        if self.plate_id is not None:
            entry["plate_id"] = self.plate_id
        return entry

    def to_metadata(self) -> Dict[str, Any]:
        """Shape used by the file details endpoint."""
        meta: Dict[str, Any] = {
            "file_data": self._file_data(),
            "layer_height": self.layer_height,
            "material_name": self.material_name,
            "used_material": self.used_material or 0.0,
            "print_time": self.print_time or 0.0,
            "plate_id": self.plate_id,
            "preview_available": self.preview_available,
        }
        if self.print_time is not None:
            meta["print_time_formatted"] = format_hms(self.print_time)
        return meta


class StatusSnapshot(BaseModel):
    """One parsed ``/status`` reply. Built per poll and never cached."""

    model_config = ConfigDict(frozen=True)

    printing: bool = False
    paused: bool = False
    state_code: Optional[int] = None
    state: str = "idle"
    status_message: Optional[str] = None
    current_height: Optional[int] = None
    layer_id: Optional[int] = None
    layers_count: Optional[int] = None
    progress: Optional[float] = None
    z: Optional[float] = None
    curing: bool = False
    resin_level: Optional[float] = None
    temp: Optional[float] = None
    mcu_temp: Optional[float] = None
    file: Optional[PlateRecord] = None
    raw_status: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Dict[str, Any]) -> "StatusSnapshot":
        plate: PlateRecord | None = None
        for key in STATUS_FILE_KEYS:
            candidate = payload.get(key)
            if isinstance(candidate, dict):
                plate = PlateRecord.from_json(candidate)
                break

        printing = (
            payload.get("Printing") is True
            or payload.get("printing") is True
            or payload.get("Started") == 1
            or payload.get("started") == 1
        )
        paused = payload.get("Paused") is True or payload.get("paused") is True
        message = first_present(payload, ("Status", "status"))
        current_height = parse_int(first_present(payload, ("CurrentHeight", "current_height")))
        layer_id = parse_int(first_present(payload, ("LayerID", "layer_id")))
        layers_count = parse_int(first_present(payload, ("LayersCount", "layers_count")))

        if printing:
            state = "printing"
        elif paused:
            state = "paused"
        else:
            state = "idle"

        progress = None
        if layer_id is not None and layers_count:
            progress = min(max(layer_id / layers_count, 0.0), 1.0)

        z = current_height / DEVICE_UNITS_PER_MM if current_height is not None else None

        return cls(
            printing=printing,
            paused=paused,
            state_code=parse_int(first_present(payload, ("State", "state"))),
            state=state,
            status_message=str(message) if message is not None else None,
            current_height=current_height,
            layer_id=layer_id,
            layers_count=layers_count,
            progress=progress,
            z=z,
            curing=payload.get("Curing") is True or payload.get("curing") is True,
            resin_level=parse_float(first_present(payload, ("resin", "ResinLevelMm", "resin_level_mm"))),
            temp=parse_float(payload.get("temp")),
            mcu_temp=parse_float(payload.get("mcu")),
            file=plate,
            raw_status=str(payload["Status"]) if payload.get("Status") is not None else None,
        )

    def with_file(self, plate: PlateRecord) -> "StatusSnapshot":
        return self.model_copy(update={"file": plate})


class ManualResult(BaseModel):
    """Outcome of a manual/motion command."""

    model_config = ConfigDict(frozen=True)

    ok: bool = True
    message: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ManualResult":
        if payload is None:
            return cls(ok=True)
        if isinstance(payload, dict):
            ok_value = payload.get("ok")
            ok = ok_value if isinstance(ok_value, bool) else payload.get("result") == "ok"
            message = payload.get("message")
            return cls(ok=ok, message=str(message) if message is not None else None)
        if isinstance(payload, str):
            text = payload.strip()
            return cls(ok=True, message=text or None)
        if isinstance(payload, bool):
            return cls(ok=payload)
        return cls(ok=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class NotificationType(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    title: str
    actions: tuple[str, ...] = Field(default_factory=tuple)
    priority: int


NOTIFICATION_TYPES: Dict[str, NotificationType] = {
    item.type: item
    for item in (
        NotificationType(type="error", title="Error", actions=("continue", "stop"), priority=1),
        NotificationType(type="warn", title="Warning", actions=("continue", "stop"), priority=2),
        NotificationType(type="klipper-error", title="Klipper Error", actions=("confirm",), priority=3),
        NotificationType(type="aegis-error", title="AEGIS Error", actions=("confirm",), priority=4),
        NotificationType(type="aegis-info", title="AEGIS Info", actions=("confirm",), priority=5),
        NotificationType(type="default", title="Notification", actions=("confirm",), priority=6),
    )
}


def notification_type(type_name: Any) -> NotificationType:
    """Look up a notification type, falling back to ``default``."""
    if type_name is None:
        return NOTIFICATION_TYPES["default"]
    return NOTIFICATION_TYPES.get(str(type_name), NOTIFICATION_TYPES["default"])


ANALYTIC_KEYS: Dict[int, str] = dict(
    enumerate(
        (
            "LayerHeight",
            "SolidArea",
            "AreaCount",
            "LargestArea",
            "Speed",
            "Cure",
            "Pressure",
            "TemperatureInside",
            "TemperatureOutside",
            "LayerTime",
            "LiftHeight",
            "TemperatureMCU",
            "TemperatureInsideTarget",
            "TemperatureOutsideTarget",
            "TemperatureMCUTarget",
            "MCUFanRPM",
            "UVFanRPM",
            "DynamicWait",
            "TemperatureVat",
            "TemperatureVatTarget",
            "PTCFanRPM",
            "AEGISFanRPM",
            "TemperatureChamber",
            "TemperatureChamberTarget",
            "TemperaturePTC",
            "TemperaturePTCTarget",
            "VOCInlet",
            "VOCOutlet",
        )
    )
)
