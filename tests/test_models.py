import pytest

from nanodlp_bridge.models import ManualResult, PlateRecord, StatusSnapshot, notification_type
from nanodlp_bridge.models.parsing import parse_layer_height_mm, parse_volume_ml


@pytest.mark.parametrize(
    "raw, expected",
    [
        (12, 12.0),
        ("12.5 ml", 12.5),
        ("500µl", 0.5),
        ("250 ul", 0.25),
        ("1.2 L", 1200.0),
        ("3 cc", 3.0),
        ("2500", 2.5),
        ("", None),
        ("n/a", None),
    ],
)
def test_volume_units(raw, expected):
    assert parse_volume_ml(raw) == expected


def test_layer_height_units():
    assert parse_layer_height_mm(0.05) == 0.05
    assert parse_layer_height_mm("0.05mm") == 0.05
    assert parse_layer_height_mm("50") == 0.05
    assert parse_layer_height_mm("50µm") == 0.05
    assert parse_layer_height_mm(50, assume_microns=True) == 0.05


def test_plate_record_from_nanodlp_entry():
    record = PlateRecord.from_json(
        {
            "PlateID": "7",
            "Path": "jobs/cube.sl1",
            "LayerCount": 100,
            "PrintTime": "~01:02:03",
            "UsedMaterial": "12.5ml",
            "LastModified": 1700000000,
            "Preview": "true",
            "ProfileName": "Grey Resin",
            "ZRes": 50,
        }
    )

    assert record.plate_id == 7
    assert record.name == "cube.sl1"
    assert record.parent_path == "jobs"
    assert record.print_time == 3723.0
    assert record.used_material == 12.5
    assert record.layer_height == 0.05
    assert record.preview_available is True
    assert record.material_name == "Grey Resin"
    assert record.location_category == "Local"

    entry = record.to_file_entry()
    assert entry["print_time_formatted"] == "01:02:03"
    assert entry["plate_id"] == 7
    assert entry["file_data"]["path"] == "jobs/cube.sl1"


def test_plate_record_name_only():
    record = PlateRecord.from_json({"name": "solo.sl1"})

    assert record.path == "solo.sl1"
    assert record.resolved_path == "solo.sl1"
    assert record.plate_id is None
    assert record.used_material == 0.0
    assert record.to_metadata()["print_time"] == 0.0


def test_status_snapshot_parsing():
    snapshot = StatusSnapshot.from_json(
        {
            "Started": 1,
            "State": "5",
            "Status": "Printing layer 10",
            "CurrentHeight": 12800,
            "LayerID": 150,
            "LayersCount": 100,
            "temp": "24.85°C",
            "mcu": 40,
            "resin": "55%",
            "plate": {"Path": "cube.sl1"},
        }
    )

    assert snapshot.printing is True
    assert snapshot.state == "printing"
    assert snapshot.state_code == 5
    assert snapshot.z == 2.0
    assert snapshot.progress == 1.0
    assert snapshot.temp == 24.85
    assert snapshot.mcu_temp == 40.0
    assert snapshot.resin_level == 55.0
    assert snapshot.file.name == "cube.sl1"
    assert snapshot.raw_status == "Printing layer 10"


def test_with_file_returns_copy():
    snapshot = StatusSnapshot.from_json({"Printing": True})
    plate = PlateRecord(plate_id=1, path="a.sl1", name="a.sl1")

    enriched = snapshot.with_file(plate)

    assert snapshot.file is None
    assert enriched.file == plate


@pytest.mark.parametrize(
    "payload, ok, message",
    [
        (None, True, None),
        ({"ok": False, "message": "jammed"}, False, "jammed"),
        ({"result": "ok"}, True, None),
        ({"result": "error"}, False, None),
        ("  done ", True, "done"),
        ("", True, None),
        (False, False, None),
        (12, True, None),
    ],
)
def test_manual_result_from_payload(payload, ok, message):
    result = ManualResult.from_payload(payload)
    assert result.ok is ok
    assert result.message == message


def test_notification_type_lookup():
    assert notification_type("error").actions == ("continue", "stop")
    assert notification_type("aegis-info").priority == 5
    assert notification_type("something-new").title == "Notification"
    assert notification_type(None).priority == 6
