import httpx
import pytest

from conftest import status_payload
from nanodlp_bridge.core.exceptions import DeviceUnavailableError
from nanodlp_bridge.models import StatusSnapshot
from nanodlp_bridge.services import status_poller
from nanodlp_bridge.services.plate_cache import PLATES_PATH
from nanodlp_bridge.services.status_poller import STATUS_PATH, read_plate_id

CUBE = {"PlateID": 7, "Path": "cube.sl1", "LayerCount": 100, "UsedMaterial": "12.5ml", "PrintTime": "~01:00:00"}


async def test_single_failure_is_retried(client, device):
    device.on(
        STATUS_PATH,
        lambda request: httpx.Response(502, text="bad gateway"),
        lambda request: httpx.Response(200, json=status_payload()),
    )

    status = await client.get_status()

    assert status["status"] == "Idle"
    assert device.count(STATUS_PATH) == 2


async def test_second_failure_raises_device_unavailable(client, device):
    device.fail(STATUS_PATH)

    with pytest.raises(DeviceUnavailableError) as excinfo:
        await client.get_status()

    assert device.count(STATUS_PATH) == 2
    assert excinfo.value.__cause__ is not None


async def test_undecodable_status_counts_as_failure(client, device):
    device.on(
        STATUS_PATH,
        lambda request: httpx.Response(200, text="<html>"),
        lambda request: httpx.Response(200, json=["not", "a", "map"]),
    )

    with pytest.raises(DeviceUnavailableError):
        await client.get_status()


async def test_fill_areas_are_dropped(client, device, monkeypatch):
    parsed = []

    class RecordingSnapshot:
        @staticmethod
        def from_json(payload):
            parsed.append(dict(payload))
            return StatusSnapshot.from_json(payload)

    monkeypatch.setattr(status_poller, "StatusSnapshot", RecordingSnapshot)
    device.json(STATUS_PATH, status_payload(FillAreas=[[1, 2, 3]] * 100, File={"Path": "a.sl1"}))

    snapshot = await client.get_status_snapshot()

    assert snapshot.file is not None
    assert len(parsed) == 1
    assert "FillAreas" not in parsed[0]
    assert parsed[0]["Status"] == "Idle"


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"PlateID": 7}, 7),
        ({"plate_id": "12"}, 12),
        ({"Plateid": 3, "plateId": 4}, 3),
        ({"plateId": "x"}, None),
        ({}, None),
    ],
)
def test_read_plate_id_candidates(payload, expected):
    assert read_plate_id(payload) == expected


async def test_plate_id_resolution_enriches_later_polls(client, device, clock):
    device.json(
        STATUS_PATH,
        status_payload(Printing=True, State=5, PlateID=7, LayerID=3, LayersCount=100, Status="Printing"),
    )
    device.json(PLATES_PATH, [CUBE])
    clock.advance(3.0)

    first = await client.get_status()
    assert first["status"] == "Printing"
    assert first["print_data"] == {
        "layer_count": 100,
        "used_material": 0.0,
        "print_time": 0,
        "file_data": None,
    }

    await client.wait_background()
    second = await client.get_status()
    third = await client.get_status()

    assert second["print_data"]["file_data"] == {
        "name": "cube.sl1",
        "path": "cube.sl1",
        "location_category": "Local",
    }
    assert second["print_data"]["used_material"] == 12.5
    assert second["print_data"]["print_time"] == 3600.0
    assert third["print_data"] == second["print_data"]
    assert device.count(PLATES_PATH) == 1


async def test_idle_poll_with_plate_id_skips_plate_list(client, device, clock):
    device.json(STATUS_PATH, status_payload(PlateID=7))
    device.json(PLATES_PATH, [CUBE])
    clock.advance(3.0)

    status = await client.get_status()
    await client.wait_background()

    assert status["print_data"] is None
    assert device.count(PLATES_PATH) == 0


async def test_z_is_reported_in_millimetres(client, device):
    device.json(STATUS_PATH, status_payload(CurrentHeight=320, Curing=True))

    status = await client.get_status()

    assert status["physical_state"] == {"z": 0.05, "curing": True}
