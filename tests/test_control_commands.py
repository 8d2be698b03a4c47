import httpx
import pytest

from conftest import form_body, status_payload
from nanodlp_bridge.core.exceptions import DeviceCommandError, DeviceUnavailableError
from nanodlp_bridge.services.control_command_service import mm_to_microns
from nanodlp_bridge.services.plate_cache import PLATES_PATH
from nanodlp_bridge.services.status_poller import STATUS_PATH


@pytest.mark.parametrize(
    "value_mm, expected",
    [(0.0, 0), (0.5, 500), (-0.25, -250), (0.0005, 1), (-0.0005, -1), (0.0004, 0), (12.3456, 12346)],
)
def test_mm_to_microns_rounds_half_away_from_zero(value_mm, expected):
    assert mm_to_microns(value_mm) == expected


async def test_emergency_stop_accepts_error_responses(client, device):
    device.text("/printer/force-stop", "failed", status=500)

    result = await client.commands.emergency_stop()

    assert result.ok is True
    assert device.count("/printer/force-stop") == 1


async def test_emergency_stop_without_response_raises(client, device):
    device.fail("/printer/force-stop")

    with pytest.raises(DeviceUnavailableError):
        await client.commands.emergency_stop()


@pytest.mark.parametrize(
    "method_name, path",
    [("cancel_print", "/printer/stop"), ("pause_print", "/printer/pause"), ("resume_print", "/printer/unpause")],
)
async def test_print_commands_raise_on_device_error(client, device, method_name, path):
    device.text(path, "nope", status=409)

    with pytest.raises(DeviceCommandError) as excinfo:
        await getattr(client.commands, method_name)()

    assert excinfo.value.device_status == 409
    assert excinfo.value.status_code == 502


async def test_print_commands_succeed_on_200(client, device):
    device.text("/printer/pause", "")

    await client.commands.pause_print()

    assert device.calls == ["/printer/pause"]


async def test_absolute_move_is_noop_at_target(client, device):
    device.json(STATUS_PATH, status_payload(CurrentHeight=6400))

    result = await client.commands.move(1.0)

    assert result.ok is True
    assert result.message == "no-op"
    assert not [call for call in device.calls if call.startswith("/z-axis")]


@pytest.mark.parametrize(
    "height, expected_path",
    [(1.5, "/z-axis/move/up/micron/500"), (0.25, "/z-axis/move/down/micron/750")],
)
async def test_absolute_move_uses_fresh_z(client, device, height, expected_path):
    device.json(STATUS_PATH, status_payload(CurrentHeight=6400))
    device.json(expected_path, {"ok": True, "message": "moved"})

    result = await client.commands.move(height)

    assert result.ok is True
    assert result.message == "moved"
    assert device.calls == [STATUS_PATH, expected_path]


async def test_absolute_move_fails_without_status(client, device):
    device.text(STATUS_PATH, "down", status=503)

    with pytest.raises(DeviceUnavailableError):
        await client.commands.move(10.0)

    assert not [call for call in device.calls if call.startswith("/z-axis")]


async def test_relative_move(client, device):
    device.text("/z-axis/move/down/micron/1000", "")

    result = await client.commands.move_delta(-1.0)

    assert result.ok is True
    assert (await client.commands.move_delta(0.0)).message == "no-op"
    assert device.calls == ["/z-axis/move/down/micron/1000"]


@pytest.mark.parametrize(
    "method_name, path",
    [("move_to_top", "/z-axis/top"), ("move_to_floor", "/z-axis/bottom"), ("manual_home", "/z-axis/calibrate")],
)
async def test_axis_commands_parse_result(client, device, method_name, path):
    device.json(path, {"result": "failed", "message": "endstop"})

    result = await getattr(client.commands, method_name)()

    assert result.ok is False
    assert result.message == "endstop"


async def test_cure_switches_projector(client, device):
    device.text("/projector/on", "")
    device.text("/projector/blank", "")

    assert (await client.commands.manual_cure(True)).ok
    assert (await client.commands.manual_cure(False)).ok
    assert device.calls == ["/projector/on", "/projector/blank"]


async def test_gcode_is_posted_as_form(client, device):
    device.text("/gcode", '"queued"')

    result = await client.commands.manual_command("G28")

    assert result.message == "queued"
    request = device.requests[-1]
    assert request.method == "POST"
    assert form_body(request) == "gcode=G28"


async def test_start_print_resolves_plate_id_and_remembers_plate(client, device):
    device.json(PLATES_PATH, [{"PlateID": 7, "Path": "cube.sl1", "LayerCount": 100}])
    device.text("/printer/start/7", "")

    await client.commands.start_print("/Cube.sl1")
    await client.wait_background()

    assert "/printer/start/7" in device.calls
    # One lookup plus one forced refresh after the start.
    assert device.count(PLATES_PATH) == 2
    assert client.resolver.last_resolved.plate_id == 7


async def test_start_print_falls_back_to_raw_argument(client, device):
    device.json(PLATES_PATH, [])
    device.text("/printer/start/42", "")

    await client.commands.start_print("42")
    await client.wait_background()

    assert "/printer/start/42" in device.calls
    assert client.resolver.last_resolved is None


async def test_can_move_checks_status_keys(client, device):
    device.json(STATUS_PATH, status_payload())
    assert await client.commands.can_move_to_top() is True

    device.json(STATUS_PATH, {"Status": "Idle"})
    assert await client.commands.can_move_to_floor() is False

    device.on(STATUS_PATH, lambda request: httpx.Response(500))
    assert await client.commands.can_move_to_top() is False
