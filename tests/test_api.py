import pytest
from fastapi.testclient import TestClient

from conftest import FakeDevice, status_payload
from nanodlp_bridge.main import create_app
from nanodlp_bridge.services.plate_cache import PLATES_PATH
from nanodlp_bridge.services.status_poller import STATUS_PATH


@pytest.fixture
def api(settings, device: FakeDevice):
    app = create_app(settings, transport=device.transport, start_polling=False)
    with TestClient(app) as test_client:
        yield test_client


def test_status_endpoint_returns_canonical_map(api, device):
    device.json(STATUS_PATH, status_payload(CurrentHeight=3200, Status="Ready"))

    response = api.get("/api/status")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "Idle"
    assert body["paused"] is False
    assert body["physical_state"] == {"z": 0.5, "curing": False}
    assert body["device_status_message"] == "Ready"
    assert response.headers["X-Request-ID"]


def test_status_endpoint_reports_unreachable_device(api, device):
    device.fail(STATUS_PATH)

    response = api.get("/api/status")

    assert response.status_code == 503
    assert response.json()["error"] == "device_unavailable"
    assert device.count(STATUS_PATH) == 2


def test_request_id_is_echoed(api, device):
    device.json(STATUS_PATH, status_payload())

    response = api.get("/api/status", headers={"X-Request-ID": "abc123"})

    assert response.headers["X-Request-ID"] == "abc123"


def test_file_listing_and_metadata(api, device):
    device.json(
        PLATES_PATH,
        {"plates": [{"PlateID": 3, "Path": "benchy.sl1", "LayerCount": 250, "PrintTime": 5400}]},
    )

    listing = api.get("/api/files").json()
    assert listing["page_size"] == 100
    assert listing["files"][0]["file_data"]["name"] == "benchy.sl1"
    assert listing["files"][0]["print_time_formatted"] == "01:30:00"

    metadata = api.get("/api/files/metadata", params={"path": "/benchy.sl1"}).json()
    assert metadata["plate_id"] == 3

    unknown = api.get("/api/files/metadata", params={"path": "ghost.sl1"}).json()
    assert unknown["file_data"] == {"path": "ghost.sl1", "name": "ghost.sl1", "last_modified": 0, "parent_path": ""}


def test_thumbnail_falls_back_to_placeholder_png(api, device):
    device.json(PLATES_PATH, [])

    response = api.get("/api/files/thumbnail", params={"path": "ghost.sl1", "size": "Large"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(b"\x89PNG")


def test_cache_invalidation_forces_reload(api, device):
    device.json(PLATES_PATH, [])

    api.get("/api/files")
    api.get("/api/files")
    assert device.count(PLATES_PATH) == 1

    assert api.post("/api/files/cache/invalidate").json()["success"] is True
    api.get("/api/files")
    assert device.count(PLATES_PATH) == 2


def test_rejected_command_maps_to_bad_gateway(api, device):
    device.text("/printer/stop", "busy", status=500)

    response = api.post("/api/control/print/cancel")

    assert response.status_code == 502
    body = response.json()
    assert body["error"] == "device_command_failed"
    assert body["meta"]["device_status"] == 500
    assert body["meta"]["command"] == "cancel_print"


def test_emergency_stop_always_succeeds(api, device):
    device.text("/printer/force-stop", "error", status=500)

    response = api.post("/api/control/emergency-stop")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "message": None}


def test_start_print_accepted(api, device):
    device.json(PLATES_PATH, [{"PlateID": 9, "Path": "ring.sl1"}])
    device.text("/printer/start/9", "")

    response = api.post("/api/control/print/start", json={"path": "ring.sl1"})

    assert response.status_code == 202
    assert "/printer/start/9" in device.calls


def test_move_endpoints(api, device):
    device.json(STATUS_PATH, status_payload(CurrentHeight=0))
    device.text("/z-axis/move/up/micron/2000", "")

    assert api.post("/api/control/move", json={"height": 2.0}).json() == {"ok": True, "message": None}
    assert api.post("/api/control/move-delta", json={"delta_mm": 0}).json() == {"ok": True, "message": "no-op"}

    capabilities = api.get("/api/control/move/capabilities").json()
    assert capabilities == {"can_move_to_top": True, "can_move_to_floor": True}


def test_invalid_body_is_a_validation_error(api):
    response = api.post("/api/control/move", json={"height": "high"})

    assert response.status_code == 422
    assert response.json()["error"] == "validation_error"


def test_notifications_and_analytics(api, device):
    device.json(
        "/notification",
        [{"Type": "default", "Text": "hello"}, {"Type": "error", "Text": "boom"}],
    )
    device.json("/analytic/data/10", [{"T": 7, "V": 24.5}, {"V": 1}])
    device.json("/analytic/value/11", 38.2)

    notifications = api.get("/api/notifications").json()
    assert [item["Text"] for item in notifications] == ["boom", "hello"]
    assert notifications[0]["actions"] == ["continue", "stop"]

    analytics = api.get("/api/analytics", params={"n": 10}).json()
    assert analytics == [{"T": 7, "V": 24.5, "key": "TemperatureInside"}]

    assert api.get("/api/analytics/11").json() == {"id": 11, "value": 38.2}
    assert api.get("/api/analytics/12").json() == {"id": 12, "value": None}


def test_device_config(api, device):
    device.json(STATUS_PATH, status_payload(Hostname="nano", IP="10.0.0.5", Version="2.2"))

    config = api.get("/api/device/config").json()

    assert config["general"]["hostname"] == "nano"
    assert config["general"]["ip"] == "10.0.0.5"
    assert config["advanced"]["nanodlp"]["version"] == "2.2"
    assert config["machine"]["resin_level"] == 12


def test_health_and_metrics(api, device):
    health = api.get("/api/health").json()
    assert health["status"] == "degraded"
    assert health["printer_online"] is False

    device.json(STATUS_PATH, status_payload())
    api.get("/api/status")
    snapshot = api.get("/api/metrics").json()["metrics"]
    assert "api./api/status" in snapshot["timings"]
