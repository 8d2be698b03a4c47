import httpx
import pytest

from nanodlp_bridge.core.config import Settings
from nanodlp_bridge.core.metrics import metrics
from nanodlp_bridge.core.transport import build_device_client, metric_path


@pytest.fixture(autouse=True)
def fresh_metrics():
    metrics.reset()
    yield
    metrics.reset()


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/static/plates/7/12.png", "/static/plates/{n}/{n}.png"),
        ("/static/plates/7/3d.png", "/static/plates/{n}/3d.png"),
        ("/z-axis/move/up/micron/500", "/z-axis/move/up/micron/{n}"),
        ("/analytic/data/200", "/analytic/data/{n}"),
        ("/status", "/status"),
        ("/plates/list/json", "/plates/list/json"),
    ],
)
def test_metric_path_collapses_numeric_segments(path, expected):
    assert metric_path(path) == expected


async def test_layer_images_share_one_metric_series(client, device):
    for layer in range(50):
        await client.get_plate_layer_image(7, layer)

    timings = metrics.snapshot()["timings"]
    layer_series = [name for name in timings if name.startswith("device.GET /static/plates")]
    assert layer_series == ["device.GET /static/plates/{n}/{n}.png"]
    assert timings[layer_series[0]]["count"] == 50


async def test_slow_device_raises_timeout(device):
    gate = device.gate("/status")
    settings = Settings(base_url="http://nanodlp.test", request_timeout=0.05)
    http = build_device_client(settings, transport=device.transport)
    try:
        with pytest.raises(httpx.TimeoutException):
            await http.get("/status")
    finally:
        gate.set()
        await http.aclose()

    assert metrics.snapshot()["timings"]["device.GET /status"]["errors"] == 1
