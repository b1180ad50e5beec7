"""折线图 HTTP 端点测试。"""

from __future__ import annotations

import asyncio
import base64
import os
import time
import uuid
from pathlib import Path

import pytest

from linechart.app import create_app
from linechart.config import ServiceConfig
from linechart.services.chart_service import ChartService
from linechart.storage.artifacts import ArtifactStore
from tests.client_utils import LocalASGIClient

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
NOT_IMPLEMENTED = {"Message": "The used HTTP-Method is not implemented."}


@pytest.fixture
def client(service_config: ServiceConfig) -> LocalASGIClient:
    return LocalASGIClient(create_app(service_config))


def _artifact_id(link: str) -> str:
    return link.rsplit("/", 1)[-1]


def test_ping(client: LocalASGIClient) -> None:
    response = client.get("/charts/line/ping")
    assert response.status_code == 200
    assert response.json() == {"Message": "Pong."}


def test_create_and_fetch_round_trip(
    client: LocalASGIClient, sample_payload: dict, image_dir: Path
) -> None:
    response = client.post("/charts/line", json=sample_payload)
    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"Link", "Message"}
    assert body["Message"] == "The provided url will expire in 24 hours."
    assert body["Link"].startswith("http://testserver/charts/line/result/")

    artifact_id = _artifact_id(body["Link"])
    assert uuid.UUID(artifact_id).version == 4
    assert (image_dir / f"{artifact_id}.png").exists()

    result = client.get(f"/charts/line/result/{artifact_id}")
    assert result.status_code == 200
    payload = result.json()
    assert set(payload) == {"Message", "Data"}
    assert "base64-encoded png-file" in payload["Message"]
    image = base64.b64decode(payload["Data"])
    assert image.startswith(PNG_SIGNATURE)


def test_validation_error_creates_no_artifact(
    client: LocalASGIClient, image_dir: Path
) -> None:
    response = client.post(
        "/charts/line", json={"X_Start": 0, "X_End": 0, "Points": []}
    )
    assert response.status_code == 200
    assert response.json() == {
        "Message": "Invalid data sent. JSON-Key 'Points' is empty. Please send a valid JSON-Object."
    }
    assert list(image_dir.iterdir()) == []


def test_malformed_body_returns_message(client: LocalASGIClient, image_dir: Path) -> None:
    response = client.post(
        "/charts/line",
        content=b"{broken",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 200
    assert "not a valid JSON document" in response.json()["Message"]
    assert list(image_dir.iterdir()) == []


def test_repeated_invalid_payload_returns_identical_body(client: LocalASGIClient) -> None:
    payload = {"X_Start": "0", "X_End": 1, "Points": [[]]}
    first = client.post("/charts/line", json=payload)
    second = client.post("/charts/line", json=payload)
    assert first.content == second.content


def test_fetch_invalid_identifier(client: LocalASGIClient) -> None:
    response = client.get("/charts/line/result/not-a-uuid")
    assert response.status_code == 200
    assert response.json() == {
        "Message": "The submitted argument is not an UUID. Please send a valid UUID."
    }


def test_fetch_unknown_identifier(client: LocalASGIClient) -> None:
    response = client.get(f"/charts/line/result/{uuid.uuid4()}")
    assert response.status_code == 200
    assert "not linked to any chart or already expired" in response.json()["Message"]


@pytest.mark.parametrize(
    "method, path",
    [
        ("GET", "/charts/line"),
        ("PUT", "/charts/line"),
        ("DELETE", "/charts/line"),
        ("PATCH", "/charts/line"),
        ("POST", "/charts/line/ping"),
        ("POST", "/charts/line/result/abc"),
        ("DELETE", "/charts/line/result/abc"),
    ],
)
def test_other_methods_are_not_implemented(
    client: LocalASGIClient, method: str, path: str
) -> None:
    response = client.request(method, path)
    assert response.status_code == 200
    assert response.json() == NOT_IMPLEMENTED


def test_request_id_header_is_echoed(client: LocalASGIClient) -> None:
    response = client.get("/charts/line/ping", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    generated = client.get("/charts/line/ping")
    assert generated.headers["X-Request-ID"]


def test_public_base_url_is_used_for_link(
    service_config: ServiceConfig, sample_payload: dict
) -> None:
    config = service_config.model_copy(update={"public_base_url": "https://charts.example.org/"})
    client = LocalASGIClient(create_app(config))

    link = client.post("/charts/line", json=sample_payload).json()["Link"]
    assert link.startswith("https://charts.example.org/charts/line/result/")


def test_strict_status_codes(service_config: ServiceConfig) -> None:
    config = service_config.model_copy(update={"strict_status_codes": True})
    client = LocalASGIClient(create_app(config))

    assert client.post("/charts/line", json={}).status_code == 400
    assert client.get("/charts/line/result/nope").status_code == 400
    assert client.get(f"/charts/line/result/{uuid.uuid4()}").status_code == 404
    assert client.put("/charts/line").status_code == 405
    assert client.get("/charts/line/ping").status_code == 200


def test_support_email_is_appended(service_config: ServiceConfig) -> None:
    config = service_config.model_copy(update={"support_email": "help@example.org"})
    client = LocalASGIClient(create_app(config))

    message = client.get(f"/charts/line/result/{uuid.uuid4()}").json()["Message"]
    assert message.endswith("Please contact our support via our e-mail help@example.org .")

    invalid = client.get("/charts/line/result/nope").json()["Message"]
    assert "support" not in invalid


def test_render_failure_is_reported_without_artifact(
    service_config: ServiceConfig, sample_payload: dict, image_dir: Path
) -> None:
    def broken_renderer(scene, canvas):
        raise RuntimeError("backend exploded")

    service = ChartService(ArtifactStore(image_dir), renderer=broken_renderer)
    client = LocalASGIClient(create_app(service_config, chart_service=service))

    response = client.post("/charts/line", json=sample_payload)
    assert response.status_code == 200
    assert "errorcode 200" in response.json()["Message"]
    assert list(image_dir.iterdir()) == []


def test_unexpected_error_becomes_internal_error(
    service_config: ServiceConfig, image_dir: Path
) -> None:
    class ExplodingService(ChartService):
        def fetch_chart(self, argument: str) -> bytes:
            raise KeyError(argument)

    service = ExplodingService(ArtifactStore(image_dir))
    client = LocalASGIClient(create_app(service_config, chart_service=service))

    response = client.get(f"/charts/line/result/{uuid.uuid4()}")
    assert response.status_code == 200
    assert response.json() == {"Message": "An internal error has occurred."}


def test_series_without_x_points_is_rendered(
    client: LocalASGIClient, image_dir: Path
) -> None:
    payload = {
        "X_Start": 0,
        "X_End": 4,
        "Points": [[{"Caption": "A", "Y_Points": [1, 3, 2]}, {"Caption": "B", "Y_Points": [2]}]],
    }
    link = client.post("/charts/line", json=payload).json()["Link"]
    assert (image_dir / f"{_artifact_id(link)}.png").exists()


def test_lifespan_sweeps_expired_artifacts(service_config: ServiceConfig) -> None:
    app = create_app(service_config)
    store = app.state.chart_service.store
    identifier = store.publish(b"old chart")
    path = store.path_for(identifier)
    ts = time.time() - 30 * 3600
    os.utime(path, (ts, ts))

    async def _run() -> None:
        async with app.router.lifespan_context(app):
            for _ in range(100):
                if not path.exists():
                    break
                await asyncio.sleep(0.02)

    asyncio.run(_run())
    assert not path.exists()


def _break_result_link(monkeypatch: pytest.MonkeyPatch) -> None:
    from linechart.api import routes

    def _fail(request, artifact_id: str) -> str:
        raise RuntimeError("link building failed")

    monkeypatch.setattr(routes, "_result_link", _fail)


def test_error_outside_worker_pool_returns_message(
    monkeypatch: pytest.MonkeyPatch, service_config: ServiceConfig, sample_payload: dict
) -> None:
    _break_result_link(monkeypatch)
    client = LocalASGIClient(create_app(service_config), raise_app_exceptions=False)

    response = client.post("/charts/line", json=sample_payload)
    assert response.status_code == 200
    assert response.json() == {"Message": "An internal error has occurred."}


def test_error_outside_worker_pool_with_strict_status_codes(
    monkeypatch: pytest.MonkeyPatch, service_config: ServiceConfig, sample_payload: dict
) -> None:
    _break_result_link(monkeypatch)
    config = service_config.model_copy(update={"strict_status_codes": True})
    client = LocalASGIClient(create_app(config), raise_app_exceptions=False)

    response = client.post("/charts/line", json=sample_payload)
    assert response.status_code == 500
    assert response.json() == {"Message": "An internal error has occurred."}


def test_extreme_x_range_with_explicit_points_passes_validation(client: LocalASGIClient) -> None:
    payload = {
        "X_Start": -1e308,
        "X_End": 1e308,
        "Points": [[{"Caption": "A", "X_Points": [0, 1], "Y_Points": [1, 2]}]],
    }
    message = client.post("/charts/line", json=payload).json()["Message"]
    assert message != "An internal error has occurred."
    assert "Invalid data sent" not in message
