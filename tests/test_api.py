"""Tests for the FastAPI REST endpoints."""

import io
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from src.api import app as app_module
from src.api.app import app
from src.utils.config import APIConfig, AppConfig


@pytest.fixture
def client() -> TestClient:
    """Create a FastAPI test client with no leftover sessions."""
    app_module._sessions.clear()
    return TestClient(app)


@pytest.fixture
def session_id(client: TestClient) -> str:
    """Create a scanning session and return its identifier."""
    response = client.post("/sessions")
    return response.json()["session_id"]


def _make_test_image_bytes() -> bytes:
    """Create a minimal PNG image as bytes."""
    img = Image.fromarray(np.zeros((100, 200, 3), dtype=np.uint8))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def _mock_components(text: str | Exception) -> tuple[MagicMock, MagicMock]:
    """Create a pass-through preprocessor and a recognizer returning ``text``."""
    preprocessor = MagicMock()
    preprocessor.process.side_effect = lambda frame: (frame, 100.0)
    preprocessor.is_sharp_enough.return_value = True
    recognizer = MagicMock()
    recognizer.recognize.side_effect = [text]
    return preprocessor, recognizer


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_returns_ok(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert isinstance(data["tesseract_available"], bool)
        assert data["active_sessions"] == 0


class TestFieldsEndpoint:
    """Tests for the /fields endpoint."""

    def test_lists_nine_fields(self, client: TestClient) -> None:
        data = client.get("/fields").json()
        assert len(data["fields"]) == 9
        by_name = {f["name"]: f for f in data["fields"]}
        assert by_name["idNumber"]["card_label"] == "Número de Cédula"
        assert by_name["fullName"]["display_label"] == "Nombre"
        assert by_name["sex"]["card_label"] is None


class TestSessionLifecycle:
    """Tests for session creation and state transitions."""

    def test_create_session(self, client: TestClient) -> None:
        response = client.post("/sessions")
        assert response.status_code == 201
        data = response.json()
        assert data["state"] == "scanning"
        assert data["record"] == {}
        assert data["score"] == 0.0
        assert len(data["missing"]) == 9

    def test_get_unknown_session(self, client: TestClient) -> None:
        response = client.get("/sessions/nope")
        assert response.status_code == 404

    def test_stop_resets_and_goes_idle(self, client: TestClient, session_id: str) -> None:
        client.post(f"/sessions/{session_id}/snapshots", json={"text": "MASCULINO"})
        data = client.post(f"/sessions/{session_id}/stop").json()
        assert data["state"] == "idle"
        assert data["record"] == {}
        assert data["score"] == 0.0

    def test_snapshot_ignored_while_idle(
        self, client: TestClient, session_id: str
    ) -> None:
        client.post(f"/sessions/{session_id}/stop")
        data = client.post(
            f"/sessions/{session_id}/snapshots", json={"text": "MASCULINO"}
        ).json()
        assert data["record"] == {}
        assert data["frames_observed"] == 0

    def test_restart(self, client: TestClient, session_id: str) -> None:
        client.post(f"/sessions/{session_id}/stop")
        data = client.post(f"/sessions/{session_id}/start").json()
        assert data["state"] == "scanning"

    def test_delete(self, client: TestClient, session_id: str) -> None:
        assert client.delete(f"/sessions/{session_id}").status_code == 204
        assert client.get(f"/sessions/{session_id}").status_code == 404

    @patch("src.api.app.load_config")
    def test_oldest_session_evicted_at_limit(
        self, mock_config: MagicMock, client: TestClient
    ) -> None:
        mock_config.return_value = AppConfig(api=APIConfig(max_sessions=2))
        ids = [client.post("/sessions").json()["session_id"] for _ in range(3)]

        assert client.get(f"/sessions/{ids[0]}").status_code == 404
        assert client.get(f"/sessions/{ids[1]}").status_code == 200
        assert client.get(f"/sessions/{ids[2]}").status_code == 200
        assert client.get("/health").json()["active_sessions"] == 2


class TestSnapshotEndpoint:
    """Tests for submitting recognized text."""

    def test_reference_snapshot(
        self, client: TestClient, session_id: str, reference_snapshot: str
    ) -> None:
        response = client.post(
            f"/sessions/{session_id}/snapshots", json={"text": reference_snapshot}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["record"] == {
            "idNumber": "1-0234-0567",
            "fullName": "JUAN PEREZ GOMEZ",
            "sex": "MASCULINO",
            "birthDate": "01/01/1990",
        }
        assert data["score"] == pytest.approx(100.0 * 4 / 9)
        assert sorted(data["changed"]) == sorted(data["record"])

    def test_lines_complete_the_record(
        self,
        client: TestClient,
        session_id: str,
        reference_snapshot: str,
        back_snapshot: str,
    ) -> None:
        url = f"/sessions/{session_id}/snapshots"
        client.post(url, json={"lines": reference_snapshot.splitlines()})
        data = client.post(url, json={"lines": back_snapshot.splitlines()}).json()
        assert data["complete"] is True
        assert data["score"] == 100.0
        assert data["missing"] == []

    def test_requires_exactly_one_form(
        self, client: TestClient, session_id: str
    ) -> None:
        url = f"/sessions/{session_id}/snapshots"
        assert client.post(url, json={}).status_code == 422
        assert client.post(url, json={"text": "a", "lines": ["a"]}).status_code == 422


class TestFrameEndpoint:
    """Tests for submitting camera frames."""

    @patch("src.api.app._get_components")
    def test_frame_is_recognized_and_merged(
        self,
        mock_components: MagicMock,
        client: TestClient,
        session_id: str,
        reference_snapshot: str,
    ) -> None:
        mock_components.return_value = _mock_components(reference_snapshot)

        response = client.post(
            f"/sessions/{session_id}/frames",
            files={"file": ("frame.png", _make_test_image_bytes(), "image/png")},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["recognized"] is True
        assert data["record"]["idNumber"] == "1-0234-0567"
        assert data["frames_observed"] == 1

    @patch("src.api.app._get_components")
    def test_recognizer_failure_keeps_state(
        self,
        mock_components: MagicMock,
        client: TestClient,
        session_id: str,
    ) -> None:
        client.post(f"/sessions/{session_id}/snapshots", json={"text": "FEMENINO"})
        mock_components.return_value = _mock_components(RuntimeError("tesseract"))

        response = client.post(
            f"/sessions/{session_id}/frames",
            files={"file": ("frame.png", _make_test_image_bytes(), "image/png")},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["recognized"] is False
        assert data["record"] == {"sex": "FEMENINO"}

    @patch("src.api.app._get_components")
    def test_blurry_frame_skipped(
        self,
        mock_components: MagicMock,
        client: TestClient,
        session_id: str,
    ) -> None:
        preprocessor, recognizer = _mock_components("MASCULINO")
        preprocessor.is_sharp_enough.return_value = False
        mock_components.return_value = (preprocessor, recognizer)

        response = client.post(
            f"/sessions/{session_id}/frames",
            files={"file": ("frame.png", _make_test_image_bytes(), "image/png")},
        )
        assert response.json()["recognized"] is False
        recognizer.recognize.assert_not_called()

    @patch("src.api.app._get_components")
    def test_frame_ignored_while_idle(
        self,
        mock_components: MagicMock,
        client: TestClient,
        session_id: str,
    ) -> None:
        client.post(f"/sessions/{session_id}/stop")

        response = client.post(
            f"/sessions/{session_id}/frames",
            files={"file": ("frame.png", _make_test_image_bytes(), "image/png")},
        )

        data = response.json()
        assert response.status_code == 200
        assert data["recognized"] is False
        assert data["state"] == "idle"
        assert data["record"] == {}
        assert data["frames_observed"] == 0
        mock_components.assert_not_called()

    def test_unsupported_type(self, client: TestClient, session_id: str) -> None:
        response = client.post(
            f"/sessions/{session_id}/frames",
            files={"file": ("frame.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 400

    def test_undecodable_image(self, client: TestClient, session_id: str) -> None:
        response = client.post(
            f"/sessions/{session_id}/frames",
            files={"file": ("frame.png", b"not a png", "image/png")},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Could not decode image"

    def test_unknown_session(self, client: TestClient) -> None:
        response = client.post(
            "/sessions/missing/frames",
            files={"file": ("frame.png", _make_test_image_bytes(), "image/png")},
        )
        assert response.status_code == 404
