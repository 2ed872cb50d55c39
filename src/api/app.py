"""FastAPI application for the cédula reader.

Exposes scan sessions over HTTP: a client starts a session, posts
camera frames (or already-recognized text) one at a time, and reads
back the accumulated record and completeness score after each one.
"""

import uuid
from typing import Annotated

import cv2
import numpy as np
from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from src.extraction.accumulator import AccumulatorState
from src.extraction.fields import DISPLAY_LABELS, LABELED_FIELDS, CedulaField
from src.extraction.session import ScanSession
from src.ocr.tesseract_engine import TesseractEngine
from src.preprocessing.frame import FramePreprocessor
from src.utils.config import load_config
from src.utils.logger import get_logger

from .schemas import (
    FieldInfo,
    FieldsResponse,
    HealthResponse,
    SessionResponse,
    SnapshotRequest,
)

logger = get_logger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Cédula Reader API",
    description="Reconstruct Costa Rican ID card fields from streamed camera frames",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_sessions: dict[str, ScanSession] = {}

_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/bmp",
    "image/tiff",
    "application/octet-stream",
}


def _get_components() -> tuple[FramePreprocessor, TesseractEngine]:
    """Initialize and return the frame processing components.

    Returns:
        Tuple of (frame_preprocessor, recognizer).
    """
    config = load_config()
    preprocessor = FramePreprocessor(config.preprocessing)
    recognizer = TesseractEngine(
        tesseract_cmd=config.ocr.tesseract_cmd,
        lang=config.ocr.lang,
        psm=config.ocr.psm,
    )
    return preprocessor, recognizer


def _get_session(session_id: str) -> ScanSession:
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    return session


def _to_response(
    session_id: str,
    session: ScanSession,
    state: AccumulatorState | None = None,
    recognized: bool = True,
) -> SessionResponse:
    """Build the response body for a session.

    Args:
        session_id: Session identifier.
        session: The scan session.
        state: State returned by the last merge; the current state if omitted.
        recognized: Whether the submitted frame produced a snapshot.

    Returns:
        Session response schema.
    """
    state = state or session.state
    return SessionResponse(
        session_id=session_id,
        state=session.scan_state,
        record={f.value: state.record[f] for f in CedulaField if f in state.record},
        score=state.score,
        complete=state.is_complete,
        missing=[f.value for f in state.missing_fields],
        changed=[f.value for f in state.changed],
        frames_observed=session.frames_observed,
        recognized=recognized,
    )


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        tesseract_available=TesseractEngine.is_available(),
        active_sessions=len(_sessions),
    )


@app.get("/fields", response_model=FieldsResponse)
async def list_fields() -> FieldsResponse:
    """List the record fields with their labels."""
    card_labels = dict(LABELED_FIELDS)
    return FieldsResponse(
        fields=[
            FieldInfo(
                name=f.value,
                display_label=DISPLAY_LABELS[f],
                card_label=card_labels.get(f),
            )
            for f in CedulaField
        ]
    )


@app.post("/sessions", response_model=SessionResponse, status_code=201)
async def create_session() -> SessionResponse:
    """Create a scan session and start scanning.

    When the session limit is reached the oldest session is discarded.
    """
    max_sessions = load_config().api.max_sessions
    while len(_sessions) >= max_sessions:
        oldest = next(iter(_sessions))
        _sessions.pop(oldest).stop()
        logger.warning("Session limit %d reached, evicted %s", max_sessions, oldest)

    session_id = str(uuid.uuid4())
    session = ScanSession()
    session.start()
    _sessions[session_id] = session
    logger.info("Created session %s", session_id)
    return _to_response(session_id, session)


@app.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str) -> SessionResponse:
    """Return the accumulated record and score of a session."""
    return _to_response(session_id, _get_session(session_id))


@app.post("/sessions/{session_id}/start", response_model=SessionResponse)
async def start_session(session_id: str) -> SessionResponse:
    """Start (or restart) scanning with an empty record."""
    session = _get_session(session_id)
    session.start()
    return _to_response(session_id, session)


@app.post("/sessions/{session_id}/stop", response_model=SessionResponse)
async def stop_session(session_id: str) -> SessionResponse:
    """Stop scanning and discard the record."""
    session = _get_session(session_id)
    session.stop()
    return _to_response(session_id, session)


@app.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str) -> None:
    """Discard a session."""
    _get_session(session_id).stop()
    del _sessions[session_id]
    logger.info("Deleted session %s", session_id)


@app.post("/sessions/{session_id}/snapshots", response_model=SessionResponse)
async def submit_snapshot(session_id: str, request: SnapshotRequest) -> SessionResponse:
    """Merge already-recognized text into a session."""
    session = _get_session(session_id)
    snapshot = request.text if request.text is not None else request.lines
    state = session.frame_observed(snapshot)
    return _to_response(session_id, session, state)


@app.post("/sessions/{session_id}/frames", response_model=SessionResponse)
async def submit_frame(
    session_id: str,
    file: Annotated[UploadFile, File(...)],
) -> SessionResponse:
    """Recognize one uploaded camera frame and merge its text.

    Args:
        session_id: Target session.
        file: Frame image (PNG, JPEG, BMP, or TIFF).

    Returns:
        Session state after the frame. If the session is idle or
        recognition fails the state is unchanged and ``recognized`` is
        false.
    """
    session = _get_session(session_id)

    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )

    if not session.is_scanning:
        logger.debug("Session %s: frame ignored while idle", session_id)
        return _to_response(session_id, session, recognized=False)

    content = await file.read()
    frame = cv2.imdecode(np.frombuffer(content, dtype=np.uint8), cv2.IMREAD_COLOR)
    if frame is None:
        raise HTTPException(status_code=400, detail="Could not decode image")

    preprocessor, recognizer = _get_components()
    try:
        image, sharpness = preprocessor.process(frame)
        if not preprocessor.is_sharp_enough(sharpness):
            logger.debug("Session %s: blurry frame skipped", session_id)
            return _to_response(session_id, session, recognized=False)
        text = recognizer.recognize(image)
    except Exception as exc:
        logger.warning("Session %s: recognition failed: %s", session_id, exc)
        return _to_response(session_id, session, recognized=False)

    state = session.frame_observed(text)
    return _to_response(session_id, session, state)
