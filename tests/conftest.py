"""Shared test fixtures for the cédula reader test suite."""

from pathlib import Path

import numpy as np
import pytest

from src.extraction.field_extractor import FieldExtractor
from src.extraction.fields import CedulaField
from src.extraction.session import ScanSession

REFERENCE_SNAPSHOT = (
    "Número de Cédula: 1-0234-0567\n"
    "JUAN PEREZ GOMEZ\n"
    "MASCULINO\n"
    "Fecha de Nacimiento: 01/01/1990"
)

BACK_SNAPSHOT = (
    "Lugar de Nacimiento: SAN JOSE, CARMEN\n"
    "Nombre del Padre: PEDRO PEREZ SOLIS\n"
    "Nombre de la Madre: MARIA GOMEZ ROJAS\n"
    "Domicilio Electoral: SAN JOSE, CENTRAL, HOSPITAL\n"
    "Vencimiento: 15/06/2031"
)

FULL_RECORD: dict[CedulaField, str] = {
    CedulaField.ID_NUMBER: "1-0234-0567",
    CedulaField.FULL_NAME: "JUAN PEREZ GOMEZ",
    CedulaField.SEX: "MASCULINO",
    CedulaField.BIRTH_DATE: "01/01/1990",
    CedulaField.BIRTH_PLACE: "SAN JOSE, CARMEN",
    CedulaField.FATHER_NAME: "PEDRO PEREZ SOLIS",
    CedulaField.MOTHER_NAME: "MARIA GOMEZ ROJAS",
    CedulaField.ELECTORAL_ADDRESS: "SAN JOSE, CENTRAL, HOSPITAL",
    CedulaField.EXPIRATION_DATE: "15/06/2031",
}


@pytest.fixture
def extractor() -> FieldExtractor:
    """Return a fresh field extractor."""
    return FieldExtractor()


@pytest.fixture
def scanning_session() -> ScanSession:
    """Return a session that has already been started."""
    session = ScanSession()
    session.start()
    return session


@pytest.fixture
def sample_frame() -> np.ndarray:
    """Create a simple synthetic BGR frame."""
    frame = np.full((120, 200, 3), 255, dtype=np.uint8)
    frame[40:80, 20:180] = (0, 0, 0)
    return frame


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def reference_snapshot() -> str:
    """Front of the card: ID number, name, sex, and birth date."""
    return REFERENCE_SNAPSHOT


@pytest.fixture
def back_snapshot() -> str:
    """Back of the card: the five remaining labeled fields."""
    return BACK_SNAPSHOT


@pytest.fixture
def full_record() -> dict[CedulaField, str]:
    """Record expected after merging both sides of the card."""
    return dict(FULL_RECORD)
