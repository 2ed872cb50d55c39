"""Field schema of the Costa Rican national ID card (cédula).

Defines the nine record slots, the printed labels used to find the
labeled ones in OCR text, and the enumerated values of ``sex``.
"""

from enum import StrEnum


class CedulaField(StrEnum):
    """Named slots of the structured identity record."""

    ID_NUMBER = "idNumber"
    FULL_NAME = "fullName"
    SEX = "sex"
    BIRTH_DATE = "birthDate"
    BIRTH_PLACE = "birthPlace"
    FATHER_NAME = "fatherName"
    MOTHER_NAME = "motherName"
    ELECTORAL_ADDRESS = "electoralAddress"
    EXPIRATION_DATE = "expirationDate"


FIELD_COUNT = len(CedulaField)

# Checked in this order; a line is assigned to the first label it contains.
LABELED_FIELDS: tuple[tuple[CedulaField, str], ...] = (
    (CedulaField.ID_NUMBER, "Número de Cédula"),
    (CedulaField.BIRTH_DATE, "Fecha de Nacimiento"),
    (CedulaField.BIRTH_PLACE, "Lugar de Nacimiento"),
    (CedulaField.FATHER_NAME, "Nombre del Padre"),
    (CedulaField.MOTHER_NAME, "Nombre de la Madre"),
    (CedulaField.ELECTORAL_ADDRESS, "Domicilio Electoral"),
    (CedulaField.EXPIRATION_DATE, "Vencimiento"),
)

SEX_VALUES: tuple[str, ...] = ("MASCULINO", "FEMENINO")

DISPLAY_LABELS: dict[CedulaField, str] = {
    CedulaField.ID_NUMBER: "Número de Cédula",
    CedulaField.FULL_NAME: "Nombre",
    CedulaField.SEX: "Sexo",
    CedulaField.BIRTH_DATE: "Fecha de Nacimiento",
    CedulaField.BIRTH_PLACE: "Lugar de Nacimiento",
    CedulaField.FATHER_NAME: "Nombre del Padre",
    CedulaField.MOTHER_NAME: "Nombre de la Madre",
    CedulaField.ELECTORAL_ADDRESS: "Domicilio Electoral",
    CedulaField.EXPIRATION_DATE: "Vencimiento",
}
