"""Defines constants for spreadsheet upload validation."""

# Allowed file extensions for the evaluation spreadsheet
ALLOWED_EXTENSIONS: set[str] = {".xls", ".xlsx", ".csv"}

# Sheets the processing service reads from an .xlsx workbook
EXPECTED_SHEETS: tuple[str, ...] = (
    "Lista",
    "Ev. Fuentes de Datos Segura",
    "Ev. Trabajo en Equipo",
)

# Media types forwarded to the processing service
MIME_MAPPING: dict[str, str] = {
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".csv": "text/csv",
}
