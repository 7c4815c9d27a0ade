from typing import Dict


def error_detail(message: str, field_errors: Dict[str, str] | None = None) -> dict:
    """Return the error envelope shared by every failing endpoint."""
    return {"message": message, "field_errors": field_errors or {}}
