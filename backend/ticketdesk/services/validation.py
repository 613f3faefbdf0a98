from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from ticketdesk.schemas.ticket import TicketCreate


@dataclass
class ValidationResult:
    ok: bool
    data: Optional[TicketCreate] = None
    errors: Optional[Dict[str, Any]] = None


def flatten_errors(errors: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Group pydantic error entries by top-level field.

    Errors without a field location (e.g. the body is not an object) end up in formErrors.
    """
    form_errors: List[str] = []
    field_errors: Dict[str, List[str]] = {}
    for err in errors:
        loc = [p for p in err.get("loc", ()) if p != "body"]
        msg = err.get("msg", "Invalid value")
        if loc and isinstance(loc[0], str):
            field_errors.setdefault(loc[0], []).append(msg)
        else:
            form_errors.append(msg)
    return {"formErrors": form_errors, "fieldErrors": field_errors}


def validate_ticket_input(body: Any) -> ValidationResult:
    if not isinstance(body, dict):
        return ValidationResult(ok=False, errors={"formErrors": ["Request body must be a JSON object"], "fieldErrors": {}})
    try:
        data = TicketCreate.model_validate(body)
    except PydanticValidationError as e:
        return ValidationResult(ok=False, errors=flatten_errors(e.errors()))
    return ValidationResult(ok=True, data=data)
