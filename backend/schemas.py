from __future__ import annotations
from datetime import date
from decimal import Decimal
from typing import Any, ClassVar, Dict, List, Literal, Mapping, NamedTuple, Optional, Type

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

FieldErrors = Dict[str, List[str]]
# field -> {pydantic error type, or "*" for any: message shown to the user}
Messages = Dict[str, Dict[str, str]]

class FormSchema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")
    messages: ClassVar[Messages] = {}

# -------- Invoices --------
class InvoiceIn(FormSchema):
    customer_id: str
    amount: Decimal = Field(gt=0, decimal_places=2)  # dollars
    status: Literal["pending", "paid"]

    messages: ClassVar[Messages] = {
        "customer_id": {"*": "Please select a customer."},
        "amount": {"*": "Please enter an amount greater than $0."},
        "status": {"*": "Please select an invoice status."},
    }

# -------- Expenses --------
class ExpenseIn(FormSchema):
    # no lower bound here, unlike invoices; whole cents only
    amount: Decimal = Field(decimal_places=2)
    description: Optional[str] = None
    spent_date: date

    messages: ClassVar[Messages] = {
        "amount": {"*": "Please enter the amount you spent."},
        "description": {"*": "Please enter a valid description."},
        "spent_date": {"*": "Please enter the date when you spent this expense."},
    }

# -------- Auth / User --------
class SignUpIn(FormSchema):
    # passwords are taken verbatim
    model_config = ConfigDict(str_strip_whitespace=False, extra="ignore")

    name: str
    email: EmailStr
    password: str = Field(min_length=8)

    messages: ClassVar[Messages] = {
        "name": {"*": "Please enter your name."},
        "email": {"missing": "This field has to be filled.", "*": "This is not a valid email."},
        "password": {"*": "Must be at least 8 characters long."},
    }

    @field_validator("name", "email", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

class LoginIn(FormSchema):
    model_config = ConfigDict(str_strip_whitespace=False, extra="ignore")

    email: EmailStr
    password: str = Field(min_length=6)

    @field_validator("email", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

SCHEMAS: Dict[str, Type[FormSchema]] = {
    "invoice": InvoiceIn,
    "expense": ExpenseIn,
    "signup": SignUpIn,
    "login": LoginIn,
}

# -------- Validation --------
class ValidationResult(NamedTuple):
    data: Optional[FormSchema] = None
    errors: Optional[FieldErrors] = None

    @property
    def success(self) -> bool:
        return self.errors is None

def _present(value: Any) -> bool:
    return not (value is None or (isinstance(value, str) and value.strip() == ""))

def field_errors(schema: Type[FormSchema], exc: ValidationError) -> FieldErrors:
    errors: FieldErrors = {}
    for err in exc.errors(include_input=False, include_url=False):
        field = str(err["loc"][0]) if err["loc"] else "__root__"
        per_field = schema.messages.get(field, {})
        msg = per_field.get(err["type"]) or per_field.get("*") or err["msg"]
        bucket = errors.setdefault(field, [])
        if msg not in bucket:
            bucket.append(msg)
    return errors

def validate(schema_name: str, raw_input: Mapping[str, Any]) -> ValidationResult:
    """
    Checks raw form input against the named schema.

    Only declared fields are read; blank strings count as missing. Returns
    either the typed record or the per-field messages, never both. Input
    values are never copied into the messages.
    """
    try:
        schema = SCHEMAS[schema_name]
    except KeyError:
        raise ValueError(f"Unknown schema: {schema_name}") from None

    values = {}
    for name in schema.model_fields:
        value = raw_input.get(name)
        if _present(value):
            values[name] = value

    try:
        return ValidationResult(data=schema.model_validate(values))
    except ValidationError as exc:
        return ValidationResult(errors=field_errors(schema, exc))
