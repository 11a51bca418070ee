"""
Validation rules for clients, employees and payroll periods.

Validators never raise: they collect every problem into a ValidationResult
so a CLI can show all of them at once.

Client rules:
1. Name must not be blank
2. Prices must be numbers, >= 0 and <= MAX_SESSION_PRICE
3. Employee and company share each <= price
4. employee_price + company_price == price (±PRICE_TOLERANCE)
5. No other client of the same employee with the same name (case-insensitive)
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

from session_payroll import config
from session_payroll.core.models import Client, Employee

EMAIL_PATTERN = re.compile(r'^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$')

TOLERANCE = Decimal(config.PRICE_TOLERANCE)
MAX_SESSION_PRICE = Decimal(config.MAX_SESSION_PRICE)
MAX_SUPERVISION_PRICE = Decimal(config.MAX_SUPERVISION_PRICE)


class ErrorCode(Enum):
    REQUIRED_FIELD = 'required_field'
    INVALID_FORMAT = 'invalid_format'
    INVALID_VALUE = 'invalid_value'
    INVALID_NUMBER = 'invalid_number'
    NEGATIVE_VALUE = 'negative_value'
    EXCEEDS_MAXIMUM = 'exceeds_maximum'
    PRICE_MISMATCH = 'price_mismatch'
    DUPLICATE = 'duplicate'


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str
    code: ErrorCode


@dataclass(frozen=True)
class ValidationResult:
    errors: Tuple[ValidationError, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def codes(self) -> List[ErrorCode]:
        return [error.code for error in self.errors]

    def messages(self) -> List[str]:
        return [f"{error.field}: {error.message}" for error in self.errors]


def _parse_number(value) -> Optional[Decimal]:
    """Decimal for finite numeric input, None otherwise"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(repr(value)) if isinstance(value, float) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return number if number.is_finite() else None


def _check_amount(field: str, value, maximum: Decimal, errors: List[ValidationError]) -> Optional[Decimal]:
    number = _parse_number(value)
    if number is None:
        errors.append(ValidationError(field, f"'{value}' is not a valid amount", ErrorCode.INVALID_NUMBER))
        return None
    if number < 0:
        errors.append(ValidationError(field, "Amount cannot be negative", ErrorCode.NEGATIVE_VALUE))
    elif number > maximum:
        errors.append(ValidationError(field, f"Amount cannot exceed €{maximum}", ErrorCode.EXCEEDS_MAXIMUM))
    return number


def validate_amount(field: str, value, maximum: Decimal = MAX_SESSION_PRICE) -> ValidationResult:
    """One raw amount: a finite number in [0, maximum]"""
    errors: List[ValidationError] = []
    _check_amount(field, value, maximum, errors)
    return ValidationResult(errors=tuple(errors))


def validate_client_fields(name: str,
                           price,
                           employee_price,
                           company_price,
                           employee_id: Optional[str] = None,
                           existing_clients: Iterable[Client] = (),
                           client_id: Optional[int] = None) -> ValidationResult:
    """Validate raw client input (numbers may still be strings or floats)"""
    errors: List[ValidationError] = []

    # Rule 1: Name
    if not (name or '').strip():
        errors.append(ValidationError('name', "Client name is required", ErrorCode.REQUIRED_FIELD))

    # Rule 2: Numbers in range
    total = _check_amount('price', price, MAX_SESSION_PRICE, errors)
    employee = _check_amount('employee_price', employee_price, MAX_SESSION_PRICE, errors)
    company = _check_amount('company_price', company_price, MAX_SESSION_PRICE, errors)

    if total is not None and employee is not None and company is not None:
        # Rule 3: Shares within total
        if employee > total:
            errors.append(ValidationError(
                'employee_price', f"Employee share €{employee} exceeds price €{total}", ErrorCode.INVALID_VALUE
            ))
        if company > total:
            errors.append(ValidationError(
                'company_price', f"Company share €{company} exceeds price €{total}", ErrorCode.INVALID_VALUE
            ))

        # Rule 4: Shares add up
        if not validate_price_distribution(total, employee, company):
            errors.append(ValidationError(
                'company_price',
                f"€{employee} + €{company} = €{employee + company}, expected €{total}",
                ErrorCode.PRICE_MISMATCH,
            ))

    # Rule 5: Duplicate name for the same employee
    if (name or '').strip():
        wanted = name.strip().casefold()
        for other in existing_clients:
            if (other.id != client_id or client_id is None) and \
                    other.employee_id == employee_id and \
                    other.name.strip().casefold() == wanted:
                errors.append(ValidationError(
                    'name', f"A client named '{name}' already exists", ErrorCode.DUPLICATE
                ))
                break

    return ValidationResult(errors=tuple(errors))


def validate_client(client: Client, existing_clients: Iterable[Client] = ()) -> ValidationResult:
    return validate_client_fields(
        client.name, client.price, client.employee_price, client.company_price,
        employee_id=client.employee_id,
        existing_clients=existing_clients,
        client_id=client.id,
    )


def validate_price_distribution(total_price, employee_price, company_price) -> bool:
    """True if both shares are non-negative and add up to the price within tolerance"""
    total = _parse_number(total_price)
    employee = _parse_number(employee_price)
    company = _parse_number(company_price)
    if total is None or employee is None or company is None:
        return False
    return employee >= 0 and company >= 0 and abs(total - (employee + company)) <= TOLERANCE


def validate_employee(employee: Employee, existing_employees: Iterable[Employee] = ()) -> ValidationResult:
    """
    Validate an employee before saving

    Rules: name required, e-mail well formed (if given), supervision price a
    number in [0, MAX_SUPERVISION_PRICE], e-mail unique among other employees.
    """
    errors: List[ValidationError] = []

    if not (employee.name or '').strip():
        errors.append(ValidationError('name', "Employee name is required", ErrorCode.REQUIRED_FIELD))

    email = (employee.email or '').strip()
    if email and not EMAIL_PATTERN.match(email):
        errors.append(ValidationError('email', f"'{email}' is not a valid e-mail", ErrorCode.INVALID_FORMAT))

    _check_amount('supervision_price', employee.supervision_price, MAX_SUPERVISION_PRICE, errors)

    if email:
        for other in existing_employees:
            if other.id != employee.id and (other.email or '').strip().casefold() == email.casefold():
                errors.append(ValidationError(
                    'email', f"An employee with e-mail '{email}' already exists", ErrorCode.DUPLICATE
                ))
                break

    return ValidationResult(errors=tuple(errors))


def validate_date_range(start: Union[date, datetime], end: Union[date, datetime]) -> ValidationResult:
    """Payroll periods must be ordered and at most MAX_DATE_RANGE_DAYS long"""
    errors: List[ValidationError] = []
    warnings: List[str] = []

    if start is None or end is None:
        errors.append(ValidationError('period', "Start and end dates are required", ErrorCode.REQUIRED_FIELD))
        return ValidationResult(errors=tuple(errors))

    days = (end - start).days
    if days < 0:
        errors.append(ValidationError('period', "Start date must be before end date", ErrorCode.INVALID_VALUE))
    elif days > config.MAX_DATE_RANGE_DAYS:
        errors.append(ValidationError(
            'period', f"Period cannot exceed {config.MAX_DATE_RANGE_DAYS} days", ErrorCode.EXCEEDS_MAXIMUM
        ))
    elif days > config.LARGE_DATE_RANGE_WARNING_DAYS:
        warnings.append(f"Large period ({days} days), calculation may include many events")

    return ValidationResult(errors=tuple(errors), warnings=tuple(warnings))
