# Overview: Service-layer operations for employees; encapsulates business logic and database work.

from __future__ import annotations

from ..extensions import db
from ..models import Bill, Employee
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    enforce_rules_employee,
    validate_payload,
)

EMPLOYEE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "joining_date", "salary_cents", "is_active"},
    required_on_create={"name"},
)


def list_employees(include_inactive: bool = False) -> list[Employee]:
    query = db.session.query(Employee)
    if not include_inactive:
        query = query.filter(Employee.is_active.is_(True))
    return query.order_by(Employee.name.asc(), Employee.id.asc()).all()


def get_employee(employee_id: int) -> Employee:
    employee = db.session.get(Employee, employee_id)
    if not employee:
        raise NotFoundError(f"Employee {employee_id} not found")
    return employee


def create_employee(payload: dict) -> Employee:
    patch = validate_payload(model=Employee, payload=payload, policy=EMPLOYEE_POLICY, partial=False)
    enforce_rules_employee(patch)

    employee = Employee(**patch)
    db.session.add(employee)
    db.session.commit()
    return employee


def update_employee(employee_id: int, payload: dict) -> Employee:
    employee = get_employee(employee_id)

    patch = validate_payload(model=Employee, payload=payload, policy=EMPLOYEE_POLICY, partial=True)
    enforce_rules_employee(patch)

    for k, v in patch.items():
        setattr(employee, k, v)
    db.session.commit()
    return employee


def delete_employee(employee_id: int) -> dict:
    """Delete an employee, or deactivate one who is the seller on past bills."""
    employee = get_employee(employee_id)

    if db.session.query(Bill.id).filter_by(employee_id=employee_id).first() is not None:
        employee.is_active = False
        db.session.commit()
        return {"id": employee_id, "deleted": False, "deactivated": True}

    db.session.delete(employee)
    db.session.commit()
    return {"id": employee_id, "deleted": True, "deactivated": False}
