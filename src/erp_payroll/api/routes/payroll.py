"""Payroll calculation and month-end lock endpoints."""

from dataclasses import asdict
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Path, Query, status

from erp_payroll.api.dependencies import Engine, SalaryService
from erp_payroll.api.schemas import (
    BulkItemResponse,
    BulkRequest,
    BulkResponse,
    CalculateRequest,
    ErrorResponse,
    FinalizeRequest,
    HourlyPayrollResponse,
    MonthlyPayrollResponse,
    MonthlySalaryListResponse,
    MonthlySalaryResponse,
    PayrollResponse,
    SaveRequest,
    TransitionResponse,
    UnfinalizeRequest,
)
from erp_payroll.calculators import (
    EmployeeNotFoundError,
    PayrollDataTimeoutError,
    PayrollSuccess,
    PayType,
    SalaryConfigError,
)
from erp_payroll.calculators.types import EmployeePayroll, InvalidMonthError
from erp_payroll.services import InvalidTransitionError, PayrollFinalizedError

router = APIRouter(prefix="/payroll", tags=["payroll"])


def to_payroll_response(result: EmployeePayroll) -> PayrollResponse:
    """Convert a calculation result into its response schema."""
    data = asdict(result)
    data["pay_type"] = result.pay_type.value
    if result.pay_type == PayType.HOURLY:
        return HourlyPayrollResponse.model_validate(data)
    return MonthlyPayrollResponse.model_validate(data)


_ERROR_STATUS: dict[type[Exception], int] = {
    EmployeeNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidMonthError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    SalaryConfigError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    PayrollFinalizedError: status.HTTP_409_CONFLICT,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    PayrollDataTimeoutError: status.HTTP_504_GATEWAY_TIMEOUT,
}

_DOMAIN_ERRORS = tuple(_ERROR_STATUS)


def _http_error(exc: Exception) -> HTTPException:
    """Map a domain error onto an HTTP error."""
    return HTTPException(status_code=_ERROR_STATUS[type(exc)], detail=str(exc))


# ============================================================================
# Calculation
# ============================================================================


@router.post(
    "/calculate",
    response_model=PayrollResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
async def calculate_payroll(engine: Engine, payload: CalculateRequest) -> PayrollResponse:
    """Calculate one employee's payroll without saving it."""
    overrides = payload.overrides.to_overrides() if payload.overrides else None
    try:
        result = await engine.calculate_employee_payroll(
            payload.employee_id, payload.month, overrides
        )
    except _DOMAIN_ERRORS as e:
        raise _http_error(e) from e
    return to_payroll_response(result)


@router.post(
    "/bulk",
    response_model=BulkResponse,
    responses={422: {"model": ErrorResponse}},
)
async def calculate_bulk_payroll(engine: Engine, payload: BulkRequest) -> BulkResponse:
    """Calculate every active employee; failures are reported per item."""
    try:
        outcomes = await engine.calculate_bulk_payroll(payload.month, payload.branch_id)
    except _DOMAIN_ERRORS as e:
        raise _http_error(e) from e

    items = []
    for outcome in outcomes:
        if isinstance(outcome, PayrollSuccess):
            items.append(
                BulkItemResponse(
                    employee_id=outcome.employee_id,
                    employee_name=outcome.result.employee_name,
                    status="ok",
                    result=to_payroll_response(outcome.result),
                )
            )
        else:
            items.append(
                BulkItemResponse(
                    employee_id=outcome.employee_id,
                    employee_name=outcome.employee_name,
                    status="error",
                    error=outcome.reason,
                )
            )

    succeeded = sum(1 for item in items if item.status == "ok")
    return BulkResponse(
        month=payload.month,
        items=items,
        succeeded=succeeded,
        failed=len(items) - succeeded,
    )


# ============================================================================
# Persistence
# ============================================================================


@router.post(
    "/save",
    response_model=MonthlySalaryResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def save_payroll(
    engine: Engine,
    service: SalaryService,
    payload: SaveRequest,
) -> MonthlySalaryResponse:
    """Calculate one employee's payroll and upsert it for the month."""
    if await service.is_finalized(payload.employee_id, payload.month):
        raise _http_error(PayrollFinalizedError(payload.employee_id, payload.month))

    overrides = payload.overrides.to_overrides() if payload.overrides else None
    try:
        result = await engine.calculate_employee_payroll(
            payload.employee_id, payload.month, overrides
        )
        row = await service.save_payroll_calculation(
            result,
            notes=payload.notes,
            kpi_percent=overrides.kpi_percent if overrides else None,
        )
    except _DOMAIN_ERRORS as e:
        raise _http_error(e) from e
    return MonthlySalaryResponse.model_validate(row)


@router.post(
    "/finalize",
    response_model=TransitionResponse,
    responses={409: {"model": ErrorResponse}},
)
async def finalize_payroll(
    service: SalaryService,
    payload: FinalizeRequest,
) -> TransitionResponse:
    """Lock saved rows for the month."""
    try:
        updated = await service.finalize_payroll(
            payload.month, payload.employee_ids, payload.user_id, payload.user_name
        )
    except _DOMAIN_ERRORS as e:
        raise _http_error(e) from e
    return TransitionResponse(month=payload.month, updated=updated)


@router.post(
    "/unfinalize",
    response_model=TransitionResponse,
    responses={409: {"model": ErrorResponse}},
)
async def unfinalize_payroll(
    service: SalaryService,
    payload: UnfinalizeRequest,
) -> TransitionResponse:
    """Unlock saved rows for the month."""
    try:
        updated = await service.unfinalize_payroll(payload.month, payload.employee_ids)
    except _DOMAIN_ERRORS as e:
        raise _http_error(e) from e
    return TransitionResponse(month=payload.month, updated=updated)


@router.get("/monthly/{month}", response_model=MonthlySalaryListResponse)
async def list_monthly_salaries(
    service: SalaryService,
    month: Annotated[str, Path(pattern=r"^\d{4}-(0[1-9]|1[0-2])$")],
    branch_id: Annotated[UUID | None, Query()] = None,
) -> MonthlySalaryListResponse:
    """Saved rows for a month, optionally for one branch."""
    rows = await service.get_monthly_salaries(month, branch_id)
    return MonthlySalaryListResponse(
        items=[MonthlySalaryResponse.model_validate(r) for r in rows],
        total=len(rows),
    )


@router.get("/history/{employee_id}", response_model=MonthlySalaryListResponse)
async def get_salary_history(
    service: SalaryService,
    employee_id: Annotated[UUID, Path()],
) -> MonthlySalaryListResponse:
    """Finalized rows for an employee, newest month first."""
    rows = await service.get_employee_salary_history(employee_id)
    return MonthlySalaryListResponse(
        items=[MonthlySalaryResponse.model_validate(r) for r in rows],
        total=len(rows),
    )
