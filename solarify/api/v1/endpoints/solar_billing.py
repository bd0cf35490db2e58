"""Solar billing actions: history, true-up, projections and bill calculations."""

from datetime import MAXYEAR, MINYEAR
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request

from solarify.api.v1.dependencies import get_billing_calculator, get_billing_cycle_manager
from solarify.api.v1.endpoints._envelope import (
    EnvelopeError,
    as_date,
    as_float,
    as_int,
    dispatch,
    envelope,
    method_not_allowed,
    require,
)
from solarify.application.services.billing_cycle_manager import BillingCycleManager, cycle_to_dict
from solarify.application.services.solar_billing_calculator import MAX_PROJECTION_YEARS, SolarBillingCalculator
from solarify.core.limiter import limit_writes

router = APIRouter()

YEARS = (MINYEAR, MAXYEAR)
PROJECTION_YEARS = (1, MAX_PROJECTION_YEARS)

ManagerDep = Annotated[BillingCycleManager, Depends(get_billing_cycle_manager)]
CalculatorDep = Annotated[SolarBillingCalculator, Depends(get_billing_calculator)]


@router.get("")
async def solar_billing_query(request: Request, manager: ManagerDep):
    params = dict(request.query_params)

    async def billing_history():
        require(params, ("customerId",), "Customer ID is required")
        history = await manager.get_billing_history(
            params["customerId"],
            as_date(params.get("startDate"), "startDate"),
            as_date(params.get("endDate"), "endDate"),
        )
        return envelope(history, message="Billing history retrieved successfully")

    async def true_up():
        require(params, ("customerId", "trueUpYear"), "Customer ID and true-up year are required")
        result = await manager.get_true_up(params["customerId"], as_int(params["trueUpYear"], "trueUpYear", YEARS))
        return envelope(result, message="True-up data retrieved successfully")

    async def projections():
        require(params, ("customerId",), "Customer ID is required")
        result = await manager.get_projections(
            params["customerId"],
            as_int(params.get("projectionYears", 10), "projectionYears", PROJECTION_YEARS),
            params.get("scenarios", "standard"),
        )
        return envelope(result, message="Billing projections generated successfully")

    return await dispatch(
        params.get("action"),
        {
            "billing-history": ("Failed to retrieve billing history", billing_history),
            "true-up": ("Failed to retrieve true-up data", true_up),
            "projections": ("Failed to generate projections", projections),
        },
        "Invalid action parameter",
    )


@router.post("")
@limit_writes
async def solar_billing_command(
    request: Request,
    manager: ManagerDep,
    calculator: CalculatorDep,
    body: Annotated[dict[str, Any] | None, Body()] = None,
):
    body = body or {}
    action = request.query_params.get("action") or body.get("action")

    async def calculate_comparison():
        require(body, ("customerId", "historicalUsage"), "Customer ID and historical usage data are required")
        result = calculator.calculate_comparison(body)
        await manager.record_comparison(result)
        return envelope(result, message="Billing comparison calculated successfully")

    async def calculate_monthly():
        require(
            body,
            ("month", "year", "usageData", "rateSchedule"),
            "Month, year, usage data, and rate schedule are required",
        )
        bill = calculator.calculate_monthly_bill(
            as_int(body["month"], "month", (1, 12)),
            as_int(body["year"], "year", YEARS),
            body["usageData"],
            body["rateSchedule"],
            body.get("productionData"),
            body.get("nemPolicy"),
        )
        return envelope(bill, message="Monthly bill calculated successfully")

    async def project_billing():
        require(
            body,
            ("calculationInput", "projectionYears", "scenarios"),
            "Calculation input, projection years, and scenarios are required",
        )
        calc_input = body["calculationInput"]
        if not isinstance(calc_input, dict) or not calc_input.get("historicalUsage"):
            raise EnvelopeError(400, "Billing projection failed", "calculationInput.historicalUsage is required")
        system = calc_input.get("solarSystem") or {}
        capacity = system.get("capacity") if isinstance(system, dict) else None
        scenarios = body["scenarios"]
        result = calculator.scenario_projections(
            calc_input["historicalUsage"],
            as_int(body["projectionYears"], "projectionYears", PROJECTION_YEARS),
            as_float(capacity, "solarSystem.capacity") if capacity else None,
            scenarios if isinstance(scenarios, str) else "all",
        )
        return envelope(result, message="Future billing projections generated successfully")

    async def process_true_up():
        require(
            body,
            ("customerId", "trueUpYear", "billingCycles", "nemPolicy"),
            "Customer ID, true-up year, billing cycles, and NEM policy are required",
        )
        result = manager.process_annual_true_up(
            body["customerId"],
            as_int(body["trueUpYear"], "trueUpYear", YEARS),
            body["billingCycles"],
            body["nemPolicy"],
        )
        await manager.record_true_up(result)
        return envelope(result, message="True-up processing completed successfully")

    async def create_billing_cycle():
        require(
            body,
            ("customerId", "utilityCompany", "rateScheduleId", "startDate", "energyData"),
            "Customer ID, utility company, rate schedule ID, start date, and energy data are required",
        )
        cycle = await manager.create_billing_cycle(
            body["customerId"],
            body["utilityCompany"],
            body["rateScheduleId"],
            body.get("nemPolicyId"),
            as_date(body["startDate"], "startDate"),
            body["energyData"],
        )
        return envelope(cycle_to_dict(cycle), status=201, message="Billing cycle created successfully")

    return await dispatch(
        action,
        {
            "calculate-comparison": ("Billing comparison calculation failed", calculate_comparison),
            "calculate-monthly": ("Monthly bill calculation failed", calculate_monthly),
            "project-billing": ("Billing projection failed", project_billing),
            "process-true-up": ("True-up processing failed", process_true_up),
            "create-billing-cycle": ("Billing cycle creation failed", create_billing_cycle),
        },
        "Invalid action",
    )


@router.api_route("", methods=["PUT", "PATCH", "DELETE"], include_in_schema=False)
async def solar_billing_unsupported():
    return method_not_allowed()
