"""Net metering actions: policy lookup, eligibility, NEM bill calculation and comparison."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request

from solarify.api.v1.dependencies import get_nem_engine, get_rate_engine
from solarify.api.v1.endpoints._envelope import (
    EnvelopeError,
    as_float,
    dispatch,
    envelope,
    method_not_allowed,
    require,
)
from solarify.application.services.net_metering_engine import NetMeteringEngine
from solarify.application.services.utility_rate_engine import UtilityRateEngine
from solarify.core.limiter import limit_writes
from solarify.domain.exceptions import ResourceNotFoundException

router = APIRouter()

NemEngineDep = Annotated[NetMeteringEngine, Depends(get_nem_engine)]
RateEngineDep = Annotated[UtilityRateEngine, Depends(get_rate_engine)]


@router.get("")
async def net_metering_query(request: Request, nem_engine: NemEngineDep, rate_engine: RateEngineDep):
    params = dict(request.query_params)

    async def policies():
        require(params, ("state",), "State parameter is required")
        found = nem_engine.get_available_policies(params["state"], params.get("utility"))
        return envelope(found, message=f"Found {len(found)} NEM policies")

    async def eligibility():
        require(
            params,
            ("policyId", "systemCapacity", "customerClass"),
            "Missing required parameters: policyId, systemCapacity, customerClass",
        )
        try:
            result = nem_engine.check_eligibility(
                params["policyId"],
                as_float(params["systemCapacity"], "systemCapacity"),
                params["customerClass"],
                params.get("installationDate"),
                params.get("systemModifications", "").lower() == "true",
            )
        except ResourceNotFoundException:
            raise EnvelopeError(404, "Policy not found") from None
        return envelope(result)

    async def rates():
        require(params, ("zipCode",), "ZIP code is required")
        schedules = await rate_engine.search_rates(
            params["zipCode"], params.get("customerClass", "residential")
        )
        return envelope(schedules, message=f"Found {len(schedules)} rate schedules")

    return await dispatch(
        params.get("action"),
        {
            "policies": ("Failed to fetch NEM policies", policies),
            "eligibility": ("Eligibility check failed", eligibility),
            "rates": ("Failed to fetch rate schedules", rates),
        },
        "Invalid action parameter",
    )


@router.post("")
@limit_writes
async def net_metering_command(
    request: Request,
    nem_engine: NemEngineDep,
    rate_engine: RateEngineDep,
    body: Annotated[dict[str, Any] | None, Body()] = None,
):
    body = body or {}
    action = request.query_params.get("action") or body.get("action")

    async def calculate():
        require(body, ("policyId", "energyData"), "Missing required parameters: policyId, energyData")
        result = nem_engine.calculate(
            body["policyId"], body["energyData"], body.get("rateData"), body.get("options")
        )
        return envelope(result, message="NEM calculation completed successfully")

    async def optimize():
        require(
            body,
            ("customerId", "usageData", "location"),
            "Missing required parameters: customerId, usageData, location",
        )
        location = body["location"]
        zip_code = location.get("zipCode") if isinstance(location, dict) else None
        if not zip_code:
            raise EnvelopeError(400, "Optimization failed", "location.zipCode is required")
        result = await rate_engine.optimize_rates(
            zip_code,
            body["usageData"],
            body.get("customerClass", "residential"),
            body.get("systemSpecs"),
            body.get("currentScheduleId"),
        )
        return envelope({"customerId": body["customerId"], **result}, message="Rate optimization completed")

    async def compare():
        require(body, ("energyData",), "Missing required parameters: energyData")
        result = nem_engine.compare(body.get("policyIds"), body["energyData"], body.get("rateData"))
        return envelope(result, message="Policy comparison completed successfully")

    return await dispatch(
        action,
        {
            "calculate": ("Calculation failed", calculate),
            "optimize": ("Optimization failed", optimize),
            "compare": ("Billing comparison failed", compare),
        },
        "Invalid action",
    )


@router.api_route("", methods=["PUT", "PATCH", "DELETE"], include_in_schema=False)
async def net_metering_unsupported():
    return method_not_allowed()
