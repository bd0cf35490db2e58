"""Utility rate actions: schedule search, providers, TOU periods, bills and optimization."""

import json
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Request

from solarify.api.v1.dependencies import get_rate_engine
from solarify.api.v1.endpoints._envelope import (
    EnvelopeError,
    as_datetime,
    as_int,
    dispatch,
    envelope,
    method_not_allowed,
    require,
)
from solarify.application.services.utility_rate_engine import UtilityRateEngine, validate_schedule
from solarify.core.limiter import limit_writes
from solarify.shared.utils.datetime import utc_now

router = APIRouter()

RateEngineDep = Annotated[UtilityRateEngine, Depends(get_rate_engine)]


@router.get("")
async def utility_rates_query(request: Request, rate_engine: RateEngineDep):
    params = dict(request.query_params)

    async def search():
        require(params, ("zipCode",), "ZIP code is required")
        schedules = await rate_engine.search_rates(
            params["zipCode"],
            params.get("customerClass", "residential"),
            params.get("utilityCompany"),
        )
        page = max(1, as_int(params.get("page", 1), "page"))
        limit = max(1, as_int(params.get("limit", 20), "limit"))
        offset = (page - 1) * limit
        return envelope(
            schedules[offset:offset + limit],
            message=f"Found {len(schedules)} rate schedules",
        )

    async def providers():
        if not params.get("zipCode") and not params.get("state"):
            raise EnvelopeError(400, "Either state or zipCode is required")
        found = rate_engine.list_providers(params.get("zipCode"), params.get("state"))
        return envelope(found, message=f"Found {len(found)} utility providers")

    async def tou_periods():
        require(params, ("scheduleId",), "Rate schedule ID is required")
        moment = as_datetime(params["date"], "date") if params.get("date") else utc_now()
        periods = rate_engine.tou_periods_at(params["scheduleId"], moment)
        return envelope(periods)

    async def calculate():
        require(
            params,
            ("scheduleId", "usageData", "billingPeriodStart", "billingPeriodEnd"),
            "Missing required parameters: scheduleId, usageData, billingPeriodStart, billingPeriodEnd",
        )
        try:
            usage = json.loads(params["usageData"])
        except json.JSONDecodeError:
            raise EnvelopeError(400, "Bill calculation failed", "usageData must be a JSON array") from None
        if not isinstance(usage, list):
            raise EnvelopeError(400, "Bill calculation failed", "usageData must be a JSON array")
        bill = rate_engine.calculate_bill(
            params["scheduleId"],
            usage,
            as_datetime(params["billingPeriodStart"], "billingPeriodStart"),
            as_datetime(params["billingPeriodEnd"], "billingPeriodEnd"),
        )
        return envelope(bill, message="Bill calculated successfully")

    return await dispatch(
        params.get("action"),
        {
            "search": ("Failed to search rate schedules", search),
            "providers": ("Failed to fetch utility providers", providers),
            "tou-periods": ("Failed to fetch TOU periods", tou_periods),
            "calculate": ("Bill calculation failed", calculate),
        },
        "Invalid action parameter",
    )


@router.post("")
@limit_writes
async def utility_rates_command(
    request: Request,
    rate_engine: RateEngineDep,
    body: Annotated[dict[str, Any] | None, Body()] = None,
):
    body = body or {}
    action = request.query_params.get("action") or body.get("action")

    async def optimize():
        require(body, ("zipCode", "usageData"), "ZIP code and usage data are required")
        result = await rate_engine.optimize_rates(
            body["zipCode"],
            body["usageData"],
            body.get("customerClass", "residential"),
            body.get("systemSpecs"),
            body.get("currentScheduleId"),
        )
        return envelope(result, message="Rate optimization completed successfully")

    async def validate_data():
        if body.get("schedule"):
            schedule = body["schedule"]
        elif body.get("rateScheduleId"):
            schedule = rate_engine.get_schedule(body["rateScheduleId"])
        else:
            raise EnvelopeError(400, "Rate schedule ID is required")
        if not isinstance(schedule, dict):
            raise EnvelopeError(400, "Rate data validation failed", "schedule must be an object")
        return envelope(validate_schedule(schedule))

    return await dispatch(
        action,
        {
            "optimize": ("Rate optimization failed", optimize),
            "validate-data": ("Rate data validation failed", validate_data),
        },
        "Invalid action",
    )


@router.api_route("", methods=["PUT", "PATCH", "DELETE"], include_in_schema=False)
async def utility_rates_unsupported():
    return method_not_allowed()
