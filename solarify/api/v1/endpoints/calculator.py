"""Solar production calculator."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from solarify.api.v1.dependencies import get_solar_engine
from solarify.application.services.solar_calculation_engine import SolarCalculationEngine
from solarify.core.limiter import limit_writes
from solarify.schemas.solar import SolarCalculationRequest

router = APIRouter()


@router.post("/calculate")
@limit_writes
async def calculate_production(
    request: Request,
    body: SolarCalculationRequest,
    engine: Annotated[SolarCalculationEngine, Depends(get_solar_engine)],
) -> dict[str, Any]:
    """Monthly and annual production with financials. Irradiance defaults to NREL TMY data."""
    irradiance = [m.to_dto() for m in body.irradiance] if body.irradiance else None
    return await engine.calculate_production(
        body.location.to_dto(), body.system.to_dto(), irradiance, body.utility_rate
    )
