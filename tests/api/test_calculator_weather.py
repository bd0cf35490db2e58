"""Solar calculator and weather endpoints (no API keys configured in tests)."""

import pytest

IRRADIANCE = [
    {"month": m, "ghi": ghi, "dni": ghi * 1.1, "dhi": ghi * 0.3, "temperature": 15 + m}
    for m, ghi in enumerate([2.5, 3.4, 4.6, 5.9, 6.8, 7.4, 7.5, 6.8, 5.8, 4.3, 2.9, 2.3], start=1)
]


def calculation(**system):
    return {
        "location": {"latitude": 37.77, "longitude": -122.42},
        "system": {"capacity": 6, "panelType": "monocrystalline", "tilt": 25, "azimuth": 180, **system},
        "irradiance": IRRADIANCE,
        "utilityRate": 0.3,
    }


@pytest.mark.asyncio
async def test_calculate_with_supplied_irradiance(client):
    r = await client.post("/api/v1/solar-calculator/calculate", json=calculation())
    assert r.status_code == 200, r.text
    result = r.json()
    assert result["dataSource"] == "provided"
    assert len(result["monthlyProduction"]) == 12
    assert result["annualProduction"] > 0
    assert result["financials"]["utilityRate"] == 0.3
    assert result["financials"]["systemCost"] == 18000
    assert 0.5 < result["performanceRatio"] < 1


@pytest.mark.asyncio
async def test_calculate_rejects_out_of_order_months(client):
    body = calculation()
    body["irradiance"] = list(reversed(IRRADIANCE))
    r = await client.post("/api/v1/solar-calculator/calculate", json=body)
    assert r.status_code == 422
    assert r.json()["error"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "system",
    [{"capacity": 0}, {"tilt": 95}, {"panelType": "perovskite"}, {"inverterEfficiency": 50}],
)
async def test_calculate_rejects_bad_system(client, system):
    r = await client.post("/api/v1/solar-calculator/calculate", json=calculation(**system))
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_calculate_without_irradiance_needs_nrel_key(client):
    body = calculation()
    del body["irradiance"]
    r = await client.post("/api/v1/solar-calculator/calculate", json=body)
    assert r.status_code == 502
    assert r.json()["error"] == "EXTERNAL_SERVICE_ERROR"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path,params",
    [
        ("/api/v1/weather/current", {"lat": 37.7, "lon": -122.4}),
        ("/api/v1/weather/tmy", {"lat": 37.7, "lon": -122.4}),
        ("/api/v1/weather/historical", {"lat": 37.7, "lon": -122.4, "year": 2020}),
    ],
)
async def test_weather_without_keys_is_bad_gateway(client, path, params):
    r = await client.get(path, params=params)
    assert r.status_code == 502
    assert r.json()["error"] == "EXTERNAL_SERVICE_ERROR"


@pytest.mark.asyncio
async def test_weather_rejects_out_of_range_coordinates(client):
    r = await client.get("/api/v1/weather/current", params={"lat": 91, "lon": 0})
    assert r.status_code == 422
    r = await client.get("/api/v1/weather/tmy", params={"lat": 0})
    assert r.status_code == 422
