from fastapi.testclient import TestClient

from nearby_service.app import create_app
from nearby_service.dependencies import get_finder
from nearby_service.directory import InMemoryProviderDirectory, ProviderRecord
from nearby_service.finder import NearbyProviderFinder

ALGIERS = {"latitude": 36.7538, "longitude": 3.0588}


class UnavailableDirectory:
    async def fetch_window(self, box, limit):
        _ = (box, limit)
        raise RuntimeError("database is down")


def _client(finder: NearbyProviderFinder | None = None) -> TestClient:
    app = create_app()
    if finder is not None:
        app.dependency_overrides[get_finder] = lambda: finder
    return TestClient(app)


def test_nearby_returns_sorted_matches_with_distance() -> None:
    client = _client(NearbyProviderFinder(InMemoryProviderDirectory()))

    response = client.post("/v1/providers/nearby", json={**ALGIERS, "radius": 100})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 3
    assert len(body["data"]) == 3
    assert {item["id"] for item in body["data"]} == {"vet-alg-1", "lab-alg-1", "vet-bli-1"}
    distances = [item["distance"] for item in body["data"]]
    assert distances == sorted(distances)
    assert body["data"][-1]["id"] == "vet-bli-1"
    assert body["data"][0]["is_verified"] is True
    assert "vet_name" in body["data"][0]


def test_nearby_uses_default_radius_when_omitted() -> None:
    client = _client(NearbyProviderFinder(InMemoryProviderDirectory()))

    response = client.post("/v1/providers/nearby", json=ALGIERS)

    assert response.status_code == 200
    ids = [item["id"] for item in response.json()["data"]]
    assert "lab-ora-1" in ids
    assert "vet-tiz-1" not in ids
    assert "lab-set-1" not in ids
    assert response.json()["count"] == 6


def test_nearby_clamps_oversized_radius() -> None:
    client = _client(NearbyProviderFinder(InMemoryProviderDirectory()))

    response = client.post("/v1/providers/nearby", json={**ALGIERS, "radius": 20000})

    assert response.status_code == 200
    assert all(item["distance"] <= 500 for item in response.json()["data"])


def test_nearby_empty_result() -> None:
    client = _client(NearbyProviderFinder(InMemoryProviderDirectory([])))

    response = client.post("/v1/providers/nearby", json={**ALGIERS, "radius": 50})

    assert response.status_code == 200
    assert response.json() == {"data": [], "count": 0}


def test_nearby_rejects_missing_coordinates() -> None:
    client = _client(NearbyProviderFinder(InMemoryProviderDirectory()))

    response = client.post("/v1/providers/nearby", json={"longitude": 3.0588})

    assert response.status_code == 400
    assert response.json() == {"error": "latitude and longitude are required"}


def test_nearby_rejects_non_numeric_coordinates() -> None:
    client = _client(NearbyProviderFinder(InMemoryProviderDirectory()))

    response = client.post("/v1/providers/nearby", json={"latitude": "north", "longitude": 3.0588})

    assert response.status_code == 400
    assert "error" in response.json()


def test_nearby_rejects_out_of_range_latitude() -> None:
    client = _client(NearbyProviderFinder(InMemoryProviderDirectory()))

    response = client.post("/v1/providers/nearby", json={"latitude": 120, "longitude": 3.0588})

    assert response.status_code == 400
    assert response.json() == {"error": "latitude must be between -90 and 90"}


def test_nearby_rejects_non_positive_radius() -> None:
    client = _client(NearbyProviderFinder(InMemoryProviderDirectory()))

    response = client.post("/v1/providers/nearby", json={**ALGIERS, "radius": 0})

    assert response.status_code == 400
    assert response.json() == {"error": "radius must be a positive number"}


def test_nearby_maps_directory_failure_to_server_error() -> None:
    client = _client(NearbyProviderFinder(UnavailableDirectory()))

    response = client.post(
        "/v1/providers/nearby",
        json=ALGIERS,
        headers={"Origin": "https://vetdz.example.com"},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "provider directory read failed"}
    assert response.headers["access-control-allow-origin"] == "*"


def test_nearby_skips_unverified_records_from_directory() -> None:
    records = [
        ProviderRecord(provider_id="hidden", latitude=36.75, longitude=3.05, verified=False),
        ProviderRecord(provider_id="shown", latitude=36.76, longitude=3.06, verified=True),
    ]
    client = _client(NearbyProviderFinder(InMemoryProviderDirectory(records)))

    response = client.post("/v1/providers/nearby", json={**ALGIERS, "radius": 10})

    assert [item["id"] for item in response.json()["data"]] == ["shown"]


def test_cors_preflight_is_answered() -> None:
    client = _client()

    response = client.options(
        "/v1/providers/nearby",
        headers={
            "Origin": "https://vetdz.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, content-type",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    allowed = response.headers["access-control-allow-headers"].lower()
    assert "apikey" in allowed
    assert "x-client-info" in allowed


def test_cors_header_on_simple_response() -> None:
    client = _client(NearbyProviderFinder(InMemoryProviderDirectory()))

    response = client.post(
        "/v1/providers/nearby",
        json={**ALGIERS, "radius": 10},
        headers={"Origin": "https://vetdz.example.com"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_nearby_rejects_boolean_latitude() -> None:
    client = _client(NearbyProviderFinder(InMemoryProviderDirectory()))

    response = client.post("/v1/providers/nearby", json={"latitude": True, "longitude": 3.0, "radius": 10})

    assert response.status_code == 400
    assert "error" in response.json()


def test_nearby_rejects_numeric_strings() -> None:
    client = _client(NearbyProviderFinder(InMemoryProviderDirectory()))

    response = client.post("/v1/providers/nearby", json={"latitude": "36.7", "longitude": 3.0588})
    radius_response = client.post("/v1/providers/nearby", json={**ALGIERS, "radius": "10"})

    assert response.status_code == 400
    assert "error" in response.json()
    assert radius_response.status_code == 400


def test_nearby_accepts_integer_coordinates() -> None:
    records = [ProviderRecord(provider_id="origin", latitude=36.0, longitude=3.0, verified=True)]
    client = _client(NearbyProviderFinder(InMemoryProviderDirectory(records)))

    response = client.post("/v1/providers/nearby", json={"latitude": 36, "longitude": 3, "radius": 1})

    assert response.status_code == 200
    assert [item["id"] for item in response.json()["data"]] == ["origin"]
