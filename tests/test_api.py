"""Tests for the HTTP API."""

import base64
from datetime import date

from fastapi.testclient import TestClient

from nutrition_balance.api.app import create_app
from nutrition_balance.containers import AppContainer
from tests.conftest import (
    TUESDAY,
    FakeClock,
    FakeEstimationClient,
    InMemoryPreferencesRepository,
    estimate_payload,
    make_draft,
)

DAY = TUESDAY.isoformat()

FOOD = {
    "name": "Porridge",
    "calories": 300,
    "protein": 10,
    "carbs": 50,
    "fat": 6,
    "meal_type": "Breakfast",
}


def _client(container: AppContainer) -> TestClient:
    return TestClient(create_app(container))


def test_health(container: AppContainer) -> None:
    response = _client(container).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_log_edit_and_remove_entry(container: AppContainer) -> None:
    client = _client(container)

    created = client.post(f"/days/{DAY}/entries", json=FOOD)
    entry_id = created.json()["id"]
    patched = client.patch(f"/days/{DAY}/entries/{entry_id}", json={"quantity": 2})
    day = client.get(f"/days/{DAY}").json()
    deleted = client.delete(f"/days/{DAY}/entries/{entry_id}")
    missing = client.delete(f"/days/{DAY}/entries/{entry_id}")

    assert created.status_code == 201
    assert patched.json()["quantity"] == 2
    assert day["totals"]["calories"] == 600
    assert day["meals"][0]["meal_type"] == "Breakfast"
    assert day["progress"]["calories"]["status"] == "under"
    assert deleted.status_code == 200
    assert missing.status_code == 404


def test_invalid_entry_returns_field_error(container: AppContainer) -> None:
    response = _client(container).post(
        f"/days/{DAY}/entries", json={**FOOD, "calories": -1}
    )

    assert response.status_code == 422
    assert response.json() == {"field": "calories", "message": "Must be a number >= 0."}


def test_unknown_entry_update_returns_404(container: AppContainer) -> None:
    response = _client(container).patch(
        f"/days/{DAY}/entries/nope", json={"meal_type": "Lunch"}
    )

    assert response.status_code == 404


def test_water_endpoint(container: AppContainer) -> None:
    client = _client(container)

    client.post(f"/days/{DAY}/water", json={"amount": 500})
    response = client.post(f"/days/{DAY}/water", json={"amount": 500})

    assert response.json()["intake"] == 1000
    assert response.json()["percent"] == 50


def test_plan_flow(container: AppContainer) -> None:
    client = _client(container)

    planned = client.post(f"/plans/{DAY}/entries", json=FOOD).json()
    plan = client.get(f"/plans/{DAY}").json()
    logged = client.post(f"/plans/{DAY}/log").json()
    removed = client.delete(f"/plans/{DAY}/entries/{planned['id']}")

    assert plan["calories"] == 300
    assert len(logged["logged_ids"]) == 1
    assert logged["logged_ids"][0] != planned["id"]
    assert removed.status_code == 200
    assert client.get(f"/days/{DAY}").json()["totals"]["calories"] == 300


def test_suggest_and_apply_plan(
    container: AppContainer, estimation_client: FakeEstimationClient
) -> None:
    estimation_client.responses.append(
        {
            "Breakfast": [estimate_payload("Oats", serving="80g")],
            "Lunch": [],
            "Dinner": [estimate_payload("Salmon", 400)],
            "Snack": [],
        }
    )
    client = _client(container)

    suggestion = client.post(f"/plans/{DAY}/suggest").json()
    applied = client.post(f"/plans/{DAY}/apply", json=suggestion)

    assert suggestion["Breakfast"][0]["serving_value"] == 80
    assert "2000 calories" in str(estimation_client.calls[0]["prompt"])
    assert applied.status_code == 201
    names = [entry["name"] for entry in applied.json()["entries"]]
    assert names == ["Oats", "Salmon"]


def test_goals_endpoints(
    container: AppContainer,
    preferences_repository: InMemoryPreferencesRepository,
) -> None:
    client = _client(container)

    defaults = client.get("/goals").json()
    updated = client.put("/goals", json={"calories": 1800})
    invalid = client.put("/goals", json={"protein": "lots"})
    balancing = client.put("/goals/weekly-balancing", json={"enabled": True})
    adjustments = client.get("/goals/adjustments").json()

    assert defaults["goals"]["calories"] == 2000
    assert defaults["weekly_balancing"] is False
    assert updated.json()["goals"]["calories"] == 1800
    assert invalid.status_code == 422
    assert invalid.json()["field"] == "protein"
    assert balancing.json()["weekly_balancing"] is True
    assert adjustments["enabled"] is True
    assert len(adjustments["adjustments"]) == 4
    assert preferences_repository.values["weeklyTargetEnabled"] == "true"


def test_onboarding_lifecycle(container: AppContainer) -> None:
    client = _client(container)

    before = client.get("/onboarding").json()
    completed = client.post(
        "/onboarding", json={"calories": 2200, "weekly_balancing": True}
    ).json()
    after = client.get("/onboarding").json()
    client.delete("/onboarding")

    assert before == {"complete": False}
    assert completed["complete"] is True
    assert completed["goals"]["calories"] == 2200
    assert completed["weekly_balancing"] is True
    assert after == {"complete": True}
    assert client.get("/onboarding").json() == {"complete": False}


def test_progress_endpoint(container: AppContainer) -> None:
    client = _client(container)
    client.post(f"/days/{DAY}/entries", json={**FOOD, "calories": 5000})

    body = client.get("/progress", params={"metric": "calories"}).json()
    invalid = client.get("/progress", params={"metric": "fiber"})

    assert len(body["days"]) == 7
    assert body["days"][-1]["percent"] == 150
    assert body["days"][-1]["status"] == "over"
    assert invalid.status_code == 422


def test_summary_endpoint(container: AppContainer) -> None:
    client = _client(container)
    client.post(f"/days/{DAY}/entries", json={**FOOD, "calories": 700})

    body = client.get("/summary", params={"start": DAY, "days": 7}).json()

    assert body["days"][0] == {
        "day": DAY,
        "calories": 700,
        "protein": 10,
        "carbs": 50,
        "fat": 6,
    }
    assert body["averages"]["calories"] == 100


def test_text_estimate(
    container: AppContainer, estimation_client: FakeEstimationClient
) -> None:
    estimation_client.responses.append(estimate_payload("Banana", 105, "120g"))

    response = _client(container).post(
        "/estimates/text", json={"description": "a banana"}
    )

    assert response.status_code == 200
    assert response.json()["servingSize"] == "120g"
    assert response.json()["serving_unit"] == "g"


def test_image_estimate_accepts_data_url(
    container: AppContainer, estimation_client: FakeEstimationClient
) -> None:
    estimation_client.responses.append(estimate_payload())
    encoded = base64.b64encode(b"fake-image").decode("ascii")

    response = _client(container).post(
        "/estimates/image",
        json={"image_base64": f"data:image/webp;base64,{encoded}"},
    )
    invalid = _client(container).post(
        "/estimates/image", json={"image_base64": "***"}
    )

    assert response.status_code == 200
    assert str(estimation_client.calls[0]["image_data_url"]).startswith(
        "data:image/webp;base64,"
    )
    assert invalid.status_code == 422
    assert invalid.json()["field"] == "image_base64"


def test_estimation_failure_returns_bad_gateway(
    container: AppContainer, estimation_client: FakeEstimationClient
) -> None:
    estimation_client.error = RuntimeError("down")

    response = _client(container).post(
        "/estimates/text", json={"description": "toast"}
    )

    assert response.status_code == 502
    assert "analyze meal description" in response.json()["detail"]


def test_food_search_filters_and_sorts(
    container: AppContainer, estimation_client: FakeEstimationClient
) -> None:
    estimation_client.responses.append(
        {
            "foods": [
                estimate_payload("Apple", 95),
                estimate_payload("Apple pie", 300),
                estimate_payload("Apple juice", 120),
            ]
        }
    )

    body = (
        _client(container)
        .get(
            "/foods/search",
            params={"q": "apple", "sort": "calories-desc", "max_calories": 200},
        )
        .json()
    )

    assert body["total"] == 3
    assert [item["name"] for item in body["results"]] == ["Apple juice", "Apple"]


def test_share_round_trip(container: AppContainer) -> None:
    client = _client(container)
    client.post(f"/days/{DAY}/entries", json=FOOD)

    shared = client.get(f"/share/{DAY}").json()
    decoded = client.get("/share", params={"data": shared["data"]})
    broken = client.get("/share", params={"data": "garbage"})
    empty = client.get("/share")

    assert decoded.status_code == 200
    assert decoded.json()["food_items"][0]["name"] == "Porridge"
    assert decoded.json()["date"] == DAY
    assert broken.status_code == 400
    assert empty.status_code == 400


def test_summary_rejects_out_of_range_periods(container: AppContainer) -> None:
    client = _client(container)

    past_max_date = client.get("/summary", params={"start": "9999-12-31", "days": 2})
    too_long = client.get("/summary", params={"start": DAY, "days": 100000})
    not_positive = client.get("/summary", params={"start": DAY, "days": 0})

    assert past_max_date.status_code == 422
    assert past_max_date.json()["field"] == "start"
    assert too_long.status_code == 422
    assert not_positive.status_code == 422


def test_adjustments_endpoint_drops_past_days(
    container: AppContainer, clock: FakeClock
) -> None:
    client = _client(container)
    client.put("/goals/weekly-balancing", json={"enabled": True})
    container.tracker_service.add_food(TUESDAY, make_draft(calories=2500))

    clock.set_day(date(2024, 1, 5))
    body = client.get("/goals/adjustments").json()

    assert body["enabled"] is True
    assert list(body["adjustments"]) == ["2024-01-05", "2024-01-06"]
