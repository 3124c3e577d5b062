"""Integration tests for the users resource."""

import uuid
from typing import Any

import pytest
import pytest_check
from fastapi.testclient import TestClient

from src.domain.users import (
    AGE_NOT_A_NUMBER,
    AGE_OUT_OF_RANGE,
    FULLNAME_INVALID,
    PAYLOAD_INVALID,
)

USERS_URL = "/api/users"
JOHN = {"fullname": "John Doe", "study_level": "Master", "age": 25}
HUGE_AGE_BODY = (
    b'{"fullname": "John Doe", "study_level": "Master", "age": 1' + b"0" * 400 + b"}"
)


def create_user(client: TestClient, payload: dict[str, Any] | None = None) -> dict[str, Any]:
    """Create a user and return the response body."""
    response = client.post(USERS_URL, json=payload or JOHN)
    assert response.status_code == 201, response.text
    body: dict[str, Any] = response.json()
    return body


@pytest.mark.integration
class TestCreateUser:
    """POST /api/users."""

    def test_create_returns_record_with_generated_id(self, client: TestClient) -> None:
        """A valid payload is stored and returned with its new id."""
        response = client.post(USERS_URL, json=JOHN)

        assert response.status_code == 201
        body = response.json()
        with pytest_check.check:
            assert uuid.UUID(body["id"]).version == 4
        with pytest_check.check:
            assert {k: v for k, v in body.items() if k != "id"} == JOHN

    def test_ids_are_unique_and_retrievable(self, client: TestClient) -> None:
        """Each creation gets a distinct id that the get operation finds."""
        ids = [create_user(client)["id"] for _ in range(5)]

        assert len(set(ids)) == len(ids)
        for user_id in ids:
            response = client.get(f"{USERS_URL}/{user_id}")
            assert response.status_code == 200
            assert response.json()["id"] == user_id

    def test_input_is_normalized(self, client: TestClient) -> None:
        """Strings are trimmed and numeric ages are coerced."""
        body = create_user(
            client, {"fullname": "  Jane Roe ", "study_level": " PhD ", "age": "31"}
        )

        assert body["fullname"] == "Jane Roe"
        assert body["study_level"] == "PhD"
        assert body["age"] == 31

    def test_client_supplied_id_is_ignored(self, client: TestClient) -> None:
        """The server always generates the identifier."""
        body = create_user(client, {**JOHN, "id": "chosen-by-client"})

        assert body["id"] != "chosen-by-client"

    def test_short_fullname_is_rejected(self, client: TestClient) -> None:
        """A one-character fullname yields a 400 with the fullname error."""
        response = client.post(USERS_URL, json={**JOHN, "fullname": "J"})

        assert response.status_code == 400
        assert response.json() == {
            "error": "Validation failed",
            "details": [FULLNAME_INVALID],
        }

    @pytest.mark.parametrize("age", [-1, 151, 25.5, "abc", None])
    def test_invalid_age_is_rejected(self, client: TestClient, age: Any) -> None:  # noqa: ANN401
        """Invalid ages yield a 400 mentioning age."""
        response = client.post(USERS_URL, json={**JOHN, "age": age})

        assert response.status_code == 400
        assert any("age" in detail for detail in response.json()["details"])

    def test_age_beyond_float_range_is_rejected(self, client: TestClient) -> None:
        """An integer age too large for a float is out of range, not a crash."""
        response = client.post(
            USERS_URL,
            content=HUGE_AGE_BODY,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["details"] == [AGE_OUT_OF_RANGE]

    def test_every_error_is_reported(self, client: TestClient) -> None:
        """All rule violations are returned together."""
        response = client.post(
            USERS_URL, json={"fullname": "J", "study_level": "", "age": 999}
        )

        assert response.status_code == 400
        assert len(response.json()["details"]) == 3

    @pytest.mark.parametrize("payload", [[JOHN], "John", 42])
    def test_non_object_payload(self, client: TestClient, payload: Any) -> None:  # noqa: ANN401
        """A JSON value that is not an object is invalid."""
        response = client.post(USERS_URL, json=payload)

        assert response.status_code == 400
        assert response.json()["details"] == [PAYLOAD_INVALID]

    def test_missing_body(self, client: TestClient) -> None:
        """A request without a body is invalid."""
        response = client.post(USERS_URL)

        assert response.status_code == 400
        assert response.json()["details"] == [PAYLOAD_INVALID]

    def test_failed_validation_stores_nothing(self, client: TestClient) -> None:
        """Rejected payloads never reach the database."""
        client.post(USERS_URL, json={**JOHN, "age": 500})

        assert client.get(USERS_URL).json() == []


@pytest.mark.integration
class TestReadUsers:
    """GET /api/users and GET /api/users/{id}."""

    def test_list_empty(self, client: TestClient) -> None:
        """An empty table lists as an empty array."""
        response = client.get(USERS_URL)

        assert response.status_code == 200
        assert response.json() == []

    def test_list_returns_every_record(self, client: TestClient) -> None:
        """Every stored record is listed."""
        created = [
            create_user(client),
            create_user(client, {"fullname": "Ada", "study_level": "PhD", "age": 36}),
        ]

        listed = client.get(USERS_URL).json()

        assert sorted(listed, key=lambda u: u["id"]) == sorted(
            created, key=lambda u: u["id"]
        )

    def test_get_unknown_id(self, client: TestClient) -> None:
        """An unknown id yields 404 with the not-found message."""
        response = client.get(f"{USERS_URL}/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}


@pytest.mark.integration
class TestUpdateUser:
    """PUT /api/users/{id}."""

    def test_update_round_trip(self, client: TestClient) -> None:
        """An update is reflected exactly by a subsequent get."""
        user_id = create_user(client)["id"]
        changes = {"fullname": "John Smith", "study_level": "PhD", "age": 30}

        response = client.put(f"{USERS_URL}/{user_id}", json=changes)

        assert response.status_code == 200
        assert response.json() == {
            "message": "User updated",
            "user": {"id": user_id, **changes},
        }
        assert client.get(f"{USERS_URL}/{user_id}").json() == {"id": user_id, **changes}

    def test_update_unknown_id(self, client: TestClient) -> None:
        """Updating a missing record yields 404."""
        response = client.put(f"{USERS_URL}/{uuid.uuid4()}", json=JOHN)

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}

    @pytest.mark.parametrize(
        ("age", "detail"),
        [
            (-1, AGE_OUT_OF_RANGE),
            (151, AGE_OUT_OF_RANGE),
            (25.5, AGE_OUT_OF_RANGE),
            ("abc", AGE_NOT_A_NUMBER),
        ],
    )
    def test_validation_runs_before_existence_check(
        self,
        client: TestClient,
        age: Any,  # noqa: ANN401
        detail: str,
    ) -> None:
        """An invalid payload for an unknown id is a validation failure."""
        response = client.put(f"{USERS_URL}/{uuid.uuid4()}", json={**JOHN, "age": age})

        assert response.status_code == 400
        assert response.json()["details"] == [detail]

    def test_age_beyond_float_range_is_rejected(self, client: TestClient) -> None:
        """Updates reject integer ages too large for a float with a 400."""
        user_id = create_user(client)["id"]

        response = client.put(
            f"{USERS_URL}/{user_id}",
            content=HUGE_AGE_BODY,
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["details"] == [AGE_OUT_OF_RANGE]
        assert client.get(f"{USERS_URL}/{user_id}").json()["age"] == 25

    def test_invalid_update_keeps_record(self, client: TestClient) -> None:
        """A rejected update leaves the stored record unchanged."""
        created = create_user(client)

        response = client.put(f"{USERS_URL}/{created['id']}", json={**JOHN, "fullname": " "})

        assert response.status_code == 400
        assert client.get(f"{USERS_URL}/{created['id']}").json() == created


@pytest.mark.integration
class TestDeleteUser:
    """DELETE /api/users/{id}."""

    def test_delete_then_get(self, client: TestClient) -> None:
        """A deleted record is no longer retrievable."""
        user_id = create_user(client)["id"]

        response = client.delete(f"{USERS_URL}/{user_id}")

        assert response.status_code == 200
        assert response.json() == {"message": "User deleted"}
        assert client.get(f"{USERS_URL}/{user_id}").status_code == 404

    def test_second_delete_is_not_found(self, client: TestClient) -> None:
        """Deleting twice yields 404 on the second call."""
        user_id = create_user(client)["id"]

        assert client.delete(f"{USERS_URL}/{user_id}").status_code == 200
        response = client.delete(f"{USERS_URL}/{user_id}")

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}

    def test_delete_only_removes_target(self, client: TestClient) -> None:
        """Other records survive a delete."""
        keep = create_user(client)
        drop = create_user(client)

        client.delete(f"{USERS_URL}/{drop['id']}")

        assert client.get(USERS_URL).json() == [keep]
