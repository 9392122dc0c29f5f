from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel
from sqlalchemy.exc import OperationalError

from hr_chat_worker.api.error_handlers import register_error_handlers
from hr_chat_worker.domain.errors import DraftNotFoundError, InvalidDraftTransitionError


def test_domain_error_handler_returns_contract_shape() -> None:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/boom")
    def boom() -> None:
        raise DraftNotFoundError(message="Draft is gone")

    client = TestClient(app)
    response = client.get("/boom")

    assert response.status_code == 404
    assert response.json() == {
        "code": "DRAFT_NOT_FOUND",
        "message": "Draft is gone",
    }


def test_transition_error_includes_details() -> None:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/forbidden")
    def forbidden() -> None:
        raise InvalidDraftTransitionError(
            code="FORBIDDEN",
            message="Role hr_staff is not allowed",
            details={"allowed_next_actions": ["draft"]},
        )

    response = TestClient(app).get("/forbidden")

    assert response.status_code == 403
    assert response.json()["details"] == {"allowed_next_actions": ["draft"]}


def test_validation_error_maps_to_400() -> None:
    app = FastAPI()
    register_error_handlers(app)

    class Payload(BaseModel):
        amount: int

    @app.post("/payload")
    def payload(body: Payload) -> dict[str, int]:
        return {"amount": body.amount}

    response = TestClient(app).post("/payload", json={"amount": "many"})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_REQUEST"
    assert response.json()["details"]["fields"] == ["amount"]
    assert response.json()["details"]["errors"]


def test_unexpected_error_maps_to_500() -> None:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/crash")
    def crash() -> None:
        raise RuntimeError("unexpected")

    client = TestClient(app, raise_server_exceptions=False)
    response = client.get("/crash")

    assert response.status_code == 500
    assert response.json()["code"] == "INTERNAL_ERROR"
    assert response.json()["details"] == {"error_type": "RuntimeError"}


def test_database_error_maps_to_503() -> None:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/store-down")
    def store_down() -> None:
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    client = TestClient(app, raise_server_exceptions=False)
    response = client.get("/store-down")

    assert response.status_code == 503
    assert response.json()["code"] == "DB_ERROR"
    assert "details" not in response.json()
