import json
from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from envindo.core.exceptions import (
    ConflictError,
    EnvindoError,
    IllegalTransitionError,
    NotFoundError,
    ServerError,
    StaleStateError,
    UnauthenticatedError,
)
from envindo.core.global_error_handler import (
    envindo_exception_handler,
    general_exception_handler,
    http_exception_handler,
    register_global_exception_handlers,
    validation_exception_handler,
)


@pytest.fixture
def mock_logger():
    with patch("envindo.core.global_error_handler.logger") as mock:
        yield mock


@pytest.fixture
def mock_request():
    request = MagicMock(spec=Request)
    request.method = "PUT"
    request.url.path = "/api/transactions/1/status"
    return request


def body_of(response):
    return json.loads(response.body)


async def test_domain_error_maps_to_status_and_code(mock_logger, mock_request):
    response = await envindo_exception_handler(mock_request, IllegalTransitionError("Transaksi", "selesai", "diproses"))
    assert response.status_code == status.HTTP_409_CONFLICT
    assert body_of(response) == {
        "status": "error",
        "message": "Transaksi cannot move from 'selesai' to 'diproses'",
        "code": "ILLEGAL_TRANSITION",
    }
    mock_logger.warning.assert_called_once()


@pytest.mark.parametrize(
    "exc,expected_status,expected_code",
    [
        (NotFoundError(), 404, "NOT_FOUND"),
        (ConflictError("busy", errors={"subscriptions": 2}), 409, "CONFLICT"),
        (StaleStateError("Invoice", 3, "belum_bayar"), 409, "STALE_STATE"),
    ],
)
async def test_domain_error_taxonomy(mock_logger, mock_request, exc, expected_status, expected_code):
    response = await envindo_exception_handler(mock_request, exc)
    assert response.status_code == expected_status
    assert body_of(response)["code"] == expected_code


async def test_unauthenticated_sets_challenge_header(mock_logger, mock_request):
    response = await envindo_exception_handler(mock_request, UnauthenticatedError())
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


async def test_server_error_hides_message(mock_logger, mock_request):
    response = await envindo_exception_handler(mock_request, ServerError("database password is hunter2"))
    assert response.status_code == 500
    assert body_of(response) == {"status": "error", "message": "Internal server error", "code": "SERVER_ERROR"}
    mock_logger.error.assert_called_once()


async def test_http_exception_handler(mock_logger, mock_request):
    response = await http_exception_handler(mock_request, StarletteHTTPException(status_code=404, detail="Not Found"))
    assert response.status_code == 404
    assert body_of(response) == {"status": "error", "message": "Not Found", "code": "NOT_FOUND"}
    mock_logger.warning.assert_called_once_with("HTTP Exception: 404 - Not Found for PUT /api/transactions/1/status")


async def test_validation_errors_are_keyed_by_field(mock_logger, mock_request):
    exc = RequestValidationError(
        [
            {"loc": ("body", "status"), "msg": "Input should be 'pending' or 'aktif'", "type": "enum"},
            {"loc": ("query", "limit"), "msg": "Input should be greater than 0", "type": "greater_than"},
        ]
    )
    response = await validation_exception_handler(mock_request, exc)
    assert response.status_code == 400
    body = body_of(response)
    assert body["code"] == "VALIDATION_ERROR"
    assert body["errors"] == {
        "status": "Input should be 'pending' or 'aktif'",
        "limit": "Input should be greater than 0",
    }


async def test_general_exception_handler(mock_logger, mock_request):
    with patch("envindo.core.global_error_handler.traceback") as mock_traceback:
        mock_traceback.format_exc.return_value = "Mocked Traceback"
        response = await general_exception_handler(mock_request, RuntimeError("boom"))

    assert response.status_code == 500
    assert body_of(response) == {"status": "error", "message": "Internal server error", "code": "SERVER_ERROR"}
    mock_logger.error.assert_called_once_with(
        "Unhandled Exception: boom\nMocked Traceback for PUT /api/transactions/1/status"
    )


def test_register_global_exception_handlers():
    app = MagicMock(spec=FastAPI)
    app.exception_handler = MagicMock()
    register_global_exception_handlers(app)

    registered = [call.args[0] for call in app.exception_handler.call_args_list]
    assert registered == [EnvindoError, StarletteHTTPException, RequestValidationError, Exception]
