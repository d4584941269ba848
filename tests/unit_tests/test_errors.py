"""Unit tests for errors.py error handlers."""

import json
from unittest.mock import MagicMock
from unittest.mock import patch

import pydantic
import pytest
from fastapi import Request

from fleetshare.errors import handle_broad_exceptions
from fleetshare.errors import handle_device_share_errors
from fleetshare.errors import handle_pydantic_validation_errors
from fleetshare.errors import status_code_for
from fleetshare.workflow.exceptions import DeviceNotFound
from fleetshare.workflow.exceptions import DeviceShareError
from fleetshare.workflow.exceptions import NotShareable
from fleetshare.workflow.exceptions import RemoteRejected
from fleetshare.workflow.exceptions import RemoteUnavailable
from fleetshare.workflow.exceptions import TerminationTimeout
from fleetshare.workflow.retry import RetryPolicy


def _request() -> MagicMock:
    mock_request = MagicMock(spec=Request)
    mock_request.method = "POST"
    mock_request.url.path = "/api/devices/b1/share"
    return mock_request


class TestHandleBroadExceptions:
    """Tests for handle_broad_exceptions middleware."""

    @pytest.mark.asyncio
    @patch("fleetshare.errors.log_response_info")
    async def test_successful_request(self, mock_log):
        """Test middleware passes through successful requests."""
        mock_response = MagicMock()

        async def mock_call_next(request):
            return mock_response

        result = await handle_broad_exceptions(_request(), mock_call_next)

        assert result == mock_response
        mock_log.assert_not_called()

    @pytest.mark.asyncio
    @patch("fleetshare.errors.log_response_info")
    async def test_exception_returns_500(self, mock_log):
        """Test middleware catches exceptions and returns 500."""

        async def mock_call_next(request):
            raise ValueError("Test error")

        result = await handle_broad_exceptions(_request(), mock_call_next)

        assert result.status_code == 500
        assert json.loads(result.body) == {"detail": "Internal server error", "error_type": "ValueError"}
        mock_log.assert_called_once()


class TestHandlePydanticValidationErrors:
    @pytest.mark.asyncio
    @patch("fleetshare.errors.log_response_info")
    async def test_returns_422(self, mock_log):
        with pytest.raises(pydantic.ValidationError) as exc_info:
            RetryPolicy(max_attempts=0)

        result = await handle_pydantic_validation_errors(_request(), exc_info.value)

        assert result.status_code == 422
        detail = json.loads(result.body)["detail"]
        assert detail[0]["input"] == 0


class TestStatusCodeFor:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (DeviceNotFound("missing"), 404),
            (NotShareable("no serial"), 422),
            (TerminationTimeout("still active", attempts=3, elapsed_ms=10), 504),
            (RemoteUnavailable("down"), 503),
            (RemoteRejected("refused"), 502),
            (DeviceShareError("other"), 500),
        ],
    )
    def test_mapping(self, error, expected):
        assert status_code_for(error) == expected


class TestHandleDeviceShareErrors:
    @pytest.mark.asyncio
    @patch("fleetshare.errors.log_response_info")
    async def test_timeout_body(self, mock_log):
        error = TerminationTimeout("Source database device share did not become Terminated", attempts=12, elapsed_ms=7412)
        error.phase = "terminate"

        result = await handle_device_share_errors(_request(), error)

        assert result.status_code == 504
        assert json.loads(result.body) == {
            "detail": "Source database device share did not become Terminated after 12 attempts (7412ms)",
            "error_type": "TerminationTimeout",
            "phase": "terminate",
            "attempts": 12,
            "elapsed_ms": 7412,
        }

    @pytest.mark.asyncio
    @patch("fleetshare.errors.log_response_info")
    async def test_store_error_body(self, mock_log):
        error = RemoteUnavailable("Could not reach my.geotab.com", database="fleet_a", method="Get", error_name="ConnectError")

        result = await handle_device_share_errors(_request(), error)

        body = json.loads(result.body)
        assert result.status_code == 503
        assert body["database"] == "fleet_a"
        assert body["store_error"] == "ConnectError"
        assert body["phase"] is None

    @pytest.mark.asyncio
    async def test_client_errors_logged_as_warning(self, mock_logger):
        await handle_device_share_errors(_request(), NotShareable("Device b1 not shareable", phase="eligibility"))

        mock_logger["errors"].bind.return_value.warning.assert_called_once()
        mock_logger["errors"].bind.return_value.error.assert_not_called()

    @pytest.mark.asyncio
    async def test_server_errors_logged_as_error(self, mock_logger):
        await handle_device_share_errors(_request(), RemoteUnavailable("down"))

        mock_logger["errors"].bind.return_value.error.assert_called_once()
