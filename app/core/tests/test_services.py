"""
Tests for core service patterns.

Test Classes:
    TestServiceResult: success/failure construction and API payloads
    TestBaseService: per-service logger naming
"""

from core.services import BaseService, ServiceResult


class TestServiceResult:
    """Tests for ServiceResult."""

    def test_success_carries_data_and_is_truthy(self):
        result = ServiceResult.success({"id": 1})

        assert result.success is True
        assert result.data == {"id": 1}
        assert result.error is None
        assert bool(result) is True

    def test_failure_carries_error_and_is_falsy(self):
        result = ServiceResult.failure("Nope", error_code="NOT_OWNER")

        assert result.success is False
        assert result.data is None
        assert result.error_code == "NOT_OWNER"
        assert bool(result) is False

    def test_to_response_for_success(self):
        assert ServiceResult.success(3).to_response() == {"success": True, "data": 3}

    def test_to_response_for_failure_includes_optional_fields(self):
        result = ServiceResult.failure(
            "Invalid",
            error_code="INVALID",
            errors={"title": ["This field may not be blank."]},
        )

        assert result.to_response() == {
            "success": False,
            "error": "Invalid",
            "error_code": "INVALID",
            "errors": {"title": ["This field may not be blank."]},
        }

    def test_to_response_for_failure_omits_missing_fields(self):
        assert ServiceResult.failure("Nope").to_response() == {
            "success": False,
            "error": "Nope",
        }


class TestBaseService:
    """Tests for BaseService helpers."""

    def test_logger_named_after_service(self):
        class InboxService(BaseService):
            pass

        logger = InboxService.get_logger()

        assert logger.name == f"{__name__}.InboxService"
