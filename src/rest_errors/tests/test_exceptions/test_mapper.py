# src/rest_errors/tests/test_exceptions/test_mapper.py
import json
import logging
from dataclasses import dataclass

import pytest

from rest_errors.exceptions.base import CoreException, Error, ErrorCategory, Violation
from rest_errors.exceptions.mapper import ErrorResponseMapper
from rest_errors.exceptions.metadata import add_metadata, add_suppressed
from rest_errors.exceptions.shapes import (
    AuthenticationFailure,
    ClientError,
    FieldValidation,
    MalformedPayload,
    MethodNotAllowed,
    NotAcceptable,
    ResourceNotFound,
    TypeMismatch,
    Unclassified,
    UnsupportedMediaType,
)
from rest_errors.models.request_info import RequestInfo

from ..test_fixtures.mapper_fixtures import TEST_CORRELATION_ID, StaticCorrelationId

MAPPER_LOGGER = "rest_errors.exceptions.mapper"


class BrokenMessages(CoreException):
    """A CoreException whose messages cannot be rendered."""

    def error_messages(self):
        raise RuntimeError("render broke")


def raised(exc: BaseException) -> BaseException:
    try:
        raise exc
    except BaseException as caught:
        return caught


class TestEndToEndScenarios:
    def test_structured_validation_failure(self, mapper: ErrorResponseMapper):
        failure = ValueError("invalid user")
        shape = FieldValidation(
            failure,
            (
                Violation("must not be blank", "user.firstName"),
                Violation("must be greater than 0", "user.age"),
            ),
        )
        response = mapper.render(mapper.to_core_exception(shape))

        assert response.http_status_code == 400
        assert len(response.errors) == 2
        assert [e.code for e in response.errors] == ["VALIDATION", "VALIDATION"]
        assert [e.location for e in response.errors] == ["user.firstName", "user.age"]
        assert [e.message for e in response.errors] == ["must not be blank", "must be greater than 0"]

    def test_unrecognized_failure(self, mapper: ErrorResponseMapper):
        response = mapper.map_exception(RuntimeError("Something went wrong"))

        assert response.http_status_code == 500
        error = response.errors[0]
        assert error.code == "UNEXPECTED"
        assert error.message == "Something went wrong"
        assert error.location is None

    def test_attached_metadata(self, mapper: ErrorResponseMapper):
        failure = add_metadata(RuntimeError("duplicate"), ErrorCategory.CONFLICT, Error("SUPPRESSED_CONFLICT_ERROR"))
        response = mapper.map_exception(failure)

        assert response.http_status_code == 409
        assert response.errors[0].code == "SUPPRESSED_CONFLICT_ERROR"
        assert response.errors[0].message == "duplicate"

    def test_enum_type_mismatch(self, mapper: ErrorResponseMapper):
        shape = TypeMismatch(ValueError("bad enum"), "currency", "INVALID_VALUE", "enum", ("USD", "EUR", "GBP"))
        response = mapper.render(mapper.to_core_exception(shape))

        error = response.errors[0]
        assert response.http_status_code == 400
        assert error.code == "VALIDATION"
        assert error.location == "currency"
        for text in ("INVALID_VALUE", "USD", "EUR", "GBP"):
            assert text in error.message


class TestShapeConversion:
    @pytest.mark.parametrize(
        "shape_cls,category,message",
        [
            (ResourceNotFound, ErrorCategory.NOT_FOUND, "Resource Not Found"),
            (UnsupportedMediaType, ErrorCategory.VALIDATION, "Media Type Not Supported"),
            (MethodNotAllowed, ErrorCategory.VALIDATION, "Method Not Allowed"),
            (NotAcceptable, ErrorCategory.VALIDATION, "Request Not Acceptable"),
            (AuthenticationFailure, ErrorCategory.AUTHENTICATION, "Authentication required"),
        ],
    )
    def test_fixed_shapes(self, mapper, shape_cls, category, message):
        failure = RuntimeError("framework")
        core = mapper.to_core_exception(shape_cls(failure))
        assert core.category is category
        assert core.message == message
        assert core.errors == (Error(category.name),)
        assert core.cause is failure

    def test_non_enum_type_mismatch_message(self, mapper):
        core = mapper.to_core_exception(TypeMismatch(ValueError(), "quantity", "many", "int"))
        assert core.message == "Invalid value 'many' for field 'quantity' of type int"
        assert core.errors[0].location == "quantity"

    def test_malformed_payload_messages(self, mapper):
        failure = ValueError()
        assert mapper.to_core_exception(MalformedPayload(failure)).message == "JSON processing error"
        assert (
            mapper.to_core_exception(MalformedPayload(failure, detail="Expecting value")).message
            == "JSON processing error: Expecting value"
        )
        located = mapper.to_core_exception(MalformedPayload(failure, location="items.[0]"))
        assert located.message == "JSON mapping error at field: items.[0]"
        assert located.errors[0].location == "items.[0]"

    def test_client_error(self, mapper):
        assert mapper.to_core_exception(ClientError(ValueError(), "Missing filter")).message == "Missing filter"
        assert mapper.to_core_exception(ClientError(ValueError())).message == "Bad Request"

    def test_first_attached_core_exception_wins(self, mapper):
        failure = RuntimeError("x")
        add_metadata(failure, ErrorCategory.CONFLICT, Error("first"))
        add_metadata(failure, ErrorCategory.NOT_FOUND, Error("second"))
        assert mapper.to_core_exception(Unclassified(failure)).errors[0].code == "first"

    def test_core_entry_preferred_over_earlier_plain_entry(self, mapper):
        failure = RuntimeError("x")
        add_suppressed(failure, OSError("unrelated"))
        add_metadata(failure, ErrorCategory.CONFLICT, Error("dup"))
        assert mapper.to_core_exception(Unclassified(failure)).category is ErrorCategory.CONFLICT

    def test_first_plain_entry_is_resolved_recursively(self, mapper):
        inner = add_metadata(OSError("disk"), ErrorCategory.UNPROCESSABLE, Error("io"))
        failure = add_suppressed(RuntimeError("outer"), inner)
        assert mapper.to_core_exception(Unclassified(failure)).errors[0].code == "io"

    def test_suppressed_cycle_ends_unexpected(self, mapper):
        a, b = RuntimeError("a"), RuntimeError("b")
        add_suppressed(a, b)
        add_suppressed(b, a)
        assert mapper.to_core_exception(Unclassified(a)).category is ErrorCategory.UNEXPECTED

    def test_unexpected_without_message(self, mapper):
        core = mapper.to_core_exception(Unclassified(RuntimeError()))
        assert core.message == "Unexpected"
        assert core.errors == (Error("UNEXPECTED"),)


class TestExtensionPoints:
    def test_unknown_shape_is_unexpected(self, mapper):
        @dataclass(frozen=True)
        class RateLimited:
            failure: BaseException

        core = mapper.to_core_exception(RateLimited(RuntimeError("slow down")))
        assert core.category is ErrorCategory.UNEXPECTED

    def test_registered_recognizer_and_handler(self, mapper):
        @dataclass(frozen=True)
        class Forbidden:
            failure: BaseException

        def recognize(exc):
            return Forbidden(exc) if isinstance(exc, PermissionError) else None

        mapper.register_recognizer(recognize)
        mapper.register_shape_handler(
            Forbidden,
            lambda shape: CoreException(ErrorCategory.AUTHORIZATION, [Error("forbidden")], "Forbidden", shape.failure),
        )

        response = mapper.map_exception(PermissionError("no"))
        assert response.http_status_code == 403
        assert response.errors[0].code == "forbidden"
        # other exceptions still go through the built-in classifier
        assert mapper.map_exception(RuntimeError("x")).http_status_code == 500


class TestRendering:
    def test_wire_field_order(self, mapper):
        payload = mapper.render(CoreException(ErrorCategory.CONFLICT, [Error("dup", "id")], "dup")).to_payload()
        assert list(payload) == ["errors", "correlationId", "httpStatusCode"]
        assert list(payload["errors"][0]) == ["code", "message", "location"]
        assert payload["correlationId"] == TEST_CORRELATION_ID

    def test_correlation_id_read_once(self, mapper, correlation: StaticCorrelationId):
        mapper.render(CoreException(ErrorCategory.CONFLICT, [Error("a"), Error("b")], "dup"))
        assert correlation.calls == 1

    def test_idempotent_for_same_input(self):
        exc = CoreException(ErrorCategory.CONFLICT, [Error("dup", "id", {"id": 1})], "dup")
        first = ErrorResponseMapper(correlation=StaticCorrelationId("one")).render(exc).to_payload()
        second = ErrorResponseMapper(correlation=StaticCorrelationId("two")).render(exc).to_payload()

        assert first.pop("correlationId") == "one"
        assert second.pop("correlationId") == "two"
        assert json.dumps(first) == json.dumps(second)

    def test_render_failure_falls_back_to_unexpected(self, mapper, caplog):
        exc = BrokenMessages(ErrorCategory.CONFLICT, [Error("dup")], "dup")
        with caplog.at_level(logging.ERROR, logger=MAPPER_LOGGER):
            response = mapper.render(exc)

        assert response.http_status_code == 500
        assert response.errors[0].code == "UNEXPECTED"
        assert response.errors[0].message == "render broke"
        assert response.correlation_id == TEST_CORRELATION_ID
        assert any(r.getMessage() == "Failed to generate error response" for r in caplog.records)

    def test_render_failure_survives_broken_correlation(self):
        class Broken:
            def get_id(self):
                raise RuntimeError("no id")

        response = ErrorResponseMapper(correlation=Broken()).render(
            CoreException(ErrorCategory.CONFLICT, [Error("dup")], "dup")
        )
        assert response.http_status_code == 500
        assert response.correlation_id


class TestLogging:
    def test_expected_failure_logs_one_warning(self, mapper, caplog):
        request = RequestInfo(path="/orders", method="POST")
        with caplog.at_level(logging.DEBUG, logger=MAPPER_LOGGER):
            mapper.render(CoreException(ErrorCategory.CONFLICT, [Error("dup")], "dup"), request)

        records = [r for r in caplog.records if r.name == MAPPER_LOGGER]
        assert len(records) == 1
        assert records[0].levelno == logging.WARNING
        assert records[0].request == {"path": "/orders", "method": "POST", "query": None, "remote_address": None}
        assert records[0].error["category"] == "CONFLICT"
        assert records[0].exc_info is None

    def test_warning_trail_is_capped(self, caplog):
        def recurse(depth):
            if depth == 0:
                raise ValueError("deep")
            recurse(depth - 1)

        try:
            recurse(20)
        except ValueError as exc:
            root = exc

        mapper = ErrorResponseMapper(correlation=StaticCorrelationId(), cause_line_limit=4)
        with caplog.at_level(logging.WARNING, logger=MAPPER_LOGGER):
            mapper.render(CoreException(ErrorCategory.VALIDATION, [Error("bad")], "bad", cause=root))

        (record,) = [r for r in caplog.records if r.name == MAPPER_LOGGER]
        assert len(record.error["root_cause"]) == 4

    def test_unexpected_failure_logs_error_with_trace(self, mapper, caplog):
        failure = raised(RuntimeError("Something went wrong"))
        with caplog.at_level(logging.WARNING, logger=MAPPER_LOGGER):
            mapper.map_exception(failure)

        (record,) = [r for r in caplog.records if r.name == MAPPER_LOGGER]
        assert record.levelno == logging.ERROR
        assert record.exc_info is not None
        assert record.error["root_cause_cls"] == "RuntimeError"
