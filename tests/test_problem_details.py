import json

from media_uploads.security.problem_details import Problem, problem_response, upload_problem
from media_uploads.security.uploads import StorageFailure, ValidationFailure


def test_problem_response_shape():
    problem = Problem(
        status=400,
        code="unsupported_extension",
        title="Invalid upload",
        detail="Image is not valid",
        instance="/api/v1/uploads",
    )
    response = problem_response(problem, correlation_id="cid-1")
    payload = json.loads(response.body)
    assert response.status_code == 400
    assert response.headers["content-type"].startswith("application/problem+json")
    assert payload == {
        "type": "about:blank",
        "title": "Invalid upload",
        "status": 400,
        "detail": "Image is not valid",
        "code": "unsupported_extension",
        "correlation_id": "cid-1",
        "instance": "/api/v1/uploads",
    }
    assert response.headers["X-Correlation-ID"] == "cid-1"


def test_instance_is_omitted_when_unknown():
    payload = Problem(status=500, code="internal_error", title="x", detail="y").to_payload("c")
    assert "instance" not in payload


def test_existing_correlation_header_wins_in_body_and_header():
    problem = Problem(status=500, code="internal_error", title="x", detail="y")
    response = problem_response(
        problem,
        headers={"X-Correlation-ID": "upstream"},
        correlation_id="generated",
    )
    assert response.headers["X-Correlation-ID"] == "upstream"
    assert json.loads(response.body)["correlation_id"] == "upstream"


def test_correlation_id_is_generated_when_missing():
    problem = Problem(status=404, code="not_found", title="x", detail="y")
    response = problem_response(problem)
    cid = response.headers["X-Correlation-ID"]
    assert cid
    assert json.loads(response.body)["correlation_id"] == cid


def test_validation_failure_mapping():
    exc = ValidationFailure("size", "invalid_file_size", "File size must be less than 5 bytes", 413)
    problem = upload_problem(exc, instance="/api/v1/uploads")
    payload = problem.to_payload("cid")
    assert payload["status"] == 413
    assert payload["code"] == "invalid_file_size"
    assert payload["rule"] == "size"
    assert payload["detail"] == "File size must be less than 5 bytes"
    assert payload["instance"] == "/api/v1/uploads"


def test_storage_failure_hides_cause():
    exc = StorageFailure("[Errno 13] Permission denied: '/srv/wwwroot/Uploads/x.png'")
    problem = upload_problem(exc)
    assert problem.status == 500
    assert problem.code == "storage_failure"
    assert "/srv" not in problem.detail
    assert "rule" not in problem.to_payload("cid")
