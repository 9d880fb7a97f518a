# tests/test_response.py

from core.response import ErrorCode, Response


def test_succeed():
    response = Response.succeed("done", data={"x": 1})

    assert response.success
    assert response.status_code == 200
    assert response.data == {"x": 1}
    assert not response.is_partial
    assert str(response) == "Success: done"


def test_succeed_with_warnings_is_partial():
    response = Response.succeed("done", warnings=["one course unreachable"])

    assert response.is_partial
    assert response.warnings == ["one course unreachable"]


def test_fail():
    response = Response.fail("nope", ErrorCode.NOT_FOUND, 404)

    assert not response.success
    assert response.data == {}
    assert not response.is_partial
    assert str(response) == "Error: NOT_FOUND"


def test_to_dict():
    response = Response.fail("nope", ErrorCode.DUPLICATE_SUBMISSION, 409)

    assert response.to_dict() == {
        "success": False,
        "error": "DUPLICATE_SUBMISSION",
        "detail": "nope",
        "data": {},
        "status_code": 409,
        "warnings": [],
    }
