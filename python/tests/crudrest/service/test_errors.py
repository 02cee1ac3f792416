import pdb
import unittest as test

from crudrest import CrudRestException
from crudrest.service import errors as err
from crudrest.service.result import Result

class TestApiError(test.TestCase):

    def test_defaults(self):
        ex = err.ApiError()
        self.assertTrue(isinstance(ex, CrudRestException))
        self.assertEqual(ex.code, 500)
        self.assertEqual(ex.message, "Internal Server Error")
        self.assertEqual(ex.errors, {})
        self.assertIsNone(ex.cause)
        self.assertEqual(err.http_status(ex), 500)

        ex = err.ApiError("Conflict", 409)
        self.assertEqual(str(ex), "Conflict")
        self.assertEqual(err.http_status(ex), 409)
        self.assertEqual(ex.to_dict(), {"code": 409, "message": "Conflict"})

    def test_kinds(self):
        self.assertEqual(err.http_status(err.RecordNotFound()), 404)
        self.assertEqual(err.http_status(err.ValidationFailed()), 422)
        self.assertEqual(err.http_status(err.RouteResolutionError()), 500)
        self.assertEqual(err.http_status(err.Unauthorized()), 401)

        # the status of the fixed kinds does not depend on the carried code
        self.assertEqual(err.http_status(err.RecordNotFound("gone", 410)), 404)

        ex = err.Unauthorized()
        self.assertEqual(ex.message, "Unauthorized")
        self.assertEqual(list(ex.to_dict().items()), [("code", 401), ("message", "Unauthorized")])

    def test_validation_bag(self):
        ex = err.ValidationFailed("Validation on Articles failed",
                                  errors={"title": ["too short"]})
        self.assertEqual(ex.to_dict(), {"code": 422, "message": "Validation on Articles failed",
                                        "errors": {"title": ["too short"]}})
        ex = err.ValidationFailed(errors={})
        self.assertEqual(ex.errors, {})
        self.assertNotIn("errors", ex.to_dict())

    def test_cause(self):
        cause = KeyError("id")
        ex = err.ApiError("Server failure", cause=cause)
        self.assertIs(ex.cause, cause)

class TestResult(test.TestCase):

    def test_result(self):
        res = Result()
        self.assertEqual(res.status, 200)
        self.assertIsNone(res.payload)
        self.assertEqual(res.headers, {})

        res = Result({"value": "Updated!"}, 201, {"Location": "/articles/1"})
        res.add_header("X-Test", "yes")
        self.assertEqual(list(res.headers.keys()), ["Location", "X-Test"])
        self.assertEqual(res.to_dict(), {"status": 201, "payload": {"value": "Updated!"}})

if __name__ == '__main__':
    test.main()
