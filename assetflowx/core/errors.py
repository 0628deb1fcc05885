"""Error taxonomy shared by the services and the HTTP layer.

Services raise these; the handlers registered in main.py turn them into
``{"error": message}`` responses with the class's status code.  Routes never
build error responses by hand.

  NotFoundError        404  referenced order/course/user/credential absent
  InvalidStateError    400  operation illegal for the order's current state
  OrderExpiredError    400  PENDING order past its payment deadline
  BadRequestError      400  request is well-formed JSON but incomplete
  UnconfiguredError    503  an external dependency has no credential
  InternalError        500  anything unexpected
"""

from __future__ import annotations

from typing import Any


class AssetFlowError(Exception):
    status_code = 500

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class NotFoundError(AssetFlowError):
    status_code = 404


class InvalidStateError(AssetFlowError):
    status_code = 400


class OrderExpiredError(InvalidStateError):
    pass


class BadRequestError(AssetFlowError):
    status_code = 400


class UnconfiguredError(AssetFlowError):
    status_code = 503


class InternalError(AssetFlowError):
    status_code = 500
