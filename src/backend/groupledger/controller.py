"""
Controllers for handling HTTP requests against the ledger engine.
"""

import base64
import json
import logging
from http import HTTPStatus

import azure.functions as func
from typeguard import TypeCheckError

from groupledger import services
from groupledger.config import validate_group_config
from groupledger.engine import (
    ResultCache,
    compute_analytics,
    compute_settlements,
    compute_split,
    expense_set_version,
)
from groupledger.errors import InternalConsistencyError, ValidationError
from groupledger.expenses import to_expense
from groupledger.models import Group, GroupScope, UserScope

__all__ = ["Controller"]

logger = logging.getLogger(__name__)


def _json_response(data: dict, status_code: int = HTTPStatus.OK) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(data), mimetype="application/json", status_code=status_code
    )


class Controller:
    """
    Controller for handling application logic and dependency injection.

    Initialized Services:
        db_service: Read-only group and expense store.
        cache: Analytics results keyed by (group id, expense-set version).
    """

    def __init__(self) -> None:
        # Instance level so table clients and cached results are reused
        self.db_service = services.DatabaseService()
        self.cache = ResultCache()

    def _get_user(self, req: func.HttpRequest) -> str | None:
        """
        Parses the 'x-ms-client-principal' header to get the member identifier
        (userDetails). Returns None if header is missing or invalid.
        """
        header = req.headers.get("x-ms-client-principal")
        if not header:
            return None

        try:
            decoded = base64.b64decode(header).decode("utf-8")
            principal = json.loads(decoded)
            return principal.get("userDetails")
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.error("Failed to parse x-ms-client-principal: %s", e)
            return None

    def invalidate_group(self, group_id: str) -> None:
        """Signal that a group's expenses were written; drops cached results."""
        self.cache.invalidate(group_id)

    def handle_split(self, req: func.HttpRequest) -> func.HttpResponse:
        """Computes participant shares for a draft expense."""
        logger.info("Processing split request.")

        try:
            req_body = req.get_json()
        except ValueError:
            return func.HttpResponse("Invalid JSON", status_code=HTTPStatus.BAD_REQUEST)
        if not isinstance(req_body, dict):
            return func.HttpResponse("Invalid JSON", status_code=HTTPStatus.BAD_REQUEST)

        draft, error = to_expense(req_body.get("expense"))
        if error:
            return func.HttpResponse(error, status_code=HTTPStatus.BAD_REQUEST)

        group = None
        if "group" in req_body:
            try:
                validate_group_config(req_body["group"])
            except (KeyError, TypeError, TypeCheckError, ValueError) as e:
                return func.HttpResponse(
                    f"Invalid group: {e}", status_code=HTTPStatus.BAD_REQUEST
                )
            group_config = req_body["group"]
            group = Group(
                group_config["Id"], group_config["Name"], group_config["Members"]
            )

        try:
            shares = compute_split(draft, group)
        except ValidationError as e:
            return func.HttpResponse(str(e), status_code=HTTPStatus.BAD_REQUEST)

        return _json_response({"shares": {m: float(v) for m, v in shares.items()}})

    def handle_settlements(self, req: func.HttpRequest) -> func.HttpResponse:
        """Computes settlement payments for a set of balances."""
        logger.info("Processing settlements request.")

        try:
            req_body = req.get_json()
        except ValueError:
            return func.HttpResponse("Invalid JSON", status_code=HTTPStatus.BAD_REQUEST)
        if not isinstance(req_body, dict):
            return func.HttpResponse("Invalid JSON", status_code=HTTPStatus.BAD_REQUEST)

        balances = req_body.get("balances")
        if not isinstance(balances, dict):
            return func.HttpResponse(
                "Missing required fields", status_code=HTTPStatus.BAD_REQUEST
            )

        try:
            settlements = compute_settlements(balances)
        except ValidationError as e:
            return func.HttpResponse(str(e), status_code=HTTPStatus.BAD_REQUEST)
        except InternalConsistencyError as e:
            logger.error("Inconsistent balances submitted: %s", e)
            return func.HttpResponse(
                f"Internal Error: {str(e)}",
                status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            )

        return _json_response({"settlements": [s.to_dict() for s in settlements]})

    def handle_group_analytics(self, req: func.HttpRequest) -> func.HttpResponse:
        """Returns the analytics report for one group."""
        logger.info("Processing group analytics request.")

        if not self._get_user(req):
            return func.HttpResponse(
                "Unauthorized", status_code=HTTPStatus.UNAUTHORIZED
            )

        group_id = req.route_params.get("groupId")
        if not group_id:
            return func.HttpResponse(
                "Missing groupId", status_code=HTTPStatus.BAD_REQUEST
            )

        try:
            group = self.db_service.get_group(group_id)
            if group is None:
                return func.HttpResponse("Not Found", status_code=HTTPStatus.NOT_FOUND)

            expenses = self.db_service.get_active_expenses(group_id)
            report = self.cache.get_or_compute(
                group_id,
                expense_set_version(expenses, group.members),
                lambda: compute_analytics(expenses, GroupScope(group)).to_dict(),
            )
        except InternalConsistencyError as e:
            logger.error("Ledger for group %s is inconsistent: %s", group_id, e)
            return func.HttpResponse(
                f"Internal Error: {str(e)}",
                status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            )

        return _json_response({"analytics": report})

    def handle_user_analytics(self, req: func.HttpRequest) -> func.HttpResponse:
        """Returns spending analytics across every group of the caller."""
        logger.info("Processing user analytics request.")

        user = self._get_user(req)
        if not user:
            return func.HttpResponse(
                "Unauthorized", status_code=HTTPStatus.UNAUTHORIZED
            )

        try:
            expenses = self.db_service.get_member_expenses(user)
            report = compute_analytics(expenses, UserScope(user)).to_dict()
        except InternalConsistencyError as e:
            logger.error("Expense data for %s is inconsistent: %s", user, e)
            return func.HttpResponse(
                f"Internal Error: {str(e)}",
                status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            )

        return _json_response({"analytics": report})
