"""
Azure Function App entry point for GroupLedger.
"""

import azure.functions as func

from groupledger.controller import Controller

app = func.FunctionApp()

# Singleton controller so table clients and cached results are reused
controller = Controller()


@app.route(route="split", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def split(req: func.HttpRequest) -> func.HttpResponse:
    """Computes participant shares for a draft expense."""
    return controller.handle_split(req)


@app.route(route="settlements", methods=["POST"], auth_level=func.AuthLevel.ANONYMOUS)
def settlements(req: func.HttpRequest) -> func.HttpResponse:
    """Computes the payments that clear a set of balances."""
    return controller.handle_settlements(req)


@app.route(
    route="analytics/group/{groupId}",
    methods=["GET"],
    auth_level=func.AuthLevel.ANONYMOUS,
)
def group_analytics(req: func.HttpRequest) -> func.HttpResponse:
    """Analytics, balances and settlements for one group."""
    return controller.handle_group_analytics(req)


@app.route(
    route="analytics/user", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS
)
def user_analytics(req: func.HttpRequest) -> func.HttpResponse:
    """Spending analytics across the caller's groups."""
    return controller.handle_user_analytics(req)
