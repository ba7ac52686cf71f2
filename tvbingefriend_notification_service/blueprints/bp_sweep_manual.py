"""Run a notification sweep on demand"""
import json
import logging

import azure.functions as func

from tvbingefriend_notification_service.services.notification_service import get_notification_service

bp: func.Blueprint = func.Blueprint()


# noinspection PyUnusedLocal
@bp.function_name(name="run_sweep_manually")
@bp.route(route="notifications/sweep", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def run_sweep_manually(req: func.HttpRequest) -> func.HttpResponse:
    """Run a notification sweep now

    Args:
        req (func.HttpRequest): HTTP request

    Returns:
        func.HttpResponse: Sweep counters, or 409 if a sweep is already running
    """
    try:
        result = get_notification_service().run_sweep()
        return func.HttpResponse(
            body=json.dumps(result.to_dict()),
            status_code=409 if result.skipped else 200,
            headers={"Content-Type": "application/json"}
        )
    except Exception as e:
        logging.error(f"run_sweep_manually: Unhandled exception: {e}", exc_info=True)
        return func.HttpResponse(
            body="Internal server error",
            status_code=500
        )
