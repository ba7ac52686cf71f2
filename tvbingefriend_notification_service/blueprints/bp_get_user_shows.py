"""Get the shows a user follows"""
import json
import logging

import azure.functions as func

from tvbingefriend_notification_service.services.subscription_service import SubscriptionService

bp: func.Blueprint = func.Blueprint()


@bp.function_name(name="get_user_shows")
@bp.route(route="users/{user_id:long}/shows", methods=["GET"])
def get_user_shows(req: func.HttpRequest) -> func.HttpResponse:
    """Get the shows a user follows

    Args:
        req (func.HttpRequest): HTTP request

    Returns:
        func.HttpResponse: HTTP response with followed shows
    """
    try:
        user_id = req.route_params.get('user_id')
        if not user_id:
            return func.HttpResponse(
                body="User ID is required",
                status_code=400
            )

        subscription_service = SubscriptionService()
        shows = subscription_service.get_user_shows(int(user_id))

        return func.HttpResponse(
            body=json.dumps(shows),
            status_code=200,
            headers={"Content-Type": "application/json"}
        )

    except ValueError:
        return func.HttpResponse(
            body="Invalid user ID format",
            status_code=400
        )
    except Exception as e:
        logging.error(f"get_user_shows: Unhandled exception: {e}", exc_info=True)
        return func.HttpResponse(
            body="Internal server error",
            status_code=500
        )
