"""Follow and unfollow shows"""
import json
import logging

import azure.functions as func

from tvbingefriend_notification_service.services.subscription_service import (
    FollowLimitReachedError,
    ShowNotFoundError,
    SubscriptionService,
)

bp: func.Blueprint = func.Blueprint()


def _user_metadata(req: func.HttpRequest) -> dict[str, str | None]:
    """Optional display metadata from the JSON request body."""
    try:
        body = req.get_json()
    except ValueError:
        return {}
    if not isinstance(body, dict):
        return {}
    return {key: body.get(key) for key in ("username", "first_name", "last_name")}


@bp.function_name(name="follow_show")
@bp.route(route="users/{user_id:long}/shows/{show_id}", methods=["POST"])
def follow_show(req: func.HttpRequest) -> func.HttpResponse:
    """Subscribe a user to a show

    Args:
        req (func.HttpRequest): HTTP request, optionally with username, first_name and last_name

    Returns:
        func.HttpResponse: 201 for a new subscription, 200 if the user already follows the show
    """
    try:
        user_id = req.route_params.get('user_id')
        show_id = req.route_params.get('show_id')
        if not user_id or not show_id:
            return func.HttpResponse(
                body="User ID and show ID are required",
                status_code=400
            )

        subscription_service = SubscriptionService()
        result = subscription_service.follow_show(int(user_id), show_id, **_user_metadata(req))

        return func.HttpResponse(
            body=json.dumps(result),
            status_code=201 if result["followed"] else 200,
            headers={"Content-Type": "application/json"}
        )

    except ValueError:
        return func.HttpResponse(
            body="Invalid user ID format",
            status_code=400
        )
    except ShowNotFoundError:
        return func.HttpResponse(
            body="Show not found",
            status_code=404
        )
    except FollowLimitReachedError as e:
        return func.HttpResponse(
            body=str(e),
            status_code=409
        )
    except Exception as e:
        logging.error(f"follow_show: Unhandled exception: {e}", exc_info=True)
        return func.HttpResponse(
            body="Internal server error",
            status_code=500
        )


@bp.function_name(name="unfollow_show")
@bp.route(route="users/{user_id:long}/shows/{show_id}", methods=["DELETE"])
def unfollow_show(req: func.HttpRequest) -> func.HttpResponse:
    """Remove a user's subscription to a show

    Args:
        req (func.HttpRequest): HTTP request

    Returns:
        func.HttpResponse: 204 if removed, 404 if the user was not following the show
    """
    try:
        user_id = req.route_params.get('user_id')
        show_id = req.route_params.get('show_id')
        if not user_id or not show_id:
            return func.HttpResponse(
                body="User ID and show ID are required",
                status_code=400
            )

        subscription_service = SubscriptionService()
        if not subscription_service.unfollow_show(int(user_id), show_id):
            return func.HttpResponse(
                body="Subscription not found",
                status_code=404
            )
        return func.HttpResponse(status_code=204)

    except ValueError:
        return func.HttpResponse(
            body="Invalid user ID format",
            status_code=400
        )
    except Exception as e:
        logging.error(f"unfollow_show: Unhandled exception: {e}", exc_info=True)
        return func.HttpResponse(
            body="Internal server error",
            status_code=500
        )
