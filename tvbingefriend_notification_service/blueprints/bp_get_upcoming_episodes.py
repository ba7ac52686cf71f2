"""Get upcoming episodes of a user's followed shows"""
import json
import logging

import azure.functions as func

from tvbingefriend_notification_service.services.episode_service import EpisodeService

bp: func.Blueprint = func.Blueprint()


@bp.function_name(name="get_upcoming_episodes")
@bp.route(route="users/{user_id:long}/upcoming", methods=["GET"])
def get_upcoming_episodes(req: func.HttpRequest) -> func.HttpResponse:
    """Get episodes of the user's followed shows airing within the upcoming window

    Args:
        req (func.HttpRequest): HTTP request

    Returns:
        func.HttpResponse: HTTP response with episodes ordered by air date
    """
    try:
        user_id = req.route_params.get('user_id')
        if not user_id:
            return func.HttpResponse(
                body="User ID is required",
                status_code=400
            )

        episode_service = EpisodeService()
        episodes = episode_service.get_upcoming_episodes_for_user(int(user_id))

        return func.HttpResponse(
            body=json.dumps(episodes),
            status_code=200,
            headers={"Content-Type": "application/json"}
        )

    except ValueError:
        return func.HttpResponse(
            body="Invalid user ID format",
            status_code=400
        )
    except Exception as e:
        logging.error(f"get_upcoming_episodes: Unhandled exception: {e}", exc_info=True)
        return func.HttpResponse(
            body="Internal server error",
            status_code=500
        )
