"""Azure Functions app for the TV BingeFriend notification service"""
import logging

import azure.functions as func

from tvbingefriend_notification_service.blueprints import (
    bp_follow_show,
    bp_get_show,
    bp_get_show_episodes,
    bp_get_upcoming_episodes,
    bp_get_user_shows,
    bp_notification_timer,
    bp_search_shows,
    bp_sweep_manual,
)
from tvbingefriend_notification_service.config import LOG_LEVEL
from tvbingefriend_notification_service.utils import init_db

logging.getLogger().setLevel(LOG_LEVEL)

init_db()  # create missing tables before the first trigger fires

app = func.FunctionApp()

app.register_functions(bp_search_shows.bp)
app.register_functions(bp_get_show.bp)
app.register_functions(bp_get_show_episodes.bp)
app.register_functions(bp_follow_show.bp)
app.register_functions(bp_get_user_shows.bp)
app.register_functions(bp_get_upcoming_episodes.bp)
app.register_functions(bp_sweep_manual.bp)
app.register_functions(bp_notification_timer.bp)
