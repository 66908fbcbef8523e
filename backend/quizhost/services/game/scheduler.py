import logging

from quizhost import socketio
from .lifeline_timer import RUNNING

logger = logging.getLogger(__name__)

TIMER_ROOM = 'lifeline-timer'


def _scheduler_enabled(app):
    return not app.config.get('TESTING') or app.config.get('ENABLE_SCHEDULER_IN_TESTS')


def schedule_phone_timer(app, timer, run_id):
    """Tick ``timer`` in a background task and push each view to displays.

    - No-ops in TESTING mode; tests drive ``tick`` directly
    - Stops as soon as the run is resolved or replaced by a newer run
    """
    if not _scheduler_enabled(app):
        return

    tick_sec = int(app.config.get('TIMER_TICK_SEC', 1))

    def _worker(expected_run):
        app.logger.info(f"[timer-set] lifeline=phoneAFriend run={expected_run} duration={timer.duration:g}s")
        while timer.run_id == expected_run and timer.state == RUNNING:
            try:
                view = timer.tick()
            except Exception:
                # resume failed; the host can still resume manually
                logger.exception(f"[timer-fire] run={expected_run} resume failed")
                view = timer.view()
            socketio.emit('lifeline_timer', view, to=TIMER_ROOM, namespace='/ws')
            if timer.state != RUNNING:
                break
            socketio.sleep(tick_sec)
        app.logger.info(f"[timer-stop] run={expected_run} state={timer.state}")

    socketio.start_background_task(_worker, run_id)


def background_deferrer(app):
    """Return ``defer(delay_sec, fn, *args)`` running ``fn`` later in a background task."""

    def defer(delay_sec, fn, *args):
        if not _scheduler_enabled(app):
            return

        def _worker():
            socketio.sleep(delay_sec)
            with app.app_context():
                try:
                    fn(*args)
                except Exception:
                    logger.exception(f"[deferred-failed] fn={getattr(fn, '__name__', fn)}")

        socketio.start_background_task(_worker)

    return defer
