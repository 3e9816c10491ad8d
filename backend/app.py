import atexit
import logging
import math
import os

from flask import Flask, jsonify, request
from flask_cors import CORS

import config
from playback.clock import PlaybackClock
from playback.events import EVENT_CATALOG
from playback.model import StationMonitorModel
from playback.propagation import max_wave_height, wave_series
from playback.zones import danger_zones, wavefront
from utils.geo_loader import is_oceanic, load_stations
from utils.status_cache import StatusCache

log = logging.getLogger(__name__)


def create_app(clock=None, stations=None, status_cache=None, oceanic_only=True):
    """
    Build the Flask app around one playback clock and one station model.

    clock, stations and status_cache are created from config when omitted;
    the clock is shut down when the process exits.
    """
    app = Flask(__name__)
    CORS(app)

    if clock is None:
        clock = PlaybackClock()
        atexit.register(clock.shutdown)
    if stations is None:
        stations = load_stations(os.path.join(config.DATA_DIR, config.STATIONS_FILE))
    if oceanic_only:
        stations = [s for s in stations if is_oceanic(s.lat, s.lon)]
    if status_cache is None:
        status_cache = StatusCache()

    model = StationMonitorModel(clock, stations, status_cache=status_cache)
    log.info("Monitoring %d stations", len(stations))
    app.extensions["playback"] = {"clock": clock, "model": model, "status_cache": status_cache}

    def playback_response():
        payload = clock.get_state().to_dict()
        payload["current_timestamp"] = clock.get_current_timestamp().isoformat()
        return jsonify(payload)

    def float_arg(name):
        value = request.args.get(name)
        if value is None:
            return None
        try:
            number = float(value)
        except ValueError:
            return None
        return None if math.isnan(number) else number

    # ============================================================
    # EVENTS
    # ============================================================
    @app.route("/api/v1/events", methods=["GET"])
    def list_events():
        return jsonify({
            "events": [e.to_dict() for e in EVENT_CATALOG],
            "current": clock.get_state().current_event_id,
        })

    # ============================================================
    # PLAYBACK API
    # ============================================================
    @app.route("/api/v1/playback", methods=["GET"])
    def playback_state():
        return playback_response()

    transport = {
        "play": clock.play,
        "pause": clock.pause,
        "stop": clock.stop,
        "restart": clock.restart,
        "next": clock.next_event,
        "previous": clock.previous_event,
    }

    @app.route("/api/v1/playback/<action>", methods=["POST"])
    def playback_control(action):
        control = transport.get(action)
        if control is None:
            return jsonify({"error": f"Unknown playback action: {action}"}), 404
        control()
        return playback_response()

    @app.route("/api/v1/playback/seek", methods=["POST"])
    def playback_seek():
        minutes = float_arg("minutes")
        progress = float_arg("progress")
        if minutes is not None:
            clock.seek_to(minutes)
        elif progress is not None:
            clock.seek_to_progress(progress)
        else:
            return jsonify({"error": "seek needs a numeric 'minutes' or 'progress'"}), 400
        return playback_response()

    @app.route("/api/v1/playback/speed", methods=["POST"])
    def playback_speed():
        value = float_arg("value")
        if value is None:
            return jsonify({"error": "speed needs a numeric 'value'"}), 400
        clock.set_speed(value)
        return playback_response()

    @app.route("/api/v1/playback/event/<event_id>", methods=["POST"])
    def playback_event(event_id):
        if not clock.set_event(event_id):
            return jsonify({"error": f"Unknown event: {event_id}"}), 404
        return playback_response()

    # ============================================================
    # STATIONS
    # ============================================================
    @app.route("/api/v1/stations", methods=["GET"])
    def stations_report():
        model.step()
        return jsonify({
            "time": model.sim_time,
            "timestamp": clock.get_current_timestamp().isoformat(),
            "event_id": model.seismic_event.id,
            "stations": model.station_report(),
        })

    @app.route("/api/v1/stations/<station_id>/series", methods=["GET"])
    def station_series(station_id):
        agent = model.get_agent(station_id)
        if agent is None:
            return jsonify({"error": f"Unknown station: {station_id}"}), 404

        hours = float_arg("hours")
        if hours is None:
            hours = config.DEFAULT_SERIES_HOURS
        hours = max(0.0, min(hours, config.MAX_SERIES_HOURS))
        event = clock.current_event
        samples = wave_series(agent.station.coord, event.epicenter, event.magnitude, event.reference_time, hours)
        return jsonify({
            "station_id": station_id,
            "event_id": event.id,
            "arrival_minutes": clock.calculate_wave_arrival(agent.station.lat, agent.station.lon),
            "max_wave_height": max_wave_height(samples),
            "samples": [s.to_dict() for s in samples],
        })

    # ============================================================
    # MAP LAYERS
    # ============================================================
    @app.route("/api/v1/map/danger-zones", methods=["GET"])
    def danger_zone_layer():
        model.step()
        return jsonify(danger_zones(model.station_agents.values()))

    @app.route("/api/v1/map/wavefront", methods=["GET"])
    def wavefront_layer():
        return jsonify(wavefront(clock.current_event, clock.get_state().current_sim_time))

    # ============================================================
    # STATUS CACHE
    # ============================================================
    @app.route("/api/v1/status/summary", methods=["GET"])
    def status_summary():
        summary = status_cache.summary()
        summary["cache"] = status_cache.info()
        return jsonify(summary)

    @app.route("/api/v1/status/<station_id>", methods=["GET"])
    def station_status(station_id):
        status = status_cache.get(station_id)
        if status is None:
            return jsonify({"error": f"No current status for station: {station_id}"}), 404
        return jsonify(status.to_dict())

    return app


# ============================================================
# RUN SERVER
# ============================================================
if __name__ == "__main__":
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    create_app().run(host=config.HOST, port=config.PORT, debug=config.DEBUG)
