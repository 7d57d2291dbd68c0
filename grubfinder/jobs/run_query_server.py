"""HTTP entrypoint for restaurant searches and lazy image requests."""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import os
import threading
from typing import Any, Coroutine, Dict, Optional

from flask import Flask, jsonify, request

from grubfinder.core.config import ConfigError, get_settings
from grubfinder.core.sub_cuisines import CUISINE_TYPES
from grubfinder.models import SearchCriterion
from grubfinder.pipeline import get_finder

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & event loop ----------
app = Flask(__name__)
REQUEST_TIMEOUT_SECONDS = 120

# One long-lived loop so in-flight image requests are shared across HTTP requests.
_loop: Optional[asyncio.AbstractEventLoop] = None
_loop_lock = threading.Lock()


class RequestTimedOut(RuntimeError):
    """Raised when pipeline work outlives REQUEST_TIMEOUT_SECONDS."""


def _get_loop() -> asyncio.AbstractEventLoop:
    global _loop
    with _loop_lock:
        if _loop is None:
            _loop = asyncio.new_event_loop()
            threading.Thread(target=_loop.run_forever, name="grubfinder-loop", daemon=True).start()
        return _loop


def run_async(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run ``coro`` on the shared loop; cancel it if it outlives the request timeout."""
    future = asyncio.run_coroutine_threadsafe(coro, _get_loop())
    try:
        return future.result(timeout=REQUEST_TIMEOUT_SECONDS)
    except concurrent.futures.TimeoutError as exc:
        future.cancel()
        raise RequestTimedOut(f"request exceeded {REQUEST_TIMEOUT_SECONDS}s") from exc


def _missing(payload: Dict[str, Any], *names: str) -> list:
    return [name for name in names if not str(payload.get(name) or "").strip()]


def _optional(payload: Dict[str, Any], name: str) -> Optional[str]:
    return str(payload.get(name) or "").strip() or None


# ---------- Errors ----------


@app.errorhandler(ConfigError)
def handle_config_error(exc: ConfigError) -> Any:
    logger.error("Configuration error: %s", exc)
    return jsonify({"error": "configuration error"}), 500


@app.errorhandler(RequestTimedOut)
def handle_timeout(exc: RequestTimedOut) -> Any:
    logger.warning("Request cancelled: %s", exc)
    return jsonify({"error": "timed out"}), 504


# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "resolver_strategy": settings.resolver_strategy,
                "image_mode": settings.image_mode,
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.get("/cuisines")
def cuisines() -> Any:
    return jsonify({"data": list(CUISINE_TYPES)}), 200


@app.get("/sub-cuisines")
def sub_cuisines() -> Any:
    cuisine = (request.args.get("cuisine") or "").strip()
    if not cuisine:
        return jsonify({"error": "cuisine is required"}), 400
    names = run_async(get_finder().list_sub_cuisines(cuisine))
    return jsonify({"data": names}), 200


@app.post("/restaurants")
def find_restaurants() -> Any:
    """
    Resolve and enrich restaurants.
    Required JSON fields: cuisine, city
    Optional: sub_cuisine ("" means any, missing means no preference),
    session_id (newer searches of the same session supersede older ones)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    missing = _missing(payload, "cuisine", "city")
    if missing:
        return jsonify({"error": f"missing fields: {', '.join(missing)}"}), 400

    sub_cuisine = payload.get("sub_cuisine")
    criterion = SearchCriterion(
        cuisine=str(payload["cuisine"]).strip(),
        sub_cuisine=None if sub_cuisine is None else str(sub_cuisine).strip(),
        city=str(payload["city"]).strip(),
    )

    result = run_async(get_finder().search(criterion, session_id=_optional(payload, "session_id")))
    if result is None:
        return jsonify({"error": "search superseded by a newer request"}), 409
    return jsonify({"data": result.to_dict()}), 200


@app.post("/images")
def generate_image() -> Any:
    """Generate (or return the cached) image for one restaurant."""
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    missing = _missing(payload, "name", "cuisine", "city")
    if missing:
        return jsonify({"error": f"missing fields: {', '.join(missing)}"}), 400

    image = run_async(
        get_finder().synthesize_image(
            str(payload["name"]).strip(),
            str(payload["cuisine"]).strip(),
            str(payload["city"]).strip(),
            address=_optional(payload, "address"),
            session_id=_optional(payload, "session_id"),
        )
    )
    return jsonify({"data": {"image": image}}), 200


def main() -> None:
    port = int(os.getenv("PORT") or get_settings().worker_port)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
