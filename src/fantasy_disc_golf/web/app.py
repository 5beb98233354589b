import hmac
import logging
import sqlite3
from collections.abc import Callable

from flask import Flask, Response, jsonify, request

from fantasy_disc_golf.container import LeagueContainer
from fantasy_disc_golf.db.pool import ConnectionPool
from fantasy_disc_golf.domain.league_settings import SmsSettings, TwilioSettings, WebhookSettings
from fantasy_disc_golf.exceptions import ConfigurationError, LockTimeoutError
from fantasy_disc_golf.web.commands import CommandHandler
from fantasy_disc_golf.web.twilio_inbound import InboundSmsHandler, is_twilio_form

logger = logging.getLogger(__name__)

type ContainerFactory = Callable[[sqlite3.Connection], LeagueContainer]


def create_webhook_app(
    pool: ConnectionPool,
    container_factory: ContainerFactory,
    webhook: WebhookSettings,
    *,
    twilio: TwilioSettings | None = None,
    sms: SmsSettings | None = None,
) -> Flask:
    """Create the Flask app serving the league webhook.

    POST /hook accepts either a JSON command carrying the shared secret or a
    form-encoded inbound Twilio SMS. Every request checks out its own pooled
    connection and builds a fresh container around it; the league lock is
    shared through the container factory. GET /health reports liveness.
    """
    if not webhook.secret:
        raise ConfigurationError("webhook.secret must be set to serve the webhook")
    twilio = twilio or TwilioSettings()
    sms = sms or SmsSettings()

    app = Flask(__name__)

    @app.route("/health")
    def health() -> Response:
        return jsonify({"ok": True})

    @app.route("/hook", methods=["POST"])
    def hook() -> tuple[Response, int]:
        if not request.is_json and is_twilio_form(request.form):
            return _inbound_sms()

        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"ok": False, "error": "Invalid JSON body"}), 400
        if not hmac.compare_digest(str(payload.get("secret", "")), webhook.secret):
            logger.warning("Webhook request rejected: bad secret")
            return jsonify({"ok": False, "error": "Unauthorized (bad secret)"}), 401

        with pool.connection(timeout=webhook.lock_timeout) as conn:
            handler = CommandHandler(container_factory(conn))
            try:
                return jsonify(handler.handle(payload)), 200
            except LockTimeoutError as e:
                handler.audit("ERROR", str(payload.get("action") or payload.get("type") or ""), detail=str(e))
                return jsonify({"ok": False, "error": "League is busy, try again shortly"}), 503
            except Exception as e:
                logger.exception("Webhook command failed")
                handler.audit("ERROR", str(payload.get("action") or payload.get("type") or ""), detail=str(e))
                return jsonify({"ok": False, "error": str(e)}), 500

    def _inbound_sms() -> tuple[Response, int]:
        with pool.connection(timeout=webhook.lock_timeout) as conn:
            container = container_factory(conn)
            handler = InboundSmsHandler(
                container.subscriptions,
                container.webhook_log_repo,
                conn.commit,
                twilio=twilio,
                sms=sms,
                webhook_url=webhook.url,
            )
            with container.lock.hold(container.lock_timeout):
                body, status = handler.handle(
                    request.form.to_dict(), request.headers.get("X-Twilio-Signature", "")
                )
        return Response(body, mimetype="application/xml"), status

    return app
