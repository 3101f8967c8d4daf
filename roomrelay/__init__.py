from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or '*'
    if allowed_origins == ['*']:
        allowed_origins = '*'
    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One registry per app: nothing about rooms lives at module level
    from roomrelay.rooms import RoomRegistry
    from roomrelay.relay import BroadcastRelay
    from roomrelay.lifecycle import ConnectionLifecycle
    from roomrelay.transport import SocketIOTransport

    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/')
    registry = RoomRegistry(default_kind=flask_app.config.get('DEFAULT_ROOM_KIND', 'custom'))
    transport = SocketIOTransport(socketio, namespace=namespace, logger=flask_app.logger)
    flask_app.extensions['room_relay'] = ConnectionLifecycle(registry, BroadcastRelay(registry, transport))

    from roomrelay.main import main
    flask_app.register_blueprint(main)

    # Register Socket.IO event handlers
    # Importing here ensures the handlers bind to the initialized socketio instance
    from roomrelay.socketio_events import register_socketio_handlers
    register_socketio_handlers(namespace=namespace)

    @click.command('channels')
    def channels_command():
        """Lists the relayed update channels and their outbound events."""
        from roomrelay.rooms import CHANNELS
        for channel in CHANNELS.values():
            source = 'room snapshot' if channel.sends_snapshot else 'payload'
            click.echo(f"{channel.inbound} -> {channel.outbound}.{channel.field} ({source})")

    flask_app.cli.add_command(channels_command)

    return flask_app
