"""
Subnet Discovery web API - Flask application factory

Serves the stored host inventory as JSON and runs a sweep plus
reconciliation on request.

Example:
    Basic usage:
        app = create_app()
        app.run(host='127.0.0.1', port=8080)

    With an explicit store and sweep configuration:
        app = create_app(repository=InMemoryHostRepository(), sweep_config=SweepConfig(max_workers=32))
"""
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from host_storage import InMemoryHostRepository, MongoDBConfig, MongoHostRepository
from host_storage.logging_config import setup_logging
from host_storage.repository import HostRepository

from .. import __version__
from ..config.config_loader import ConfigLoader, SweepConfig
from ..core.channel import ResultChannel
from ..core.sweep import net_sweep
from .config import Config

logger = logging.getLogger(__name__)

Sweeper = Callable[[Iterable[str]], ResultChannel]


def _default_repository() -> HostRepository:
    if Config.HOST_STORE == 'memory':
        return InMemoryHostRepository()

    mongo_config = MongoDBConfig()
    repository = MongoHostRepository(
        mongo_config.get_connection_string(),
        mongo_config.database,
        client_options=mongo_config.client_options
    )
    repository.connect()
    repository.migrate()
    logger.info(f"MongoDB database '{mongo_config.database}' initiated and open for writing")
    return repository


def create_app(repository: Optional[HostRepository] = None,
               sweep_config: Optional[SweepConfig] = None,
               sweeper: Optional[Sweeper] = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        repository: Host store; built from ``HOST_STORE`` and ``MONGODB_*`` settings when omitted
        sweep_config: Sweep configuration; loaded from ``sweep_config.yml`` when omitted
        sweeper: Callable that starts a sweep over addresses and returns its channel

    Returns:
        Flask: Configured application instance

    Raises:
        ConfigurationError: If configuration validation fails
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    Config.init_app(app)

    if sweep_config is None:
        sweep_config = ConfigLoader(Config.SWEEP_CONFIG_DIR or None).load_sweep_config()
    if repository is None:
        repository = _default_repository()
    if sweeper is None:
        def sweeper(addresses):
            return net_sweep(addresses, config=sweep_config)

    app.extensions['subnet_discovery'] = {
        'repository': repository,
        'sweep_config': sweep_config,
        'sweeper': sweeper,
        'fail_fast': Config.FAIL_FAST,
    }

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        """Return JSON for HTTP errors."""
        if e.code >= 500:
            logger.error(f"HTTP {e.code}: {e.description}")
        else:
            logger.warning(f"HTTP {e.code} on {request.method} {request.path}: {e.description}")

        return jsonify({
            'success': False,
            'error': e.description,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'error_code': f'HTTP_{e.code}'
        }), e.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        """Log unhandled exceptions and return a JSON 500."""
        logger.error(f"Unhandled exception on {request.method} {request.path}: {e}", exc_info=True)
        return jsonify({
            'success': False,
            'error': 'An internal server error occurred',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'error_code': 'INTERNAL_ERROR'
        }), 500

    @app.before_request
    def before_request():
        request.start_time = time.time()

    @app.after_request
    def after_request(response):
        """Log API requests with their duration."""
        duration = time.time() - getattr(request, 'start_time', time.time())
        if request.path.startswith('/api/'):
            logger.info(
                f"{request.method} {request.path} {response.status_code} ({duration:.3f}s)",
                extra={
                    'method': request.method,
                    'path': request.path,
                    'status_code': response.status_code,
                    'duration_seconds': round(duration, 3),
                    'remote_addr': request.remote_addr
                }
            )
        return response

    @app.route('/health')
    def health_check():
        """Health check endpoint for monitoring."""
        return jsonify({
            'status': 'healthy',
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'version': __version__
        })

    from .routes import hosts_bp
    app.register_blueprint(hosts_bp)

    logger.info("Subnet Discovery web API created")
    logger.info(f"Debug mode: {app.config.get('DEBUG', False)}")
    return app


def run_server() -> None:
    """Configure logging and serve the API with Flask's built-in server."""
    setup_logging(Config.LOG_LEVEL, Config.LOG_FORMAT, Config.LOG_FILE or None)
    app = create_app()
    app.run(
        host=app.config.get('HOST', '127.0.0.1'),
        port=app.config.get('PORT', 8080),
        debug=app.config.get('DEBUG', False)
    )


if __name__ == '__main__':
    run_server()
