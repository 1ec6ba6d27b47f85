"""
REST API Server for the slider bridge
Provides HTTP endpoints for Bitfocus Companion integration
"""

import asyncio
import logging
import threading
from typing import Callable, Optional

from flask import Flask, request, jsonify
from flask_cors import CORS

from .commands import UnknownActionError, action_definitions
from .config import config_fields


REQUEST_TIMEOUT = 5.0


class APIServer:
    """HTTP REST API server exposing the session's actions, config and variables"""

    def __init__(self, session, host, config: dict, loop: Optional[asyncio.AbstractEventLoop] = None,
                 on_config_saved: Optional[Callable[[dict], None]] = None):
        self.session = session
        self.host = host
        self.config = config
        self.loop = loop
        # Called with each device config the host pushes, after it is applied
        self.on_config_saved = on_config_saved
        self.logger = logging.getLogger(__name__)

        # Initialize Flask app
        self.app = Flask(__name__)
        if config.get('enable_cors', True):
            CORS(self.app)

        self.server_thread: Optional[threading.Thread] = None
        self.is_running = False

        self._setup_routes()

    def _run(self, coro):
        """Run a coroutine on the session's event loop and wait for it"""
        if self.loop is None:
            coro.close()
            raise RuntimeError("API server has no event loop")
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result(timeout=REQUEST_TIMEOUT)

    def _status_payload(self) -> dict:
        return {
            'status': self.host.status.value,
            'message': self.host.status_message,
            'variables': self.host.variables,
            **self.session.describe(),
        }

    def _setup_routes(self):
        """Setup API routes"""

        @self.app.route('/health', methods=['GET'])
        def health_check():
            """Health check endpoint"""
            return jsonify({
                'status': 'healthy',
                'service': 'slider-bridge'
            })

        @self.app.route('/api/status', methods=['GET'])
        def get_status():
            """Get connection status, axis positions and speeds"""
            try:
                return jsonify({
                    'success': True,
                    'data': self._status_payload()
                })
            except Exception as e:
                self.logger.error(f"Status endpoint error: {e}")
                return jsonify({
                    'success': False,
                    'error': str(e)
                }), 500

        @self.app.route('/api/variables', methods=['GET'])
        def get_variables():
            """Get pan/tilt/zoom/slide positions"""
            return jsonify({
                'success': True,
                'data': {
                    'values': self.host.variables,
                    'definitions': self.host.variable_definitions(),
                }
            })

        @self.app.route('/api/actions', methods=['GET'])
        def list_actions():
            """List available actions and their options"""
            return jsonify({
                'success': True,
                'data': action_definitions()
            })

        @self.app.route('/api/actions/<action_id>', methods=['POST'])
        def run_action(action_id):
            """Invoke an action"""
            options = request.get_json(silent=True) or {}
            if not isinstance(options, dict):
                return jsonify({
                    'success': False,
                    'error': 'JSON object body required'
                }), 400

            try:
                messages = self._run(self.session.handle_action(action_id, options))
            except UnknownActionError:
                return jsonify({
                    'success': False,
                    'error': f'Unknown action: {action_id}'
                }), 404
            except ValueError as e:
                return jsonify({
                    'success': False,
                    'error': str(e)
                }), 400
            except Exception as e:
                self.logger.error(f"Action {action_id} error: {e}")
                return jsonify({
                    'success': False,
                    'error': str(e)
                }), 500

            return jsonify({
                'success': True,
                'message': f'Action {action_id} executed',
                'data': [{'address': m.address, 'value': m.value} for m in messages]
            })

        @self.app.route('/api/config', methods=['GET'])
        def get_config():
            """Get current device configuration and the field schema"""
            return jsonify({
                'success': True,
                'data': {
                    'config': self.session.state.config.to_dict(),
                    'fields': config_fields(),
                }
            })

        @self.app.route('/api/config', methods=['POST'])
        def update_config():
            """Apply a new device configuration"""
            if not request.is_json or not isinstance(request.json, dict):
                return jsonify({
                    'success': False,
                    'error': 'JSON body required'
                }), 400

            try:
                device = dict(request.json)
                self._run(self.session.config_updated(device))
                if self.on_config_saved is not None:
                    self.on_config_saved(device)
                return jsonify({
                    'success': True,
                    'data': self._status_payload()
                })
            except Exception as e:
                self.logger.error(f"Config update error: {e}")
                return jsonify({
                    'success': False,
                    'error': str(e)
                }), 500

        @self.app.errorhandler(404)
        def not_found(error):
            return jsonify({
                'success': False,
                'error': 'Endpoint not found'
            }), 404

        @self.app.errorhandler(500)
        def internal_error(error):
            return jsonify({
                'success': False,
                'error': 'Internal server error'
            }), 500

    async def start(self):
        """Start the API server"""
        if self.is_running:
            self.logger.warning("API server already running")
            return

        if self.loop is None:
            self.loop = asyncio.get_running_loop()

        self.logger.info(f"Starting API server on {self.config['host']}:{self.config['port']}")
        self.is_running = True

        def run_server():
            try:
                self.app.run(
                    host=self.config['host'],
                    port=self.config['port'],
                    debug=False,
                    use_reloader=False,
                    threaded=True
                )
            except Exception as e:
                self.logger.error(f"API server error: {e}")

        self.server_thread = threading.Thread(target=run_server, daemon=True)
        self.server_thread.start()

        # Give server time to start
        await asyncio.sleep(1.0)
        self.logger.info("API server started successfully")

    async def stop(self):
        """Stop the API server"""
        if not self.is_running:
            return

        self.logger.info("Stopping API server...")
        self.is_running = False

        # The Flask development server has no clean shutdown; the thread is a
        # daemon and goes away with the process
        self.logger.info("API server stopped")
