"""
SOFT TOKEN API ROUTES - FLASK BLUEPRINT

Every endpoint maps onto one operation of yksoft.database.token_manager.

EXAMPLES:
curl http://localhost:5000/api/tokens
curl -X POST http://localhost:5000/api/tokens -H "Content-Type: application/json" -d '{"name": "vpn"}'
curl -X POST http://localhost:5000/api/tokens/vpn/otp
"""

import threading
import weakref

from flask import Blueprint, current_app, jsonify, request

from yksoft.common.log_handler import log
from yksoft.core.errors import (
    ClockRollback,
    CounterExhausted,
    InvalidTokenName,
    PersistenceIOFailure,
    TokenExists,
    TokenNotFound,
    YkSoftError,
)
from yksoft.core.modhex import hex_decode, modhex_decode
from yksoft.database.token_manager import (
    TokenOverrides,
    create_token,
    delete_token,
    emit_otp,
    get_token_path,
    list_tokens,
    load_token,
    registration_text,
    save_token,
)

token_bp = Blueprint('tokens', __name__, url_prefix='/api')

# One emission in flight per token file: load -> emit -> save.
# Entries disappear once no request holds the lock.
_token_locks = weakref.WeakValueDictionary()
_token_locks_guard = threading.Lock()


def _token_dir() -> str:
    return current_app.config["TOKEN_DIR"]


def _lock_for(name: str) -> threading.Lock:
    """Lock of the record file that name resolves to (" vpn" and "vpn" share one)."""
    path = get_token_path(name, _token_dir())
    with _token_locks_guard:
        lock = _token_locks.get(path)
        if lock is None:
            lock = threading.Lock()
            _token_locks[path] = lock
        return lock


def _error(exc: Exception, status: int):
    return jsonify({"error": str(exc), "type": type(exc).__name__}), status


@token_bp.errorhandler(YkSoftError)
def handle_token_error(exc):
    """Translate core errors into HTTP statuses."""
    if isinstance(exc, TokenNotFound):
        return _error(exc, 404)
    if isinstance(exc, (TokenExists, CounterExhausted, ClockRollback)):
        return _error(exc, 409)
    if isinstance(exc, PersistenceIOFailure):
        log.error(f"Token storage failure: {exc}")
        return _error(exc, 500)
    if isinstance(exc, (ValueError, InvalidTokenName)):
        return _error(exc, 400)
    log.error(f"Unhandled token error: {exc!r}")
    return _error(exc, 500)


@token_bp.route('/tokens', methods=['GET'])
def list_tokens_route():
    """
    LIST TOKENS

      curl http://localhost:5000/api/tokens
    """
    return jsonify({"tokens": list_tokens(token_dir=_token_dir())})


def _overrides_from(data: dict):
    """Build TokenOverrides from a JSON body, or None if nothing is imported."""
    keys = ('public_id', 'private_id', 'aes_key', 'counter')
    if not any(data.get(k) is not None for k in keys):
        return None

    for k in keys[:3]:
        if data.get(k) is not None and not isinstance(data[k], str):
            raise ValueError(f"{k} must be a string")

    counter = data.get('counter', 0) or 0
    if not isinstance(counter, int) or isinstance(counter, bool):
        raise ValueError("counter must be an integer")
    return TokenOverrides(
        public_id=modhex_decode(data['public_id']) if data.get('public_id') else None,
        private_id=hex_decode(data['private_id']) if data.get('private_id') else None,
        aes_key=hex_decode(data['aes_key']) if data.get('aes_key') else None,
        counter=counter,
    )


@token_bp.route('/tokens', methods=['POST'])
def create_token_route():
    """
    CREATE A TOKEN

      curl -X POST http://localhost:5000/api/tokens -H "Content-Type: application/json" \\
           -d '{"name": "vpn", "public_id": "ddddcbcbcbcb", "counter": 100}'

    Input (JSON body, all optional):
      name        token name (default: "default")
      public_id   modhex, 12 chars
      private_id  hex, 12 chars
      aes_key     hex, 32 chars
      counter     last counter used by the imported token

    Output (201):
      {"name": "vpn", "registration": "<public id>, <private id>, <aes key>"}
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "JSON object expected"}), 400
    name = data.get('name') or ''
    if not isinstance(name, str):
        return jsonify({"error": "name must be a string"}), 400
    try:
        overrides = _overrides_from(data)
    except ValueError as e:
        return _error(e, 400)

    with _lock_for(name):
        handle = create_token(name, overrides=overrides, token_dir=_token_dir())
        save_token(handle)

    log.info(f"Created token '{handle.name}' via API")
    return jsonify({"name": handle.name, "registration": registration_text(handle)}), 201


@token_bp.route('/tokens/<string:name>', methods=['GET'])
def get_token_route(name):
    """
    TOKEN STATUS (no secret material)

      curl http://localhost:5000/api/tokens/vpn
    """
    handle = load_token(name, token_dir=_token_dir())
    return jsonify({"name": handle.name, **handle.token.status()})


@token_bp.route('/tokens/<string:name>/registration', methods=['GET'])
def get_registration_route(name):
    """
    REGISTRATION INFO FOR THE VALIDATOR

      curl http://localhost:5000/api/tokens/vpn/registration
    """
    handle = load_token(name, token_dir=_token_dir())
    return jsonify({"name": handle.name, "registration": registration_text(handle)})


@token_bp.route('/tokens/<string:name>/otp', methods=['POST'])
def generate_otp_route(name):
    """
    GENERATE THE NEXT OTP

      curl -X POST http://localhost:5000/api/tokens/vpn/otp

    The new token state is saved before the OTP is returned. If saving
    fails the OTP is dropped and 500 is returned.
    """
    with _lock_for(name):
        handle = load_token(name, token_dir=_token_dir())
        otp, must_persist = emit_otp(handle)
        if must_persist:
            save_token(handle)

    return jsonify({
        "name": handle.name,
        "otp": otp,
        "counter": handle.token.counter,
        "session": handle.token.session,
    })


@token_bp.route('/tokens/<string:name>', methods=['DELETE'])
def delete_token_route(name):
    """
    DELETE A TOKEN

      curl -X DELETE http://localhost:5000/api/tokens/vpn
    """
    with _lock_for(name):
        delete_token(name, token_dir=_token_dir())
    return '', 204
