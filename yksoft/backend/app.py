"""
FLASK APP MAIN ENTRY POINT - SOFT TOKEN API SERVER
==================================================

Sets up the Flask app, enables CORS and registers the token routes.

- TOKEN_DIR (app.config) selects the token directory, defaulting to
  yksoft.config.TOKEN_DIR
- Run with: python -m yksoft.backend.app
"""
from flask import Flask, jsonify
from flask_cors import CORS

from yksoft import config
from yksoft.backend.routes import token_bp

app = Flask(__name__)
app.config["TOKEN_DIR"] = config.TOKEN_DIR

# Allow a frontend served from another origin to call the API
CORS(app)

app.register_blueprint(token_bp)


@app.route('/', methods=['GET'])
def index():
    """Short list of the available endpoints."""
    return jsonify({
        "service": "yksoft",
        "endpoints": [
            "GET /api/tokens",
            "POST /api/tokens",
            "GET /api/tokens/<name>",
            "GET /api/tokens/<name>/registration",
            "POST /api/tokens/<name>/otp",
            "DELETE /api/tokens/<name>",
        ],
    })


if __name__ == '__main__':
    app.run(host=config.API_HOST, port=config.API_PORT)
