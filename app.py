from typing import Any

from flask import Flask, jsonify
from flask_cors import CORS

from config import Config
from routes import api_bp


def create_app() -> Flask:
    app = Flask(__name__)
    app.config["SECRET_KEY"] = Config.SECRET_KEY
    app.config["MAX_CONTENT_LENGTH"] = Config.MAX_CONTENT_LENGTH
    app.json.sort_keys = False
    CORS(app, resources={r"/api/*": {"origins": Config.CORS_ORIGINS}})

    app.register_blueprint(api_bp)

    @app.get("/healthz")
    def health() -> Any:
        return jsonify({"ok": True})

    if not Config.has_llm():
        print("ℹ️ GROQ_API_KEY not set; /api/quiz/parse will use the marker parser.")

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(host=Config.HOST, port=Config.PORT, debug=Config.DEBUG)
