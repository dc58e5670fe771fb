from routes.api_routes import api_bp
