# app/config.py
import os

from dotenv import load_dotenv

load_dotenv()

MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
MONGODB_DB = os.getenv("MONGODB_DB", "recipes_app")
MONGODB_TIMEOUT_MS = int(os.getenv("MONGODB_TIMEOUT_MS", "5000"))

# Uploaded images land here and are served back under /uploads/images
UPLOAD_DIR = os.getenv("UPLOAD_DIR", os.path.join("uploads", "images"))

API_PREFIX = os.getenv("API_PREFIX", "/api/recipes")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
