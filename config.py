"""
Configuration for the Ward & Bed Allocation API.

Values come from the environment (optionally a local .env file).
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Database
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

# API
API_TITLE = os.getenv("API_TITLE", "Ward & Bed Allocation API")
API_VERSION = "1.0.0"
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Number of attempts for rewriting a ward's occupancy after a bed changes
OCCUPANCY_RETRIES = max(1, int(os.getenv("OCCUPANCY_RETRIES", 3)))
