"""Application configuration constants."""

from __future__ import annotations

import os
from dotenv import load_dotenv

load_dotenv()

from datetime import timezone
from pathlib import Path
from typing import List

BASE_DIR = Path(__file__).resolve().parent.parent

# Database
DB_NAME = os.getenv("DB_NAME", "flashcards.db")
DB_PATH = str(BASE_DIR / DB_NAME)
TIMEZONE = timezone.utc

# Google Auth & JWT
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

# CORS
CORS_ORIGINS: List[str] = os.getenv("CORS_ORIGINS", "*").split(",")

# API Server
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))
API_RELOAD = os.getenv("API_RELOAD", "True").lower() in ("true", "1", "yes")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# OpenAI Configuration
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
AI_TEMPERATURE = float(os.getenv("AI_TEMPERATURE", "0.7"))
AI_MAX_CARDS = int(os.getenv("AI_MAX_CARDS", "4"))

# Plans & billing
FREE_DECK_LIMIT = int(os.getenv("FREE_DECK_LIMIT", "3"))
BILLING_WEBHOOK_SECRET = os.getenv("BILLING_WEBHOOK_SECRET")

# Content limits
MAX_TITLE_LENGTH: int = 255
MAX_TEXT_LENGTH: int = 5000
