"""
Configuration Management
Loads and validates environment variables
"""
import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Application configuration"""

    # Workshop Database (hosted PostgreSQL)
    TALLERDB_HOST = os.getenv("TALLERDB_HOST")
    TALLERDB_PORT = int(os.getenv("TALLERDB_PORT", 5432))
    TALLERDB_NAME = os.getenv("TALLERDB_NAME")
    TALLERDB_USER = os.getenv("TALLERDB_USER")
    TALLERDB_PASS = os.getenv("TALLERDB_PASS")
    TALLERDB_SSLMODE = os.getenv("TALLERDB_SSLMODE", "require")

    # Application Settings
    TIMEZONE = os.getenv("TIMEZONE", "America/Argentina/Buenos_Aires")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Shared access password for the login gate
    SHARED_PASSWORD = os.getenv("SHARED_PASSWORD")

