import os
from pathlib import Path

class Config:
    """Base configuration - shared across all environments"""

    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False

    # Pagination
    DEFAULT_PAGE_SIZE = int(os.environ.get('DEFAULT_PAGE_SIZE', 20))
    MAX_PAGE_SIZE = 100

    # Reports
    MAX_REPORT_RANGE_DAYS = 365
    DISPLAY_TIMEZONE = os.environ.get('DISPLAY_TIMEZONE', 'Africa/Abidjan')

    # Sync queue items above this retry count are reported as failed
    SYNC_MAX_RETRIES = 3

    # Rate limiting
    RATELIMIT_DEFAULT = "1000 per day;500 per hour"

    BASE_DIR = os.path.dirname(os.path.abspath(__file__))
    LOGS_DIR = os.path.join(BASE_DIR, 'logs')

class DevConfig(Config):
    """Development configuration"""
    DEBUG = True
    FLASK_HOST = '0.0.0.0'
    FLASK_PORT = 5000
    FRONTEND_URL = 'http://localhost:3000'

    DB_TYPE = 'sqlite'
    STORAGE_PATH = str(Path(__file__).resolve().parents[1] / "transport-storage" / "database")
    DB_PATH = os.path.join(STORAGE_PATH, 'transport.db')
    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI', f"sqlite:///{DB_PATH}")
    AUTO_CREATE_TABLES = True

class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    FLASK_HOST = '::'
    FLASK_PORT = 5000
    FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:3000')

    # Production database - MUST be set via environment
    DB_TYPE = 'postgresql'
    SQLALCHEMY_DATABASE_URI = os.environ.get('SQLALCHEMY_DATABASE_URI')

class TestConfig(Config):
    """Test configuration - in-memory SQLite, no rate limits"""
    TESTING = True
    DEBUG = False
    FRONTEND_URL = 'http://localhost:3000'
    DB_TYPE = 'sqlite'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    RATELIMIT_ENABLED = False
    LOG_TO_FILE = False
