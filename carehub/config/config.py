"""
Application Configuration

FLOW OVERVIEW
- Config.__init__
  • Reads FLASK_ENV to select which .env file to load (dev/prod). Testing bypasses file load.
- Properties expose configuration values, defaulting to sensible development-safe defaults.
"""

import os
from dotenv import load_dotenv

class Config:
    """Base configuration class"""

    def __init__(self):
        # Load environment variables based on FLASK_ENV
        env_file = os.getenv('FLASK_ENV', 'development')
        if env_file == 'testing':
            # For testing, don't load config files, use environment variables directly
            pass
        elif env_file == 'production':
            load_dotenv('config.prod.env')
        else:
            load_dotenv('config.env')  # Default to development

    @property
    def SECRET_KEY(self):
        """Application secret key"""
        return os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        """Database connection URI"""
        return os.getenv('DATABASE_URL', 'sqlite:///carehub.db')

    @property
    def SQLALCHEMY_TRACK_MODIFICATIONS(self):
        return False

    @property
    def MAIL_SERVER(self):
        """Mail server hostname"""
        return os.getenv('MAIL_SERVER', 'smtp.gmail.com')

    @property
    def MAIL_PORT(self):
        return int(os.getenv('MAIL_PORT', 587))

    @property
    def MAIL_USE_TLS(self):
        return os.getenv('MAIL_USE_TLS', 'True').lower() == 'true'

    @property
    def MAIL_USE_SSL(self):
        return os.getenv('MAIL_USE_SSL', 'False').lower() == 'true'

    @property
    def MAIL_USERNAME(self):
        return os.getenv('MAIL_USERNAME')

    @property
    def MAIL_PASSWORD(self):
        return os.getenv('MAIL_PASSWORD')

    @property
    def MAIL_DEFAULT_SENDER(self):
        """Default sender email address"""
        return os.getenv('MAIL_DEFAULT_SENDER', 'Training System <noreply@carehub.local>')

    @property
    def JWT_SECRET_KEY(self):
        """Secret used to sign bearer tokens"""
        return os.getenv('JWT_SECRET_KEY', 'jwt-secret-key-change-in-production')

    @property
    def JWT_ACCESS_TOKEN_EXPIRES(self):
        """Bearer token lifetime in seconds"""
        return int(os.getenv('JWT_ACCESS_TOKEN_EXPIRES', 3600))

    @property
    def OPENAI_API_KEY(self):
        """OpenAI key used for embeddings and chat completions"""
        return os.getenv('OPENAI_API_KEY')

    @property
    def EMBEDDING_MODEL(self):
        return os.getenv('EMBEDDING_MODEL', 'text-embedding-3-small')

    @property
    def CHAT_MODEL(self):
        return os.getenv('CHAT_MODEL', 'gpt-3.5-turbo')

    @property
    def NOTION_API_KEY(self):
        """Notion integration token"""
        return os.getenv('NOTION_API_KEY')

    @property
    def NOTION_DATABASE_ID(self):
        """Default Notion policy database"""
        return os.getenv('NOTION_DATABASE_ID')

    @property
    def NOTION_PAGE_DELAY(self):
        """Seconds to wait between Notion result pages"""
        return float(os.getenv('NOTION_PAGE_DELAY', 1.0))

    @property
    def EMBEDDING_DELAY(self):
        """Seconds to wait between embedding calls during a sync"""
        return float(os.getenv('EMBEDDING_DELAY', 0.5))

    @property
    def NEWSFEED_WEBHOOK_SECRET(self):
        """Shared secret expected in the X-Webhook-Secret header"""
        return os.getenv('NEWSFEED_WEBHOOK_SECRET')

    @property
    def FRONTEND_URL(self):
        """Base URL used in invitation links"""
        return os.getenv('FRONTEND_URL', 'http://localhost:5173')

    @property
    def STORAGE_ROOT(self):
        """Directory holding storage buckets"""
        return os.getenv('STORAGE_ROOT', os.path.join(os.getcwd(), 'storage'))

    @property
    def SCORM_UPLOAD_WORKERS(self):
        """Thread pool size for re-hosting SCORM package files"""
        return int(os.getenv('SCORM_UPLOAD_WORKERS', 8))

    @property
    def INVITATION_EXPIRY_DAYS(self):
        return int(os.getenv('INVITATION_EXPIRY_DAYS', 7))

    @property
    def MAX_CONTENT_LENGTH(self):
        """Largest accepted upload (SCORM packages) in bytes"""
        return int(os.getenv('MAX_CONTENT_LENGTH', 200 * 1024 * 1024))
