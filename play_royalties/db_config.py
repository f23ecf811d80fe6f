"""Database configuration and credentials management for the ledger store"""
from dataclasses import dataclass

from play_royalties.config import settings

# Environment-specific database configurations
PRODUCTION_CONFIG = {
    'HOST': 'ledger-db.internal',
    'PORT': '5432',
    'NAME': 'play_royalties',
    'USER': 'play_royalties',
    'SSL_MODE': 'require'
}

STAGING_CONFIG = {
    'HOST': 'ledger-db.staging.internal',
    'PORT': '5432',
    'NAME': 'play_royalties_staging',
    'USER': 'play_royalties',
    'SSL_MODE': 'require'
}

LOCAL_CONFIG = {
    'HOST': 'localhost',
    'PORT': '5432',
    'NAME': 'play_royalties',
    'USER': 'play_royalties',
    'SSL_MODE': 'disable'
}

ENVIRONMENTS = {
    'production': PRODUCTION_CONFIG,
    'staging': STAGING_CONFIG,
    'local': LOCAL_CONFIG,
}

def determine_environment_config(app_env: str) -> dict:
    """Determine database configuration based on APP_ENV."""
    if not app_env:
        raise ValueError("APP_ENV setting is required")

    try:
        return ENVIRONMENTS[app_env]
    except KeyError:
        raise ValueError(
            f"Invalid APP_ENV {app_env!r}. Must be one of: {', '.join(sorted(ENVIRONMENTS))}"
        ) from None

@dataclass
class DatabaseCredentials:
    """Database credentials container"""
    host: str
    port: str
    name: str
    user: str
    password: str
    ssl_mode: str = 'require'

    def to_connection_string(self) -> str:
        """Generate database connection string"""
        return (
            f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/"
            f"{self.name}?sslmode={self.ssl_mode}"
        )

    @classmethod
    def from_config(cls, config: dict, password: str) -> 'DatabaseCredentials':
        """Create credentials from an environment config and provided password"""
        return cls(
            host=config['HOST'],
            port=config['PORT'],
            name=config['NAME'],
            user=config['USER'],
            password=password,
            ssl_mode=config['SSL_MODE']
        )

class DatabaseManager:
    """Resolves the ledger store connection string"""

    @staticmethod
    def get_connection_string(app_env: str, db_password: str) -> str:
        """
        Generate database connection string from environment config and password

        Args:
            app_env: Deployment environment name
            db_password: Database password

        Returns:
            Complete database connection string
        """
        credentials = DatabaseCredentials.from_config(determine_environment_config(app_env), db_password)
        return credentials.to_connection_string()

    @classmethod
    def initialize_from_env(cls) -> str:
        """
        Resolve the connection string from settings.

        DATABASE_URL wins when set; otherwise the APP_ENV config is combined
        with DB_PASSWORD.

        Raises:
            ValueError: If neither DATABASE_URL nor DB_PASSWORD is set
        """
        if settings.DATABASE_URL:
            return settings.DATABASE_URL

        if not settings.DB_PASSWORD:
            raise ValueError("DATABASE_URL or DB_PASSWORD setting is required")

        return cls.get_connection_string(settings.APP_ENV, settings.DB_PASSWORD)
