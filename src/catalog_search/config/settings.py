"""
Application settings using pydantic-settings.

All configuration loaded from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with environment variable support.
    
    Load from .env file or environment variables.
    """
    
    # Project paths
    project_root: Path = Path(__file__).parent.parent.parent.parent
    data_dir: Path = project_root / "data"
    catalog_db_path: Path = data_dir / "catalog.db"
    
    # Elasticsearch connection
    elastic_uri: str = "http://localhost:9200"
    elastic_username: Optional[str] = None
    elastic_password: Optional[str] = None
    elastic_request_timeout: float = 30.0
    elastic_verify_certs: bool = True
    
    # Target index for the catalog projection
    index_name: str = "products"
    
    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    def ensure_directories(self):
        """Create all required directories."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.catalog_db_path.parent.mkdir(parents=True, exist_ok=True)
    
    @property
    def elastic_basic_auth(self) -> Optional[tuple]:
        """(username, password) pair when both are configured."""
        if self.elastic_username and self.elastic_password:
            return (self.elastic_username, self.elastic_password)
        return None


# Global settings instance
settings = Settings()
