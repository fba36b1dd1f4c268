"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class KoperasiConfig(BaseSettings):
    """Koperasi governance core configuration"""
    
    # API configuration
    api_title: str = "Koperasi Governance API"
    api_host: str = "0.0.0.0"
    api_port: int = 8090
    api_workers: int = 1
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout
    
    # Localization
    default_locale: str = "id"  # id (Bahasa Indonesia) or en
    
    # Authorization gate applied by the HTTP layer (X-User-Role header)
    enforce_permissions: bool = False
    
    # Reject attendance/votes from ids unknown to the member directory
    strict_member_validation: bool = False
    
    # Feature flags
    seed_demo_data: bool = False
    enable_audit_logging: bool = True
    enable_events: bool = True
    
    class Config:
        env_prefix = "KOPERASI_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = KoperasiConfig()


def get_config() -> KoperasiConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> KoperasiConfig:
    """Reload configuration from environment"""
    global config
    config = KoperasiConfig()
    return config
