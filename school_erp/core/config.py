# school_erp/core/config.py
"""Application configuration using Pydantic."""
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    database_url: str
    redis_url: str
    jwt_secret_key: str

    jwt_algorithm: str = 'HS256'
    access_token_expire_hours: int = 24

    app_version: str = '1.0.0'
    environment: str = 'development'
    log_level: str = 'info'
    allowed_origins: List[str] = ['*']
    cache_enabled: bool = True

    # Uploaded files are served back under /uploads
    upload_dir: str = 'uploads'
    max_upload_bytes: int = 50 * 1024 * 1024

    # File-backed stores
    radio_store_path: str = 'backend/radio-programs.json'
    departments_store_path: str = 'backend/departments.json'
    audit_log_path: str = 'audit.log'

    # Tally accounting bridge
    tally_url: str = 'http://localhost:9000'
    tally_timeout_seconds: float = 10.0
    tally_sales_ledger: str = 'School Fees'
    tally_party_group: str = 'Sundry Debtors'

    fee_amount: float = 1200.0

    radio_default_duration_seconds: int = 300
    radio_words_per_second: float = 2.5
    radio_chunk_words: int = 40

    bootstrap_admin_email: str = 'admin@system.com'
    bootstrap_admin_password: Optional[str] = None

    model_config = {
        'env_file': '.env',
        'extra': 'ignore'
    }

settings = Settings()
