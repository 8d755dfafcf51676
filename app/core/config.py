import os
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application configuration settings.
    """
    model_config = SettingsConfigDict(env_prefix="IDP_MONITOR_", env_file=".env", extra="ignore")

    # Service Info
    service_name: str = "idp-telemetry-monitor"
    environment: str = "local"
    log_level: str = "INFO"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # IdP host shown in narrative log lines
    idp_hostname: str = "idp.yzu.edu.cn"

    # Scheduler
    tick_interval_seconds: float = 2.5
    data_age_interval_seconds: float = 1.0
    restart_delay_seconds: float = 5.0
    log_buffer_capacity: int = 50
    autostart: bool = True

    # Synthetic generator
    error_rate: float = 0.15
    random_seed: Optional[int] = None

    # Live feed
    feed_base_url: str = "http://localhost:8080/api"
    feed_timeout_seconds: float = 5.0

    # Record sink: console | json | none
    record_sink: Literal["console", "json", "none"] = "console"

    # LLM (Azure OpenAI) for log diagnosis
    azure_openai_api_key: str = "placeholder-key"
    azure_openai_endpoint: str = "https://placeholder.openai.azure.com"
    azure_openai_api_version: str = "2024-02-15-preview"
    azure_openai_deployment_name: str = "gpt-4"
    diagnosis_temperature: float = 0.2

    # Paths
    base_dir: str = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    prompts_dir: str = os.path.join(base_dir, "prompts")

settings = Settings()
