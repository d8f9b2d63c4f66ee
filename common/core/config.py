from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.core.constants import Environment


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment Profile
    environment: Environment = Environment.LOCAL

    # API Settings
    app_name: str = "app-exposer"
    api_version: str = "1.0.0"
    debug: bool = False

    # Database Components
    db_user: str = "de"
    db_password: str = "notprod"
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "de"
    db_use_nullpool: bool = False
    db_pool_size: int = 10
    db_pool_overflow: int = 5

    @property
    def database_url(self) -> str:
        """Construct database URL from components."""
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    # RabbitMQ
    rabbitmq_host: str = "localhost"
    rabbitmq_port: int = 5672
    rabbitmq_username: str = "guest"
    rabbitmq_password: str = "guest"
    rabbitmq_vhost: str = "/"

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    # Kubernetes
    vice_namespace: str = "vice-apps"
    kubeconfig_path: Optional[str] = None  # Falls back to in-cluster config

    # Workload compilation
    porklock_image: str = "discoenv/porklock"
    porklock_tag: str = "latest"
    interactive_execution_target: str = "interapps"
    input_path_list_identifier: str = "# application/vnd.de.path-list+csv; version=1"

    @property
    def stager_image(self) -> str:
        return f"{self.porklock_image}:{self.porklock_tag}"

    # Quota service (QMS)
    qms_overages_queue: str = "qms.user.overages.get"
    qms_request_timeout_seconds: float = 10.0
    user_suffix: str = "@iplantcollaborative.org"

    # Admission reservation
    admission_reservation_enabled: bool = True
    admission_reservation_ttl_seconds: int = 120
    admission_reservation_wait_seconds: float = 5.0

    # OpenTelemetry
    otel_service_name: str = "app-exposer"
    otel_exporter_endpoint: Optional[str] = None  # OTLP/HTTP traces endpoint


settings = Settings()
