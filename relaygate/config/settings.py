"""Runtime settings."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_AWS_REGION = "us-east-1"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="RELAYGATE_", extra="ignore")

    app_name: str = "RelayGate"
    env: str = "dev"
    log_level: str = "info"
    log_dir: str = "logs"
    # DEBUG 下是否打印完整请求正文；False 时只打 method/path/headers + body_size
    log_full_request_body: bool = False

    # 中转网关地址，例如 https://gateway.ai.cloudflare.com/v1/<account>/<gateway>
    relay_base_url: str = "https://gateway.ai.cloudflare.com/v1/your-account/your-gateway"
    relay_token: str = ""
    relay_auth_header: str = "cf-aig-authorization"
    relay_metadata_header: str = "cf-aig-metadata"
    upstream_timeout_seconds: float = Field(default=60.0, gt=0)
    upstream_max_connections: int = 100
    upstream_max_keepalive_connections: int = 20

    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_session_token: str = ""
    aws_region: str = DEFAULT_AWS_REGION
    bedrock_model_aliases_path: str = ""

    azure_resource_name: str = ""
    azure_api_version: str = "2024-12-01-preview"

    storage_backend: str = "sqlite"  # sqlite | redis
    sqlite_db_path: str = "logs/relaygate.db"
    redis_url: str = "redis://127.0.0.1:6379/0"
    redis_key_prefix: str = "relaygate"

    api_key_header: str = "authorization"
    # 令牌管理接口仅允许内网访问
    enforce_internal_admin: bool = True
    # 团队存储为同步 I/O，异步路径中放到线程池执行
    enable_thread_offload: bool = True

    @field_validator("aws_region")
    @classmethod
    def _default_region(cls, value: str) -> str:
        return value.strip() or DEFAULT_AWS_REGION

    @field_validator("relay_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")


settings = Settings()
