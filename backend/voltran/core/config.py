from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> list[str]:
    return [x.strip() for x in value.split(",") if x.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    app_env: str = "dev"
    app_secret_key: str = "dev-secret-change-me"
    database_url: str = "postgresql+asyncpg://voltran:voltran@db:5432/voltran"
    log_level: str = "INFO"

    # Comma-separated; requests without an Origin header are always allowed.
    allowed_origins: str = "http://localhost:5173,http://localhost:3000"

    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 24 * 60

    # Upper bound for waiting on a material's mutation lock before the request
    # is rejected as retryable.
    lock_timeout_sec: float = 5.0

    # Published to clients as pick lists; not enforced on write.
    material_categories: str = "Steel,Fasteners,Concrete,Conductor,Insulator,Foundation,Hardware,Other"
    material_units: str = "kg,pcs,cum,m,lot,set,ton"

    @property
    def allowed_origin_list(self) -> list[str]:
        return _split_csv(self.allowed_origins)

    @property
    def category_list(self) -> list[str]:
        return _split_csv(self.material_categories)

    @property
    def unit_list(self) -> list[str]:
        return _split_csv(self.material_units)


settings = Settings()
