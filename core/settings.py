from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="HPE_",
        extra="ignore",
    )

    # Monte Carlo
    mc_trial_count: int = 500
    mc_seed_base: int = 42
    mc_default_volatility_pct: Optional[float] = None
    mc_max_workers: Optional[int] = 4
    mc_timeout_seconds: Optional[float] = None

    # Taxes
    tax_year_start_month: int = 1

    # Warnings
    high_tax_drag_threshold: float = 0.35  # effective rate that triggers HIGH_TAX_DRAG

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[str] = None
