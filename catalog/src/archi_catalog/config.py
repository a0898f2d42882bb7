from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class CatalogSettings:
    supabase_url: str
    supabase_anon_key: str
    use_supabase: bool
    log_level: str
    request_timeout: int
    mock_data_path: str | None

    @property
    def remote_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    @property
    def remote_enabled(self) -> bool:
        return self.use_supabase and self.remote_configured


def load_settings() -> CatalogSettings:
    supabase_url = os.getenv("SUPABASE_URL", "").rstrip("/")
    supabase_anon_key = os.getenv("SUPABASE_ANON_KEY", "")
    use_supabase = os.getenv("ARCHI_USE_SUPABASE", "0") in {"1", "true", "True"}
    log_level = os.getenv("ARCHI_LOG_LEVEL", "INFO")
    request_timeout = int(os.getenv("ARCHI_REQUEST_TIMEOUT", "20"))
    mock_data_path = os.getenv("ARCHI_MOCK_DATA")
    return CatalogSettings(
        supabase_url=supabase_url,
        supabase_anon_key=supabase_anon_key,
        use_supabase=use_supabase,
        log_level=log_level,
        request_timeout=request_timeout,
        mock_data_path=mock_data_path,
    )
