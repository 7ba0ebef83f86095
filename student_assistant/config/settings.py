"""配置管理模块。

支持从 .env、config.yaml 以及环境变量加载配置。
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_config_from_yaml() -> Dict[str, Any]:
    """从 config.yaml 加载配置（若存在）。"""
    candidates = []
    explicit = os.getenv("ASSISTANT_CONFIG_FILE")
    if explicit:
        candidates.append(Path(explicit).expanduser())
    candidates.extend([
        Path.cwd() / "config.yaml",
        Path(__file__).resolve().parents[2] / "config.yaml",
        Path(__file__).resolve().parents[1] / "config.yaml",
    ])

    seen: set[Path] = set()
    for path in candidates:
        if not path or path in seen:
            continue
        seen.add(path)
        try:
            if path.exists():
                data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
                if isinstance(data, dict):
                    return data
                warnings.warn(f"Config file {path} is not a mapping, ignored")
        except Exception as exc:
            warnings.warn(f"Failed to read config file {path}: {exc}")
    return {}


class AssistantSettings(BaseSettings):
    """客户端配置（使用 Pydantic）。"""

    # ---- 远端服务 ----
    api_base_url: str = Field(
        default="http://localhost:8000/api",
        description="助手服务根地址，/auth/* 与 /chat 均挂在其下",
    )
    http_timeout: float = Field(default=30.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- 本地存储 ----
    storage_root: str = Field(default=".storage", description="存储根目录")
    history_prefix: str = Field(
        default="chat_history_",
        description="会话历史键前缀，键名为 前缀 + conversation_id",
    )
    token_key: str = Field(default="token", description="凭证槽位键名")
    user_key: str = Field(default="user", description="缓存用户资料的键名")
    default_conversation_id: str = Field(default="default", description="默认会话 ID")
    prompt_locale: str = Field(default="en", description="问候语与快捷问题的语言目录")

    # ---- 日志 ----
    log_dir: str = Field(default="logs", description="日志目录")
    log_redact_content: bool = Field(default=False, description="是否脱敏日志内容")

    # ---- 路由守卫 ----
    signin_path: str = Field(default="/", description="未登录时的跳转地址")
    landing_path: str = Field(default="/chat/interface", description="已登录用户的落地页")
    admin_role: str = Field(default="admin", description="管理员角色名")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @staticmethod
    def _config_source() -> Dict[str, Any]:
        return _load_config_from_yaml()

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        v = (v or "").strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("api_base_url must be an http(s) URL")
        return v.rstrip("/")

    @field_validator("history_prefix")
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if not v:
            raise ValueError("history_prefix must not be empty")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            cls._config_source,
            file_secret_settings,
        )


settings = AssistantSettings()

# 类型别名，让外部代码可以使用 Settings 类型
Settings = AssistantSettings
