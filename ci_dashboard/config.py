"""
配置加载模块

从 config.yaml 加载配置，支持 Pydantic 验证、环境变量覆盖和命令行参数覆盖。
优先级：命令行参数 > 环境变量 > 配置文件 > 默认值。

实例配置逐条校验：格式错误的 Jenkins 实例 / Travis 组织 / 仓库会被跳过并记录警告，
不会导致整个配置加载失败。
"""

import logging
import os
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional, Tuple, Union

import yaml
from pydantic import AfterValidator, BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .clients.travis import TRAVIS_API_URL
from .instances import DEFAULT_BRANCH

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "CI_DASHBOARD_CONFIG_PATH"
DEFAULT_CONFIG_PATH = "config.yaml"
HOME_CONFIG_NAME = ".ci-dashboard.yaml"


def parse_bind_address(value: str) -> Tuple[str, int]:
    """
    解析 host:port 形式的监听地址，host 可以省略（":8000"）

    Raises:
        ValueError: 缺少端口或端口不是 1-65535 之间的整数
    """
    host, sep, port = value.rpartition(":")
    if not sep or not port.isdigit() or not 0 < int(port) < 65536:
        raise ValueError(f"Invalid bind address '{value}': expected host:port")
    return host, int(port)


def _check_bind_address(value: Optional[str]) -> Optional[str]:
    if value:
        parse_bind_address(value)
    return value


BindAddress = Annotated[Optional[str], AfterValidator(_check_bind_address)]


class APIConfig(BaseModel):
    """API 服务配置"""
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: List[str] = ["http://localhost:8000", "http://127.0.0.1:8000"]


class FrontendConfig(BaseModel):
    """前端配置"""
    path: str = "static"
    enabled: bool = False


class CollectorConfig(BaseModel):
    """拉取配置"""
    timeout: float = Field(30.0, gt=0)
    max_concurrency: int = Field(16, ge=0)  # 0 表示不限制


class LoggingConfig(BaseModel):
    """日志配置"""
    level: str = "INFO"
    file: Optional[str] = None


class CredentialsConfig(BaseModel):
    """Jenkins Basic Auth（所有 Jenkins 实例共用）"""
    username: Optional[str] = None
    password: Optional[str] = None


class JenkinsEntry(BaseModel):
    """单个 Jenkins 实例配置"""
    name: str
    url: str
    broken_jobs_url: Optional[str] = None
    public_url: Optional[str] = None

    @field_validator("name", "url")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


class TravisRepoEntry(BaseModel):
    """Travis 仓库配置"""
    name: str
    branch: str = DEFAULT_BRANCH

    @field_validator("name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("branch", mode="before")
    @classmethod
    def _default_branch(cls, value: Any) -> Any:
        return value or DEFAULT_BRANCH


class TravisOrganizationEntry(BaseModel):
    """Travis 组织配置"""
    name: str
    repos: List[TravisRepoEntry] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("repos", mode="before")
    @classmethod
    def _skip_invalid_repos(cls, value: Any) -> List[TravisRepoEntry]:
        return _validate_entries(value, TravisRepoEntry, "Travis repo")


class TravisConfig(BaseModel):
    """Travis 配置"""
    access_token: Optional[str] = None
    api_url: str = TRAVIS_API_URL
    organizations: List[TravisOrganizationEntry] = Field(default_factory=list)

    @field_validator("organizations", mode="before")
    @classmethod
    def _skip_invalid_organizations(cls, value: Any) -> List[TravisOrganizationEntry]:
        return _validate_entries(value, TravisOrganizationEntry, "Travis organization")


class AppConfig(BaseModel):
    """应用配置（完整配置）"""
    api: APIConfig = Field(default_factory=APIConfig)
    frontend: FrontendConfig = Field(default_factory=FrontendConfig)
    collector: CollectorConfig = Field(default_factory=CollectorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)
    debug: bool = False
    jenkins: List[JenkinsEntry] = Field(default_factory=list)
    travis: TravisConfig = Field(default_factory=TravisConfig)

    @field_validator("jenkins", mode="before")
    @classmethod
    def _skip_invalid_jenkins(cls, value: Any) -> List[JenkinsEntry]:
        # 兼容旧格式：{name: {url: ..., brokenjobsurl: ...}}
        if isinstance(value, dict):
            value = [
                {"name": name, **_normalize_legacy_keys(entry)} if isinstance(entry, dict) else entry
                for name, entry in value.items()
            ]
        return _validate_entries(value, JenkinsEntry, "Jenkins instance")


class Overrides(BaseModel):
    """命令行参数覆盖（未指定的参数为 None，不覆盖）"""
    username: Optional[str] = None
    password: Optional[str] = None
    bind_address: BindAddress = None
    debug: Optional[bool] = None
    travis_token: Optional[str] = None


class EnvOverrides(BaseSettings):
    """环境变量覆盖（前缀 CI_DASHBOARD_）"""

    model_config = SettingsConfigDict(env_prefix="CI_DASHBOARD_")

    username: Optional[str] = None
    password: Optional[str] = None
    bind_address: BindAddress = None
    debug: Optional[bool] = None
    travis_token: Optional[str] = None


def _normalize_legacy_keys(entry: Dict[str, Any]) -> Dict[str, Any]:
    legacy = {"brokenjobsurl": "broken_jobs_url", "publicurl": "public_url"}
    return {legacy.get(key, key): value for key, value in entry.items()}


def _validate_entries(value: Any, model: type, label: str) -> list:
    """逐条校验，跳过无效条目"""
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning(f"Ignoring {label} list: expected a list, got {type(value).__name__}")
        return []

    entries = []
    for index, raw in enumerate(value):
        try:
            entries.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                f"Skipping {label} #{index}: "
                + "; ".join(f"{'.'.join(map(str, err['loc'])) or 'entry'}: {err['msg']}" for err in e.errors())
            )
    return entries


def apply_overrides(config: AppConfig, overrides: Union[Overrides, EnvOverrides]) -> AppConfig:
    """用覆盖项替换凭据、监听地址、调试开关和 Travis token，None 表示不覆盖"""
    if overrides.username is not None:
        config.credentials.username = overrides.username
    if overrides.password is not None:
        config.credentials.password = overrides.password
    if overrides.debug is not None:
        config.debug = overrides.debug
    if overrides.travis_token is not None:
        config.travis.access_token = overrides.travis_token
    if overrides.bind_address:
        host, port = parse_bind_address(overrides.bind_address)
        if host:
            config.api.host = host
        config.api.port = port

    return config


def resolve_config_path(config_path: Optional[str] = None) -> Path:
    """
    确定配置文件路径

    优先级：
    1. 参数指定的路径
    2. 环境变量 CI_DASHBOARD_CONFIG_PATH
    3. 工作目录下的 config.yaml
    4. 用户主目录下的 .ci-dashboard.yaml
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_PATH_ENV)
    if config_path is not None:
        return Path(config_path)

    candidates = [Path(DEFAULT_CONFIG_PATH), Path.home() / HOME_CONFIG_NAME]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return candidates[0]


def load_config(
    config_path: Optional[str] = None,
    cli_overrides: Optional[Overrides] = None
) -> AppConfig:
    """
    加载配置文件，依次应用环境变量和命令行参数覆盖

    Raises:
        pydantic.ValidationError: 配置节或覆盖项的取值无效
    """
    config_file = resolve_config_path(config_path)
    raw_config = None

    if config_file.exists():
        with open(config_file, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
        logger.info(f"Loaded config from {config_file}")
    else:
        logger.info(f"No config file found at {config_file}. Using defaults.")

    # 配置文件不存在或为空时使用默认配置
    config = AppConfig(**raw_config) if raw_config else AppConfig()
    apply_overrides(config, EnvOverrides())
    if cli_overrides is not None:
        apply_overrides(config, cli_overrides)
    return config


# 全局配置实例（延迟加载）
_config: Optional[AppConfig] = None


def init_config(
    config_path: Optional[str] = None,
    cli_overrides: Optional[Overrides] = None
) -> AppConfig:
    """按指定路径和命令行参数加载配置，并设为全局配置"""
    global _config
    _config = load_config(config_path, cli_overrides)
    return _config


def get_config() -> AppConfig:
    """获取全局配置实例（单例模式）"""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config():
    """重置配置（主要用于测试）"""
    global _config
    _config = None
