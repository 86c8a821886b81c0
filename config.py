"""
Control panel configuration management

Loads the service configuration from defaults, per-environment YAML files,
an optional user file and environment variables, in that order.
"""

import os
import yaml
import json
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_URL = "https://api-gateway-dfcflow.fly.dev"


@dataclass
class GatewayConfig:
    """External API gateway"""
    url: str = DEFAULT_GATEWAY_URL
    api_key: str = ""


@dataclass
class TypesenseConfig:
    """Typesense search cluster (read-only search key)"""
    url: str = ""
    api_key: str = ""


@dataclass
class SupabaseConfig:
    """Supabase auth and PostgREST"""
    url: str = ""
    anon_key: str = ""
    access_token_cookie: str = "sb-access-token"


@dataclass
class AdapterConfig:
    """Upstream HTTP adapter settings"""
    connection_timeout: int = 10  # seconds
    request_timeout: int = 60  # seconds
    pool_size: int = 20
    limit_per_host: int = 10


@dataclass
class SchedulerConfig:
    """Manual schedule execution settings"""
    execution_guard_window_ms: int = 2000
    execution_guard_ttl_ms: int = 30000


@dataclass
class MonitoringConfig:
    """Monitoring dashboard settings"""
    poll_interval_seconds: int = 10
    alert_error_rate_threshold: float = 20.0


@dataclass
class ServiceConfig:
    """HTTP service settings"""
    host: str = "0.0.0.0"
    port: int = 8090
    debug: bool = False
    default_tenant_id: int = 1
    protected_routes: List[str] = field(default_factory=lambda: [
        '/dashboard', '/feeds', '/schedules', '/workers', '/rules', '/admin'
    ])
    public_routes: List[str] = field(default_factory=lambda: [
        '/login', '/register', '/logout', '/pending-approval'
    ])
    rules_session_ttl_seconds: int = 3600
    cache_ttl_seconds: int = 30


@dataclass
class LoggingConfig:
    """Logging settings"""
    level: str = "INFO"
    file: str = "logs/control_panel.log"
    max_size: int = 10485760  # 10MB
    backup_count: int = 5
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ControlPanelConfig:
    """Main configuration of the control panel service"""

    SECTIONS = (
        'gateway', 'typesense', 'supabase', 'adapter',
        'scheduler', 'monitoring', 'service', 'logging',
    )

    def __init__(self, config_file: Optional[str] = None, environment: str = "development"):
        """Initialize the configuration

        Args:
            config_file: Optional YAML or JSON file
            environment: Environment name (development, testing, production)
        """
        self.environment = environment
        self.config_file = config_file
        self._config_data: Dict[str, Any] = {}

        self.gateway = GatewayConfig()
        self.typesense = TypesenseConfig()
        self.supabase = SupabaseConfig()
        self.adapter = AdapterConfig()
        self.scheduler = SchedulerConfig()
        self.monitoring = MonitoringConfig()
        self.service = ServiceConfig()
        self.logging = LoggingConfig()

        self._load_config()

        logger.info(f"Control panel config initialized for environment: {environment}")

    def _load_config(self) -> None:
        """Load every configuration layer"""
        try:
            self._load_default_config()
            self._load_environment_config()

            if self.config_file:
                self._load_file_config(self.config_file)

            self._load_env_config()
            self._apply_config()

        except Exception as e:
            logger.error(f"Failed to load config: {e}")
            raise

    def _load_default_config(self) -> None:
        default_config = {
            'gateway': {
                'url': DEFAULT_GATEWAY_URL,
                'api_key': ''
            },
            'typesense': {
                'url': '',
                'api_key': ''
            },
            'supabase': {
                'url': '',
                'anon_key': '',
                'access_token_cookie': 'sb-access-token'
            },
            'adapter': {
                'connection_timeout': 10,
                'request_timeout': 60,
                'pool_size': 20,
                'limit_per_host': 10
            },
            'scheduler': {
                'execution_guard_window_ms': 2000,
                'execution_guard_ttl_ms': 30000
            },
            'monitoring': {
                'poll_interval_seconds': 10,
                'alert_error_rate_threshold': 20.0
            },
            'service': {
                'host': '0.0.0.0',
                'port': 8090,
                'debug': False,
                'default_tenant_id': 1,
                'protected_routes': ['/dashboard', '/feeds', '/schedules', '/workers', '/rules', '/admin'],
                'public_routes': ['/login', '/register', '/logout', '/pending-approval'],
                'rules_session_ttl_seconds': 3600,
                'cache_ttl_seconds': 30
            },
            'logging': {
                'level': 'INFO',
                'file': 'logs/control_panel.log',
                'max_size': 10485760,
                'backup_count': 5,
                'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            }
        }

        self._config_data.update(default_config)

    def _load_environment_config(self) -> None:
        env_config_file = f"config/control_panel_{self.environment}.yaml"
        if os.path.exists(env_config_file):
            self._load_file_config(env_config_file)

    def _load_file_config(self, config_file: str) -> None:
        try:
            config_path = Path(config_file)
            if not config_path.exists():
                logger.warning(f"Config file not found: {config_file}")
                return

            with open(config_path, 'r', encoding='utf-8') as f:
                if config_path.suffix.lower() in ['.yaml', '.yml']:
                    file_config = yaml.safe_load(f)
                elif config_path.suffix.lower() == '.json':
                    file_config = json.load(f)
                else:
                    logger.warning(f"Unsupported config file format: {config_file}")
                    return

            if file_config:
                self._merge_config(self._config_data, file_config)
                logger.info(f"Loaded config from: {config_file}")

        except Exception as e:
            logger.error(f"Failed to load config file {config_file}: {e}")
            raise

    def _load_env_config(self) -> None:
        """Apply environment variables

        When several variables feed the same key, the later entry wins, so the
        server-side names are listed after the public fallbacks.
        """
        env_mappings = [
            ('API_GATEWAY_URL', ('gateway', 'url', str)),
            ('NEXT_PUBLIC_API_GATEWAY_URL', ('gateway', 'url', str)),
            ('NEXT_PUBLIC_GATEWAY_API_KEY', ('gateway', 'api_key', str)),
            ('GATEWAY_API_KEY', ('gateway', 'api_key', str)),

            ('NEXT_PUBLIC_TYPESENSE_URL', ('typesense', 'url', str)),
            ('TYPESENSE_URL', ('typesense', 'url', str)),
            ('NEXT_PUBLIC_TYPESENSE_SEARCH_API_KEY', ('typesense', 'api_key', str)),
            ('TYPESENSE_SEARCH_API_KEY', ('typesense', 'api_key', str)),
            ('TYPESENSE_SEARCH_X_TYPESENSE_API_KEY', ('typesense', 'api_key', str)),

            ('SUPABASE_URL', ('supabase', 'url', str)),
            ('NEXT_PUBLIC_SUPABASE_URL', ('supabase', 'url', str)),
            ('SUPABASE_ANON_KEY', ('supabase', 'anon_key', str)),
            ('NEXT_PUBLIC_SUPABASE_ANON_KEY', ('supabase', 'anon_key', str)),

            ('ADAPTER_REQUEST_TIMEOUT', ('adapter', 'request_timeout', int)),
            ('SCHEDULE_EXECUTION_GUARD_MS', ('scheduler', 'execution_guard_window_ms', int)),
            ('MONITORING_POLL_INTERVAL', ('monitoring', 'poll_interval_seconds', int)),

            ('CONTROL_PANEL_HOST', ('service', 'host', str)),
            ('CONTROL_PANEL_PORT', ('service', 'port', int)),
            ('CONTROL_PANEL_DEBUG', ('service', 'debug', bool)),
            ('DEFAULT_TENANT_ID', ('service', 'default_tenant_id', int)),

            ('LOG_LEVEL', ('logging', 'level', str)),
            ('LOG_FILE', ('logging', 'file', str)),
        ]

        for env_var, (section, key, type_func) in env_mappings:
            value = os.getenv(env_var)
            if value is None or value == '':
                continue
            try:
                if type_func == bool:
                    value = value.lower() in ('true', '1', 'yes', 'on')
                else:
                    value = type_func(value)

                if section not in self._config_data:
                    self._config_data[section] = {}
                self._config_data[section][key] = value

                if 'key' in key:
                    logger.info(f"Applied env config: {env_var}=***")
                else:
                    logger.info(f"Applied env config: {env_var}={value}")

            except (ValueError, TypeError) as e:
                logger.warning(f"Invalid env config value for {env_var}: {value}, error: {e}")

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> None:
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def _apply_config(self) -> None:
        """Push the merged dictionary into the section dataclasses"""
        try:
            for section in self.SECTIONS:
                if section not in self._config_data:
                    continue
                target = getattr(self, section)
                for key, value in self._config_data[section].items():
                    if hasattr(target, key):
                        setattr(target, key, value)

        except Exception as e:
            logger.error(f"Failed to apply config: {e}")
            raise

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value

        Args:
            key: Dotted key, e.g. ``gateway.url``
            default: Value returned when the key is missing

        Returns:
            Any: Configuration value
        """
        keys = key.split('.')
        value = self._config_data

        try:
            for k in keys:
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value

        Args:
            key: Dotted key
            value: New value
        """
        keys = key.split('.')
        config = self._config_data

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

        self._apply_config()

    def validate(self) -> bool:
        """Validate the configuration

        Missing upstream keys are only warned about: the affected routes
        answer with a configuration error instead.

        Returns:
            bool: True when the configuration is usable
        """
        try:
            for section in self.SECTIONS:
                if section not in self._config_data:
                    logger.error(f"Missing required config section: {section}")
                    return False

            validations = [
                (1 <= self.service.port <= 65535, "service port must be between 1 and 65535"),
                (self.service.host is not None, "service host must be specified"),
                (bool(self.gateway.url), "gateway url must be specified"),
                (self.adapter.request_timeout > 0, "request_timeout must be positive"),
                (self.scheduler.execution_guard_window_ms >= 0, "execution_guard_window_ms must not be negative"),
                (self.scheduler.execution_guard_ttl_ms >= self.scheduler.execution_guard_window_ms,
                 "execution_guard_ttl_ms must cover the guard window"),
                (self.monitoring.poll_interval_seconds > 0, "poll_interval_seconds must be positive"),
            ]

            for condition, message in validations:
                if not condition:
                    logger.error(f"Config validation failed: {message}")
                    return False

            if not self.gateway.api_key:
                logger.warning("GATEWAY_API_KEY is not set, gateway routes will fail")
            if not self.typesense.url or not self.typesense.api_key:
                logger.warning("Typesense settings are incomplete, collection routes will fail")
            if not self.supabase.url or not self.supabase.anon_key:
                logger.warning("Supabase settings are incomplete, auth and rules will fail")

            logger.info("Config validation passed")
            return True

        except Exception as e:
            logger.error(f"Config validation error: {e}")
            return False

    def to_dict(self) -> Dict[str, Any]:
        return self._config_data.copy()

    def save_to_file(self, file_path: str) -> None:
        """Save the configuration to a YAML or JSON file

        Args:
            file_path: Target path
        """
        try:
            config_path = Path(file_path)
            config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(config_path, 'w', encoding='utf-8') as f:
                if config_path.suffix.lower() in ['.yaml', '.yml']:
                    yaml.dump(self._config_data, f, default_flow_style=False, allow_unicode=True)
                elif config_path.suffix.lower() == '.json':
                    json.dump(self._config_data, f, indent=2, ensure_ascii=False)
                else:
                    raise ValueError(f"Unsupported file format: {config_path.suffix}")

            logger.info(f"Config saved to: {file_path}")

        except Exception as e:
            logger.error(f"Failed to save config to {file_path}: {e}")
            raise
