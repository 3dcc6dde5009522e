"""
System configuration package.

Provides consolidated system-level configuration and logging.

Exports:
    - SystemConfig: Complete system configuration dataclass
    - get_system_config: Get system config singleton
    - reload_system_config: Force reload system config
    - LoggerFactory: Factory for creating configured loggers
    - LoggingConfig: Logging configuration model
    - portfolio_context: Bind a portfolio name to log events in a block
"""

from qledger.system.config import SystemConfig, get_system_config, reload_system_config
from qledger.system.log_system import LoggerFactory, LoggingConfig, portfolio_context

__all__ = [
    "SystemConfig",
    "get_system_config",
    "reload_system_config",
    "LoggerFactory",
    "LoggingConfig",
    "portfolio_context",
]
