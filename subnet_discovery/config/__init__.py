"""
Configuration module for Subnet Discovery.
Provides loading and validation of the sweep configuration.
"""

from .config_loader import ConfigLoader, SweepConfig, DEFAULT_MAX_WORKERS

__all__ = ['ConfigLoader', 'SweepConfig', 'DEFAULT_MAX_WORKERS']
