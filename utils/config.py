"""
Configuration loading utilities for the world facts harvester.
"""

import yaml
from pathlib import Path
from pydantic import BaseModel, Field, field_validator


class SourcesConfig(BaseModel):
    """Document URLs, one per builder."""
    un_members: str
    sovereign_states: str
    flags: str
    iso_3166: str
    currencies: str
    emojis: str
    calling_codes: str
    language_codes: str
    language_zones: str
    capitals: str

    @field_validator('*')
    @classmethod
    def validate_urls(cls, v):
        if not v or not v.startswith('http'):
            raise ValueError('Source URLs must be valid HTTP URLs')
        return v


class PathsConfig(BaseModel):
    """Input and output locations."""
    seed_countries: str = "input/countries.json"
    output_dir: str = "output"
    flags_dir: str = "flags"
    xlsx_output: str = "output/world_facts.xlsx"

    @field_validator('seed_countries')
    @classmethod
    def validate_seed_path(cls, v):
        if not v.endswith('.json'):
            raise ValueError('seed_countries must point to a .json file')
        return v

    @field_validator('xlsx_output')
    @classmethod
    def validate_xlsx_path(cls, v):
        if not v.endswith('.xlsx'):
            raise ValueError('xlsx_output must end with .xlsx')
        return v


class ScrapingConfig(BaseModel):
    """Scraping-related configuration."""
    retry_attempts: int
    retry_delay: int
    request_timeout: int
    rate_limit_delay: float
    user_agent: str

    @field_validator('user_agent')
    @classmethod
    def validate_user_agent(cls, v):
        if not v or len(v.strip()) == 0:
            raise ValueError('user_agent cannot be empty')
        return v


class FlagsConfig(BaseModel):
    """Flag image acquisition: worker pool size and per-flag retry budget."""
    workers: int = Field(default=8, ge=1)
    attempts: int = Field(default=5, ge=1)
    retry_delay: float = Field(default=0.5, ge=0)


class PipelineConfig(BaseModel):
    """Pipeline behaviour."""
    un_members_only: bool = True
    expected_un_members: int = 193


class LoggingConfig(BaseModel):
    """Logging-related configuration."""
    log_level: str
    log_to_file: bool
    log_to_console: bool

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR']
        if v not in valid_levels:
            raise ValueError(f'log_level must be one of: {valid_levels}')
        return v


class Config(BaseModel):
    """Main configuration model."""
    sources: SourcesConfig
    paths: PathsConfig = Field(default_factory=PathsConfig)
    scraping: ScrapingConfig
    flags: FlagsConfig = Field(default_factory=FlagsConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    logging: LoggingConfig

    @classmethod
    def load_from_file(cls, config_path: str = "config/config.yaml") -> "Config":
        """Load configuration from YAML file - single source of truth."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file required: {config_path}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)

            return cls(**config_data)

        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except Exception as e:
            raise ValueError(f"Error loading configuration: {e}")


def load_config(config_path: str = "config/config.yaml") -> Config:
    """Convenience function to load configuration."""
    return Config.load_from_file(config_path)
