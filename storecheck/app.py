"""
storecheck — command-line entry point.

Loads config, configures logging, builds the session and executor, and runs
the ordered scenario sequence against the configured API.

Usage:
    storecheck [config.yaml]
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from storecheck.errors import ConfigError
from storecheck.executor import RequestExecutor
from storecheck.models import HarnessConfig
from storecheck.runner import RunReport, SequenceRunner
from storecheck.scenarios import ScenarioContext, build_sequence
from storecheck.session import SessionState

logger = logging.getLogger("storecheck")

DEFAULT_CONFIG = "storecheck.yaml"


# ---------------------------------------------------------------------------
# Config loading
# ---------------------------------------------------------------------------

def _resolve_env(value: Any) -> Any:
    """Recursively resolve ${ENV_VAR} placeholders in config values."""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        env_key = value[2:-1]
        return os.environ.get(env_key, value)
    if isinstance(value, dict):
        return {k: _resolve_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env(v) for v in value]
    return value


def _from_env() -> dict[str, Any]:
    raw: dict[str, Any] = {}
    for key, env_key in (
        ("base_url", "STORECHECK_BASE_URL"),
        ("timeout", "STORECHECK_TIMEOUT"),
        ("log_level", "STORECHECK_LOG_LEVEL"),
    ):
        if os.getenv(env_key):
            raw[key] = os.environ[env_key]
    return raw


def load_config(config_path: str | Path | None = None) -> HarnessConfig:
    """
    Load harness config from a YAML file.  Falls back to env vars and defaults.
    """
    path = Path(config_path) if config_path else Path(DEFAULT_CONFIG)

    if not path.exists():
        if config_path:
            raise ConfigError(f"Config file not found: {path}")
        logger.info("No config file found at %s — using defaults + env vars.", path)
        raw: Any = _from_env()
    else:
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Cannot parse {path}: {exc}") from exc
        raw = _resolve_env(raw)

    try:
        return HarnessConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc


def configure_logging(level: str):
    """Install the console handler once; later calls only change the level."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger().setLevel(numeric)
    # httpx logs every request at INFO; the executor already does that at DEBUG
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Run
# ---------------------------------------------------------------------------

def run(config: HarnessConfig, executor: RequestExecutor | None = None) -> RunReport:
    """Run the configured sequence once, with a fresh session."""
    runner = SequenceRunner(build_sequence(config))
    owned = executor is None
    executor = executor or RequestExecutor(config.base_url, timeout=config.timeout)
    try:
        ctx = ScenarioContext(session=SessionState(), executor=executor, config=config)
        print(f"\n{'─' * 80}")
        print(f"  Shop API checks — {executor.base_url}")
        print(f"{'─' * 80}")
        return runner.run(ctx)
    finally:
        if owned:
            executor.close()


def main():
    """Run the checks from the command line."""
    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    configure_logging(os.getenv("STORECHECK_LOG_LEVEL", "INFO"))
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(2)

    configure_logging(config.log_level)
    report = run(config)
    all_passed = report.summary()
    sys.exit(0 if all_passed else 1)


if __name__ == "__main__":
    main()
