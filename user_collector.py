#!/usr/bin/env python3
"""
Sunvoy User Collector

Logs in to the Sunvoy challenge application, collects the user list and the
current user's profile from the signature-protected settings API, and writes
both to a single JSON file.

Usage:
    python user_collector.py

Configuration (environment / .env file, then config.ini [sunvoy], then defaults):
    SUNVOY_BASE_URL: Web application origin
    SUNVOY_API_BASE_URL: Settings API origin
    SUNVOY_USERNAME / SUNVOY_PASSWORD: Login credentials
    SUNVOY_COOKIE_FILE: Where the session cookie is kept between runs
    SUNVOY_OUTPUT_FILE: Where the collected users are written
    SUNVOY_STEP_DELAY: Pause between steps, in seconds
    SUNVOY_REQUEST_TIMEOUT: Per-request timeout, in seconds
    SUNVOY_SSL_VERIFY: Verify TLS certificates (true/false)
    SUNVOY_LOG_LEVEL: Logging level (default INFO)

Output Files:
    - cookies.txt: Session cookie, reused on the next run
    - users.json: User records followed by {"currentUser": ...}
"""

import configparser
import logging
import os
import sys

from dotenv import load_dotenv

from auth_session import AuthenticationError, AuthSessionClient
from collection_pipeline import DEFAULT_STEP_DELAY, OUTPUT_FILE, CollectionPipeline
from http_utils import DEFAULT_REQUEST_TIMEOUT, RequestError, setup_session
from resource_fetcher import ResourceFetcher
from session_store import COOKIE_FILE, SessionPersistError, SessionStore

# --- Constants ---
BASE_URL = "https://challenge.sunvoy.com"
API_BASE_URL = "https://api.challenge.sunvoy.com"
DEMO_USERNAME = "demo@example.org"
DEMO_PASSWORD = "test"
CONFIG_FILE = "config.ini"
CONFIG_SECTION = "sunvoy"
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def load_config_file(config_file=CONFIG_FILE):
    """Load configuration from config.ini file.

    Returns:
        configparser.ConfigParser: Loaded configuration object (empty if the file is missing)
    """
    config = configparser.ConfigParser(interpolation=None)
    if os.path.exists(config_file):
        config.read(config_file)
    return config


def _setting(config_parser, name, default):
    """Environment variable SUNVOY_<NAME>, then config.ini [sunvoy] <name>, then default."""
    return (os.environ.get(f'SUNVOY_{name.upper()}') or
            config_parser.get(CONFIG_SECTION, name, fallback=None) or
            default)


def _as_float(value, name):
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.error(f"Invalid value for SUNVOY_{name.upper()}: {value!r}")
        sys.exit(1)


def get_config(config_file=CONFIG_FILE):
    """Reads configuration from the environment, .env and config.ini.

    Priority order: environment variables (including .env) > config file > built-in defaults

    Returns:
        dict: Configuration dictionary with all settings
    """
    load_dotenv()
    config_parser = load_config_file(config_file)

    config = {
        'base_url': _setting(config_parser, 'base_url', BASE_URL),
        'api_base_url': _setting(config_parser, 'api_base_url', API_BASE_URL),
        'username': _setting(config_parser, 'username', DEMO_USERNAME),
        'password': _setting(config_parser, 'password', DEMO_PASSWORD),
        'cookie_file': _setting(config_parser, 'cookie_file', COOKIE_FILE),
        'output_file': _setting(config_parser, 'output_file', OUTPUT_FILE),
        'step_delay': _as_float(_setting(config_parser, 'step_delay', DEFAULT_STEP_DELAY), 'step_delay'),
        'request_timeout': _as_float(_setting(config_parser, 'request_timeout', DEFAULT_REQUEST_TIMEOUT), 'request_timeout'),
        'ssl_verify': str(_setting(config_parser, 'ssl_verify', 'true')).lower() == 'true',
        'log_level': str(_setting(config_parser, 'log_level', 'INFO')).upper(),
    }

    if not config['ssl_verify']:
        logger.warning("SSL certificate verification is DISABLED.")
    return config


def build_pipeline(config, http=None):
    """Wires the session store, clients and pipeline from a configuration dictionary."""
    http = http if http is not None else setup_session(config)
    store = SessionStore(config['cookie_file'])
    auth_client = AuthSessionClient(
        http, store, config['base_url'], config['username'], config['password'],
        timeout=config['request_timeout']
    )
    fetcher = ResourceFetcher(http, config['base_url'], config['api_base_url'], timeout=config['request_timeout'])
    return CollectionPipeline(
        auth_client, fetcher, store,
        output_path=config['output_file'],
        step_delay=config['step_delay']
    )


def main():
    """Main entry point for the script."""
    config = get_config()
    logging.basicConfig(level=getattr(logging, config['log_level'], logging.INFO), format=LOG_FORMAT)
    logger.info("Application started.")

    try:
        build_pipeline(config).run()
    except AuthenticationError as e:
        logger.error(f"Authentication failed: {e}")
        sys.exit(1)
    except RequestError as e:
        logger.error(f"Request failed: {e}")
        sys.exit(1)
    except SessionPersistError as e:
        logger.error(f"Run finished but the session was not saved: {e}")
        sys.exit(1)
    except OSError as e:
        logger.error(f"Could not write output: {e}")
        sys.exit(1)

    logger.info("Sunvoy collection workflow finished successfully.")


if __name__ == "__main__":
    main()
