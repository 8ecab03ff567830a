#!/usr/bin/env python3
"""
Compliance Reviewer Server

Runs the Flask app for the compliance reviewer. Settings come from the
environment, or from the YAML file named by COMPLIANCE_REVIEWER_CONFIG.
"""

import os
import logging

from compliance_reviewer.config import AppConfig, ConfigManager, get_config_manager
from compliance_reviewer.server import create_app


logger = logging.getLogger(__name__)


def main():
    config_path = os.getenv("COMPLIANCE_REVIEWER_CONFIG")
    manager = ConfigManager(AppConfig.from_yaml(config_path)) if config_path else get_config_manager()
    config = manager.config
    app = create_app(config=config)

    logger.info(f"Starting Compliance Reviewer server on {config.server.host}:{config.server.port}")
    app.run(
        host=config.server.host,
        port=config.server.port,
        debug=config.debug,
    )


if __name__ == '__main__':
    main()
