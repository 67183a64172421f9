# webpilot/command/webpilot_server.py

import sys
from contextlib import asynccontextmanager
from dataclasses import replace
from pathlib import Path

import click
import uvicorn
from fastapi import FastAPI

from webpilot.browser.actions import BrowserActions
from webpilot.browser.launch import BrowserLauncher
from webpilot.browser.tab_tracker import ActiveTabTracker
from webpilot.command.command_utils import get_package_root, setup_command_logger
from webpilot.config.server_config import ServerConfig, load_server_config
from webpilot.mcp.app import build_app
from webpilot.mcp.dispatcher import McpDispatcher


def create_server_app(server_config: ServerConfig, logger) -> FastAPI:
    """
    Builds the FastAPI app whose lifespan owns the browser session.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        launcher = BrowserLauncher(
            browser_type=server_config.browser_type,
            debug_port=server_config.debug_port,
            chrome_user_data_dir=server_config.user_data_dir,
            ready_attempts=server_config.browser_ready_attempts,
        )
        browser = await launcher.start()
        tracker = ActiveTabTracker(browser, capacity=server_config.recency_capacity)
        actions = BrowserActions(
            browser,
            tracker,
            element_timeout_ms=server_config.element_timeout_ms,
            navigation_timeout_ms=server_config.navigation_timeout_ms,
            history_settle_ms=server_config.history_settle_ms,
            new_tab_wait_ms=server_config.new_tab_wait_ms,
        )
        app.state.dispatcher = McpDispatcher(actions)
        logger.info("Browser session is ready to receive requests.")
        try:
            yield
        finally:
            logger.info("Shutting down the browser session.")
            app.state.dispatcher = None
            await launcher.stop()
            logger.info("Browser session closed.")

    return build_app(lifespan=lifespan)


@click.command(name="webpilot-server")
@click.option(
    '--config', '-c',
    default=None,
    help='Path to the configuration file (YAML or JSON).',
    type=click.Path(exists=True, dir_okay=False)
)
@click.option(
    '--host', '-H',
    default=None,
    help='Host address to run the server on (overrides config).',
)
@click.option(
    '--port', '-p',
    default=None,
    type=int,
    help='Port number to run the server on (overrides config).',
)
@click.option(
    '--browser', '-b',
    'browser_type',
    default=None,
    type=click.Choice(['chrome', 'firefox', 'webkit']),
    help='Browser to drive (overrides config and BROWSER_TYPE).',
)
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Enable verbose logging.'
)
def run(config, host, port, browser_type, verbose):
    """
    Starts the webpilot MCP server using FastAPI.
    """
    package_root = get_package_root()
    logger = setup_command_logger(
        log_filename="webpilot-server.log",
        project_root=package_root,
        verbose=verbose,
    )

    if config is None:
        config_path = package_root / 'configs' / 'server_config.yaml'
    else:
        config_path = Path(config)

    logger.info(f"Loading configuration from {config_path}")
    try:
        server_config = load_server_config(config_path)
        if browser_type is not None:
            server_config = replace(server_config, browser_type=browser_type)
    except (OSError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        click.echo(f"Error: Invalid configuration: {e}")
        sys.exit(1)

    host = host or server_config.host
    port = port or server_config.port
    app = create_server_app(server_config, logger)

    try:
        logger.info(f"Starting server at http://{host}:{port} (browser: {server_config.browser_type})")
        uvicorn.run(app, host=host, port=port)
    except Exception as e:
        logger.error(f"Server encountered an error: {e}")
        sys.exit(1)
    finally:
        logger.info("Server has been stopped.")


if __name__ == "__main__":
    run()
