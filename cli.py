"""CLI entry point for the sale order extraction proxy."""

import sys
from dataclasses import dataclass

from rich.console import Console

from app import create_app
from core.config import Config, load_config
from core.exceptions import ConfigurationError
from core.protocols import RequestLogger
from ui.console_logger import ConsoleLogger

console = Console()


@dataclass(frozen=True)
class Listener:
    """Where and how the server listens."""

    port: int
    ssl_keyfile: str | None = None
    ssl_certfile: str | None = None
    ssl_keyfile_password: str | None = None

    @property
    def scheme(self) -> str:
        return "https" if self.ssl_certfile else "http"


def select_listener(config: Config, logger: RequestLogger) -> Listener:
    """Plain HTTP on Cloud Foundry; HTTPS locally, HTTP if the certificate is unreadable."""
    if config.proxy.cloud_foundry:
        logger.info(f"Detected Cloud Foundry environment, starting HTTP on port {config.proxy.port}")
        return Listener(port=config.proxy.port)

    tls = config.tls
    try:
        tls.key_file.read_bytes()
        tls.cert_file.read_bytes()
    except OSError as e:
        logger.warning(
            f"Failed to start HTTPS on port {config.proxy.https_port} ({e}). "
            f"Falling back to HTTP on port {config.proxy.port}."
        )
        return Listener(port=config.proxy.port)

    logger.info("Starting local HTTPS server")
    return Listener(
        port=config.proxy.https_port,
        ssl_keyfile=str(tls.key_file),
        ssl_certfile=str(tls.cert_file),
        ssl_keyfile_password=tls.passphrase,
    )


def main():
    """Main CLI entry point."""
    try:
        config = load_config()
    except ConfigurationError as e:
        console.print(f"[red][ERROR][/red] {e}")
        sys.exit(1)

    if len(sys.argv) > 1:
        arg = sys.argv[1]

        if arg == "--config":
            _print_config(config)
            return

        if arg in ("--help", "-h"):
            _print_help()
            return

        console.print(f"[red][ERROR][/red] Unknown option: {arg}")
        _print_help()
        sys.exit(2)

    logger = ConsoleLogger(config.logging, console=console)
    logger.info("Starting Sale Order Extraction Proxy ...")
    listener = select_listener(config, logger)

    import uvicorn

    app = create_app(config, logger)
    uvicorn_config = uvicorn.Config(
        app,
        host="0.0.0.0",
        port=listener.port,
        log_level="warning",
        timeout_keep_alive=config.limits.keep_alive_timeout,
        ssl_keyfile=listener.ssl_keyfile,
        ssl_certfile=listener.ssl_certfile,
        ssl_keyfile_password=listener.ssl_keyfile_password,
    )
    server = uvicorn.Server(uvicorn_config)

    logger.info(f"{listener.scheme.upper()} server listening on port {listener.port}")
    try:
        server.run()
    finally:
        logger.info("Proxy stopped")


def _print_config(config: Config):
    """Print the effective configuration (passphrase masked)."""
    console.print(f"[bold]Target:[/bold] {config.target.base_url}")
    console.print(f"[bold]Schema:[/bold] {config.schema_name}")
    console.print(f"[bold]Port:[/bold] {config.proxy.port} (HTTPS {config.proxy.https_port})")
    console.print(f"[bold]Cloud Foundry:[/bold] {config.proxy.cloud_foundry}")
    console.print(f"[bold]TLS key:[/bold] {config.tls.key_file}")
    console.print(f"[bold]TLS cert:[/bold] {config.tls.cert_file}")
    console.print(f"[bold]Log level:[/bold] {config.logging.level}")
    console.print(f"[bold]Log file:[/bold] {config.logging.file or '-'}")


def _print_help():
    """Print help message."""
    help_text = """
[bold cyan]Sale Order Extraction Proxy[/bold cyan]

Forwards requests to the document extraction service, forcing the
configured schema into every multipart metadata field.

[bold]Usage:[/bold]
    soe-proxy              Start the proxy
    soe-proxy --config     Show effective configuration
    soe-proxy --help       Show this help

[bold]Environment:[/bold]
    DOX_SCHEMA        Schema name injected as schemaName
    DOX_TARGET_URL    Upstream base URL
    PORT              HTTP port (default 8080)
    SSL_KEY, SSL_CERT, SSL_PASSPHRASE
                      Certificate for local HTTPS on port 443
    LOG_LEVEL, LOG_FILE
"""
    console.print(help_text)


if __name__ == "__main__":
    main()
