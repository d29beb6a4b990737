"""
Canal ZooKeeper exporter CLI.

Commands:
- serve: run the HTTP exporter (landing page + metrics path)
- scrape: run one collection and print the exposition to stdout

Options fall back to CANALZK_* environment variables via Settings.
"""

import asyncio
import logging
import sys
from pathlib import Path

import typer
import uvicorn

from canalzk_exporter.app import create_app
from canalzk_exporter.collector import create_collector
from canalzk_exporter.config import ClusterConfig, Settings
from canalzk_exporter.exceptions import ConfigError
from canalzk_exporter.logging_setup import configure_logging
from canalzk_exporter.metrics import render

app = typer.Typer(
    name="canalzk-exporter",
    help="Prometheus exporter for Canal destinations registered in ZooKeeper",
    no_args_is_help=True,
)


def _load(settings: Settings) -> ClusterConfig:
    try:
        return ClusterConfig.load(settings.config_file)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise typer.Exit(1)


def _settings(**overrides: object) -> Settings:
    return Settings(**{k: v for k, v in overrides.items() if v is not None})


@app.command("serve")
def serve(
    config_file: Path = typer.Option(None, "--config", "-c", help="Cluster INI file"),
    listen_host: str = typer.Option(None, "--host", help="Address to listen on"),
    listen_port: int = typer.Option(None, "--port", "-p", help="Port to listen on"),
    zk_timeout: float = typer.Option(
        None, "--zk-timeout", help="Seconds per ZooKeeper connect and read"
    ),
    web_timeout: float = typer.Option(
        None, "--web-timeout", help="Seconds a metrics request may take"
    ),
    log_file: Path = typer.Option(None, "--log-file", help="Append logs to this file"),
    log_level: str = typer.Option(None, "--log-level", help="Logging level"),
) -> None:
    """
    Run the exporter HTTP server.

    Environment variables:
        CANALZK_CONFIG_FILE, CANALZK_LISTEN_HOST, CANALZK_LISTEN_PORT,
        CANALZK_ZK_TIMEOUT, CANALZK_WEB_TIMEOUT, CANALZK_LOG_FILE, CANALZK_LOG_LEVEL,
        CANALZK_NAMESPACE, CANALZK_METRICS_PATH
    """
    settings = _settings(
        config_file=config_file,
        listen_host=listen_host,
        listen_port=listen_port,
        zk_timeout=zk_timeout,
        web_timeout=web_timeout,
        log_file=log_file,
        log_level=log_level,
    )
    configure_logging(settings.log_file, settings.log_level)
    clusters = _load(settings)

    print("Starting Canal ZooKeeper exporter")
    print(f"  Config: {clusters.source} ({len(clusters.clusters())} clusters)")
    print(f"  Listening: http://{settings.listen_host}:{settings.listen_port}{settings.metrics_path}")
    print(f"  ZooKeeper timeout: {settings.zk_timeout}s")
    print(f"  Web timeout: {settings.web_timeout}s")

    logging.getLogger(__name__).info(
        f"Listening on {settings.listen_host}:{settings.listen_port}"
    )
    uvicorn.run(
        create_app(settings, clusters, create_collector(settings.zk_timeout)),
        host=settings.listen_host,
        port=settings.listen_port,
        log_level=settings.log_level.lower(),
    )


@app.command("scrape")
def scrape(
    config_file: Path = typer.Option(None, "--config", "-c", help="Cluster INI file"),
    zk_timeout: float = typer.Option(
        None, "--zk-timeout", help="Seconds per ZooKeeper connect and read"
    ),
) -> None:
    """Collect once and print the metrics exposition to stdout."""
    settings = _settings(config_file=config_file, zk_timeout=zk_timeout)
    configure_logging(None, settings.log_level)
    clusters = _load(settings)

    collector = create_collector(settings.zk_timeout)
    samples = asyncio.run(collector.collect(clusters.clusters()))
    typer.echo(render(samples, settings.namespace).decode("utf-8"), nl=False)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
