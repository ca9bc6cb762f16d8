"""Run the HTTP API with uvicorn."""

import click

from imagerate.settings import settings


@click.command(name='serve')
@click.option('--host', default=None, help='Bind address (defaults to API_HOST)')
@click.option('--port', default=None, type=int, help='Port (defaults to API_PORT)')
@click.option('--workers', default=None, type=int, help='Worker processes (defaults to API_WORKERS)')
@click.option('--reload', is_flag=True, default=False, help='Reload on code changes')
def serve_command(host, port, workers, reload):
    """Serve the image rating API."""
    import uvicorn

    host = host or settings.api_host
    port = port or settings.api_port
    click.echo(f"Server running on http://{host}:{port}")
    uvicorn.run(
        "imagerate.api:app",
        host=host,
        port=port,
        workers=1 if reload else (workers or settings.api_workers),
        reload=reload or settings.debug,
    )
