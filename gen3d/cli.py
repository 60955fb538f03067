"""
Command line front-end
Generate a model from a local image, or run the API server
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import httpx

from gen3d.config import settings
from gen3d.exceptions import ConfigurationError
from gen3d.models.enums import Backend, ClientState
from gen3d.services.adapters import build_adapter
from gen3d.services.generation_client import GenerationClient
from gen3d.services.viewer import ModelViewer

logger = logging.getLogger(__name__)


def print_status(client: GenerationClient) -> None:
    print(f"[{client.state.value}] {client.status_message}")


async def generate(
    image: Optional[Path],
    backend: Backend,
    output: Optional[Path],
    width: int,
    height: int,
) -> int:
    """
    Run one generation and save the loaded model.

    Returns:
        Process exit code
    """
    async with httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout), follow_redirects=True) as http:
        try:
            adapter = build_adapter(backend, http)
        except ConfigurationError as e:
            print(e.user_message, file=sys.stderr)
            return 2

        viewer = ModelViewer(http, width, height)
        client = GenerationClient(
            adapters={backend: adapter},
            viewer=viewer,
            default_backend=backend,
            max_poll_attempts=settings.max_poll_attempts,
            poll_timeout=settings.poll_timeout_seconds,
            on_change=print_status,
        )

        job = await client.request(image)
        if client.state != ClientState.SUCCEEDED or viewer.current_model is None:
            return 1

        if output is None:
            output = Path(f"output_{job.id or 'model'}.glb")
        viewer.export(output)

        print(f"✓ Success! Saved to: {output}")
        print(f"  {viewer.summary()}")
        return 0


def serve(host: str, port: int) -> int:
    import uvicorn

    print(f"Starting server on port {port}...")
    uvicorn.run("gen3d.main:app", host=host, port=port, log_level=settings.log_level.lower())
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="gen3d", description="Image to 3D generation")
    subparsers = parser.add_subparsers(dest="command", required=True)

    gen = subparsers.add_parser("generate", help="Generate a 3D model from an image")
    gen.add_argument("image", nargs="?", type=Path, help="Input image")
    gen.add_argument(
        "--backend",
        choices=[b.value for b in Backend],
        default=settings.default_backend,
        help="Vendor to send the image to",
    )
    gen.add_argument("--output", "-o", type=Path, default=None, help="Where to save the model")
    gen.add_argument("--width", type=int, default=settings.viewer_width)
    gen.add_argument("--height", type=int, default=settings.viewer_height)

    srv = subparsers.add_parser("serve", help="Run the API server")
    srv.add_argument("--host", default="0.0.0.0")
    srv.add_argument("--port", type=int, default=int(os.environ.get("PORT", 8000)))

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "serve":
        return serve(args.host, args.port)

    return asyncio.run(generate(args.image, Backend(args.backend), args.output, args.width, args.height))


if __name__ == "__main__":
    sys.exit(main())
