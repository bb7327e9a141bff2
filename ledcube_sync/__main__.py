"""
Main entry point for LED Cube Sync.

Usage:
    python -m ledcube_sync [--config CONFIG_PATH] [--port PORT] [--simulator] COMMAND

Commands:
    serve       Run the HTTP API
    probe       Check that a cube answers
    download    Write the cube's animations as JSON (stdout or --output)
    upload      Send a JSON animation set (--input) to the cube
    clear       Erase all animations on the cube
    ports       List serial ports
    scan        Probe every serial port for a cube
"""

import argparse
import json
import logging
import sys
from typing import Callable, Optional

import uvicorn
from pydantic import ValidationError

from ledcube_sync import __version__
from ledcube_sync.animation.models import AnimationSet
from ledcube_sync.config.loader import ConfigurationError, describe_validation_error, load_config
from ledcube_sync.config.models import AppConfig
from ledcube_sync.cube.controller import CubeController
from ledcube_sync.protocol.interface import Transport
from ledcube_sync.protocol.port_scanner import find_first_cube, list_available_ports, scan_for_cube
from ledcube_sync.protocol.serial_transport import SerialTransport
from ledcube_sync.simulator.mock_cube import MockCubeDevice
from ledcube_sync.utils.exceptions import CubeException
from ledcube_sync.utils.logging_setup import setup_logging


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ledcube_sync",
        description="Download and upload LED cube animations over a serial link",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config.json",
        help="Path to configuration file (default: config.json)"
    )
    parser.add_argument("--port", type=str, help="Serial port (overrides config)")
    parser.add_argument(
        "--simulator",
        action="store_true",
        help="Talk to the built-in simulated cube instead of hardware"
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("serve", help="Run the HTTP API")
    commands.add_parser("probe", help="Check that a cube answers")
    download = commands.add_parser("download", help="Download all animations as JSON")
    download.add_argument("--output", "-o", type=str, help="Write JSON here instead of stdout")
    upload = commands.add_parser("upload", help="Upload a JSON animation set")
    upload.add_argument("--input", "-i", type=str, required=True, help="JSON file to send")
    commands.add_parser("clear", help="Erase all animations on the cube")
    commands.add_parser("ports", help="List serial ports")
    commands.add_parser("scan", help="Probe every serial port for a cube")
    return parser


def resolve_transport_factory(config: AppConfig) -> Optional[Callable[[], Transport]]:
    """
    Decide which channel to talk to.

    Priority: simulator, explicit port, auto-discovery.

    Returns:
        Factory for unopened transports, or None if no cube can be located.
    """
    if config.simulator.enabled:
        logger.info("Using SIMULATOR mode")
        simulator = MockCubeDevice(config.simulator)
        return lambda: simulator

    serial_config = config.serial
    if not serial_config.port and serial_config.auto_discover:
        logger.info("Auto-discovering LED cube...")
        available_ports = list_available_ports()
        if available_ports:
            logger.info(f"Available serial ports: {', '.join(p.name for p in available_ports)}")
        else:
            logger.warning("No serial ports found on system")

        cube = find_first_cube(serial_config)
        if cube is None:
            return None
        serial_config = serial_config.model_copy(update={"port": cube.port})

    if not serial_config.port:
        logger.error("No serial port specified and auto-discover is disabled")
        return None

    logger.info(f"Using serial port {serial_config.port}")
    return lambda: SerialTransport(serial_config)


def run_serve(config: AppConfig, factory: Callable[[], Transport]) -> int:
    from ledcube_sync.api.app import create_app
    from ledcube_sync.api.routes import router as cube_router
    from ledcube_sync.simulator.web_api import router as simulator_router

    cube = CubeController(factory, config.serial)

    app = create_app(config)
    app.state.cube = cube
    app.state.simulator = None
    app.include_router(cube_router)

    if config.simulator.enabled:
        app.state.simulator = factory()
        app.include_router(simulator_router)

    try:
        cube.connect()
    except CubeException as e:
        logger.error(f"Could not open cube session: {e} (use PUT /api/v1/cube/connect to retry)")

    logger.info(f"Starting API server on {config.server.ip}:{config.server.port}")
    try:
        uvicorn.run(
            app,
            host=config.server.ip,
            port=config.server.port,
            log_level=config.logging.level.lower(),
            access_log=False
        )
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        cube.disconnect()
        logger.info("Shutdown complete")
    return 0


def run_transfer(args: argparse.Namespace, config: AppConfig, factory: Callable[[], Transport]) -> int:
    animations = None
    if args.command == "upload":
        try:
            with open(args.input, "r", encoding="utf-8") as f:
                animations = AnimationSet.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Cannot read animation set from {args.input}: {e}")
            return 1
        except ValidationError as e:
            logger.error(describe_validation_error(e, f"{args.input} is not a valid animation set:"))
            return 1

    cube = CubeController(factory, config.serial)
    try:
        cube.connect()
    except CubeException as e:
        logger.error(f"Could not open cube session: {e}")
        return 1

    try:
        if args.command == "probe":
            ok = cube.probe()
            print("Cube present" if ok else "No cube")
            return 0 if ok else 1

        if args.command == "clear":
            return 0 if cube.clear() else 1

        if args.command == "upload":
            ok = cube.upload(animations)
            if ok:
                logger.info(f"Uploaded {len(animations)} animation(s), {animations.frame_total} frame(s)")
            return 0 if ok else 1

        result = cube.download()
        if result is None:
            return 1
        text = json.dumps(result.model_dump(mode="json"), indent=2)
        if args.output:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(text)
            logger.info(f"Wrote {len(result)} animation(s) to {args.output}")
        else:
            print(text)
        return 0
    finally:
        cube.disconnect()


def main(argv=None) -> int:
    """Main application entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config, create_missing=args.command == "serve")
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    if args.port:
        config.serial.port = args.port
    if args.simulator:
        config.simulator.enabled = True
    if args.command != "serve":
        config.logging.stderr = True

    setup_logging(config.logging)
    logger.info(f"LED Cube Sync v{__version__}")

    if args.command == "ports":
        for port in list_available_ports():
            print(f"{port.name}\t{port.description}\t{port.hardware_id}")
        return 0

    if args.command == "scan":
        cubes = scan_for_cube(config.serial)
        for cube in cubes:
            print(f"{cube.port}\t{cube.description}")
        return 0 if cubes else 1

    factory = resolve_transport_factory(config)
    if factory is None:
        logger.error("No LED cube found. Connect the cube or set 'serial.port' in the config file")
        return 1

    if args.command == "serve":
        return run_serve(config, factory)
    return run_transfer(args, config, factory)


if __name__ == "__main__":
    sys.exit(main())
