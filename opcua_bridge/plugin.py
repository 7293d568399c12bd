"""
OPC UA Bridge Entry Point.

This module provides the service interface used by a device framework
that loads the bridge from a configuration file:
- init(config_path, logging_client): Load configuration and build the driver
- start_loop(on_async_values): Run the driver on a background event loop
- stop_loop(): Tear down every device session
- cleanup(): Release resources

This is a thin entry point that delegates to OpcuaDriver.
"""

import asyncio
import threading
from typing import Callable, Optional

from .config import load_config
from .driver import OpcuaDriver
from .opcua_logging import get_logger, log_error, log_info, log_warn
from .types import AsyncValues

# Plugin state
_config: Optional[dict] = None
_driver: Optional[OpcuaDriver] = None
_loop_thread: Optional[threading.Thread] = None
_stop_event = threading.Event()


def init(config_path: str, logging_client=None) -> bool:
    """
    Initialize the bridge.

    Args:
        config_path: Path to the service JSON configuration
        logging_client: Optional framework logging client

    Returns:
        True if initialization successful, False otherwise
    """
    global _config, _driver

    if logging_client is not None:
        get_logger().initialize(logging_client)
        log_info("Logging initialized with framework client")

    log_info("OPC UA bridge initializing...")

    _config = load_config(config_path)
    if not _config:
        log_error("Failed to load configuration")
        return False

    try:
        _driver = OpcuaDriver.from_config(_config)
    except Exception as e:
        log_error(f"Initialization error: {e}")
        return False

    log_info("OPC UA bridge initialized successfully")
    return True


def start_loop(on_async_values: Optional[Callable[[AsyncValues], None]] = None) -> bool:
    """
    Start the driver on a background thread.

    Args:
        on_async_values: Called for every batch of subscription readings

    Returns:
        True if the thread started, False otherwise
    """
    global _loop_thread

    if not _driver:
        log_error("Bridge not initialized")
        return False

    _stop_event.clear()
    _loop_thread = threading.Thread(
        target=_run_driver_thread,
        args=(on_async_values,),
        daemon=True,
        name="opcua-bridge"
    )
    _loop_thread.start()

    log_info("OPC UA bridge thread started")
    return True


def stop_loop() -> bool:
    """
    Stop the driver thread.

    Returns:
        True if stopped, False if the thread did not exit in time
    """
    global _loop_thread

    _stop_event.set()

    if _loop_thread and _loop_thread.is_alive():
        _loop_thread.join(timeout=5.0)
        if _loop_thread.is_alive():
            log_warn("Bridge thread did not stop within timeout")
            return False

    _loop_thread = None
    log_info("OPC UA bridge stopped")
    return True


def cleanup() -> bool:
    """Stop the driver and clear references."""
    global _config, _driver

    stopped = stop_loop()
    _config = None
    _driver = None
    log_info("Cleanup completed")
    return stopped


def _run_driver_thread(on_async_values: Optional[Callable[[AsyncValues], None]]) -> None:
    """Runs the driver in a new event loop until stop_loop is called."""

    async def _run_until_stopped():
        driver = _driver
        queue = driver.device_service.async_values()

        async def _forward_values():
            while True:
                values = await queue.get()
                if on_async_values is not None:
                    on_async_values(values)
                else:
                    for value in values.command_values:
                        log_info(f"{values.device_name}/{value.resource_name} = {value.value}")

        device_names = [device["name"] for device in _config.get("devices", [])]
        await driver.start(device_names)
        forward_task = asyncio.create_task(_forward_values())

        try:
            while not _stop_event.is_set():
                await asyncio.sleep(0.1)
        finally:
            forward_task.cancel()
            try:
                await forward_task
            except asyncio.CancelledError:
                pass
            await driver.stop()

    try:
        asyncio.run(_run_until_stopped())
    except Exception as e:
        log_error(f"Bridge thread error: {e}")
