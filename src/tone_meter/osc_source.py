"""
OSC measurement source
Listens for /tone/value <float> and forwards each value to a consumer
Example: oscsend localhost 5006 /tone/value f 440000000
"""

import logging
import threading
from typing import Callable, Optional

from pythonosc import dispatcher
from pythonosc.osc_server import ThreadingOSCUDPServer

from .config import ExecutionConfig, OSC_HOST, OSC_PORT

logger = logging.getLogger(__name__)

VALUE_ADDRESS = "/tone/value"


class OSCMeasurementSource:
    """UDP OSC server on its own thread; values are pushed, never polled"""

    def __init__(self, consumer: Callable[[float], None],
                 host: str = OSC_HOST, port: int = OSC_PORT,
                 execution: Optional[ExecutionConfig] = None):
        self.consumer = consumer
        self.host = host
        self.port = port
        self.execution = execution or ExecutionConfig()

        self.server: Optional[ThreadingOSCUDPServer] = None
        self.thread: Optional[threading.Thread] = None

        self.messages_received = 0
        self.messages_dropped = 0

    def setup_dispatcher(self) -> dispatcher.Dispatcher:
        disp = dispatcher.Dispatcher()
        disp.map(VALUE_ADDRESS, self.handle_value)
        return disp

    def handle_value(self, address, *args):
        """Forward the first argument as a float; drop anything else"""
        self.messages_received += 1
        if not args:
            self.messages_dropped += 1
            logger.warning("[OSC] %s without a value", address)
            return

        try:
            value = float(args[0])
        except (ValueError, TypeError):
            self.messages_dropped += 1
            logger.warning("[OSC] Invalid value on %s: %r", address, args[0])
            return

        self.consumer(value)

    def start(self) -> None:
        self.server = ThreadingOSCUDPServer((self.host, self.port), self.setup_dispatcher())
        self.thread = threading.Thread(
            target=self.server.serve_forever,
            name=self.execution.thread_name("osc"),
            daemon=self.execution.daemon,
        )
        self.thread.start()
        # Port 0 binds an ephemeral port; report the real one
        self.port = self.server.server_address[1]
        logger.info("[OSC] Listening on %s:%d%s", self.host, self.port, VALUE_ADDRESS)

    def stop(self) -> None:
        if self.server:
            self.server.shutdown()
            self.server.server_close()
            if self.thread and self.thread.is_alive():
                self.thread.join(timeout=1.0)
            self.server = None
