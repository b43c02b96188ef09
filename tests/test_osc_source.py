"""
OSCMeasurementSource tests
Handler checks call the dispatcher target directly; one test goes over UDP
"""

import logging

from pythonosc import udp_client

from fakes import wait_for
from tone_meter.osc_source import VALUE_ADDRESS, OSCMeasurementSource


class TestHandler:

    def setup_method(self):
        self.values = []
        self.source = OSCMeasurementSource(self.values.append, port=0)

    def test_float_value(self):
        self.source.handle_value(VALUE_ADDRESS, 440.0)
        assert self.values == [440.0]

    def test_int_and_string_coerced(self):
        self.source.handle_value(VALUE_ADDRESS, 3)
        self.source.handle_value(VALUE_ADDRESS, "2.5")
        assert self.values == [3.0, 2.5]

    def test_invalid_dropped(self, caplog):
        with caplog.at_level(logging.WARNING):
            self.source.handle_value(VALUE_ADDRESS, "loud")
            self.source.handle_value(VALUE_ADDRESS)
        assert self.values == []
        assert self.source.messages_received == 2
        assert self.source.messages_dropped == 2
        assert "Invalid value" in caplog.text

    def test_dispatcher_maps_address(self):
        disp = self.source.setup_dispatcher()
        handlers = list(disp.handlers_for_address(VALUE_ADDRESS))
        assert len(handlers) == 1


class TestServer:

    def test_udp_round_trip(self):
        values = []
        source = OSCMeasurementSource(values.append, host="127.0.0.1", port=0)
        source.start()
        try:
            assert source.port != 0
            client = udp_client.SimpleUDPClient("127.0.0.1", source.port)
            client.send_message(VALUE_ADDRESS, 1234.5)
            assert wait_for(lambda: values == [1234.5])
        finally:
            source.stop()
        assert source.server is None
