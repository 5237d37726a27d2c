from network_relay import main as entry
from network_relay.server.errors import SetupError


def test_missing_device_address_exits_nonzero(monkeypatch):
    monkeypatch.setattr(entry, "DEVICE_ADDR", None)
    assert entry.main() == 1


def test_setup_error_exits_nonzero(monkeypatch):
    def fail(self):
        raise SetupError("49152", "bind", OSError("address in use"))

    monkeypatch.setattr(entry, "DEVICE_ADDR", "192.168.10.2")
    monkeypatch.setattr(entry.RelayManager, "run", fail)
    assert entry.main() == 1


def test_interrupt_exits_cleanly(monkeypatch):
    def interrupt(self):
        raise KeyboardInterrupt

    monkeypatch.setattr(entry, "DEVICE_ADDR", "192.168.10.2")
    monkeypatch.setattr(entry.RelayManager, "run", interrupt)
    assert entry.main() == 0


def test_default_topology_is_built_from_config(monkeypatch):
    seen = {}

    def record(self):
        seen["ports"] = [c.port for c in self.port_configs]
        seen["device"] = self.device_addr

    monkeypatch.setattr(entry, "DEVICE_ADDR", "192.168.10.2")
    monkeypatch.setattr(entry.RelayManager, "run", record)
    assert entry.main() == 0
    assert seen["device"] == "192.168.10.2"
    assert seen["ports"] == ["49152", "49156", "49157", "49158", "49172"]
