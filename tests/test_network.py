import struct

import pytest

from kernkit.elf import PAGE_SIZE
from kernkit.network import (
    BROADCAST_ADDRESS,
    FRAME_HEADER_SIZE,
    LOOPBACK_ADDRESS,
    MAX_MTU,
    NET_DOESNT_EXIST,
    NET_ERROR,
    Network,
    NetworkError,
    NetworkInterface,
)
from kernkit.protocols import PROTOCOL_POP, ProtocolRegistry


class _Device:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def __call__(self, frame, destination):
        if self.fail:
            raise OSError("device failure")
        self.sent.append((frame, destination))


def _make(mtus=(1500, 1000), fail=()):
    devices = [_Device(fail=i in fail) for i in range(len(mtus))]
    interfaces = [
        NetworkInterface(address=0x100 + i, mtu=mtu, transmit=dev)
        for i, (mtu, dev) in enumerate(zip(mtus, devices))
    ]
    received = []
    registry = ProtocolRegistry()
    registry.register(PROTOCOL_POP, lambda *frame: received.append(frame) or True)
    return Network(interfaces, registry), devices, received


def test_special_addresses_by_wire_value():
    net, _, _ = _make()
    assert net.get_mtu(0xFFFFFFFF) == net.get_mtu(BROADCAST_ADDRESS)
    assert net.get_mtu(0) == PAGE_SIZE - FRAME_HEADER_SIZE
    empty = Network([], ProtocolRegistry())
    assert empty.get_mtu(0xFFFFFFFF) == 4097 - FRAME_HEADER_SIZE
    assert MAX_MTU + 1 == 4097


def test_source_address_by_index():
    net, _, _ = _make()
    assert net.get_source_address(1) == 0x101
    assert net.get_source_address(-1) == 0
    assert net.get_source_address(2) == 0


def test_mtu_queries():
    net, _, _ = _make()
    assert net.get_mtu(BROADCAST_ADDRESS) == 1000 - FRAME_HEADER_SIZE
    assert net.get_mtu(0x100) == 1500 - FRAME_HEADER_SIZE
    assert net.get_mtu(LOOPBACK_ADDRESS) == PAGE_SIZE - FRAME_HEADER_SIZE
    assert net.get_mtu(0x999) == 0


def test_broadcast_mtu_without_interfaces():
    net = Network([], ProtocolRegistry())
    assert net.get_mtu(BROADCAST_ADDRESS) == MAX_MTU + 1 - FRAME_HEADER_SIZE


def test_mtu_above_page_size_is_rejected():
    with pytest.raises(ValueError):
        Network([NetworkInterface(1, PAGE_SIZE + 1, _Device())], ProtocolRegistry())


def test_frame_wire_format():
    net, devices, _ = _make()
    net.send(0x100, 0x200, PROTOCOL_POP, b"hi")
    frame, destination = devices[0].sent[0]
    assert destination == 0x200
    assert frame == struct.pack(">III", 0x200, 0x100, PROTOCOL_POP) + b"hi"
    assert devices[1].sent == []


def test_broadcast_source_uses_every_interface():
    net, devices, _ = _make()
    net.send(BROADCAST_ADDRESS, 0x200, PROTOCOL_POP, b"data")
    assert [len(d.sent) for d in devices] == [1, 1]


def test_failed_interface_reports_error_but_others_send():
    net, devices, _ = _make(fail={0})
    with pytest.raises(NetworkError) as info:
        net.send(BROADCAST_ADDRESS, 0x200, PROTOCOL_POP, b"data")
    assert info.value.code == NET_ERROR
    assert len(devices[1].sent) == 1


def test_unknown_source_interface():
    net, _, _ = _make()
    with pytest.raises(NetworkError) as info:
        net.send(0x999, 0x200, PROTOCOL_POP, b"x")
    assert info.value.code == NET_DOESNT_EXIST


def test_loopback_delivers_locally_with_loopback_source():
    net, devices, received = _make()
    net.send(BROADCAST_ADDRESS, LOOPBACK_ADDRESS, PROTOCOL_POP, b"loop")
    assert received == [(LOOPBACK_ADDRESS, LOOPBACK_ADDRESS, PROTOCOL_POP, b"loop")]
    assert all(d.sent == [] for d in devices)


def test_loopback_unknown_protocol_fails():
    net, _, _ = _make()
    with pytest.raises(NetworkError) as info:
        net.send(BROADCAST_ADDRESS, LOOPBACK_ADDRESS, 77, b"x")
    assert info.value.code == NET_ERROR


@pytest.mark.parametrize("size", [0, PAGE_SIZE - FRAME_HEADER_SIZE + 1])
def test_payload_size_limits(size):
    net, _, _ = _make()
    with pytest.raises(ValueError):
        net.send(0x100, 0x200, PROTOCOL_POP, bytes(size))


def test_largest_payload_is_accepted():
    net, devices, _ = _make()
    payload = bytes(PAGE_SIZE - FRAME_HEADER_SIZE)
    net.send(0x100, 0x200, PROTOCOL_POP, payload)
    assert len(devices[0].sent[0][0]) == PAGE_SIZE


def test_receive_frame_dispatch():
    net, _, received = _make()
    assert net.receive_frame(0x300, 0x100, PROTOCOL_POP, b"in") is True
    assert received == [(0x300, 0x100, PROTOCOL_POP, b"in")]
    assert net.receive_frame(0x300, 0x100, 42, b"in") is False