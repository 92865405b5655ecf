"""Wake-on-LAN (WOL) magic packet validation."""

from ipmipower.utils.mac import MAC_LENGTH

SYNC_STREAM = b"\xff" * 6
MAC_REPETITIONS = 16
# Magic packet: 6x 0xFF + 16x MAC address
MAGIC_PACKET_LENGTH = len(SYNC_STREAM) + MAC_REPETITIONS * MAC_LENGTH  # 102


def is_magic_packet(datagram: bytes, target_mac: bytes) -> bool:
    """
    Check whether a datagram is a WoL magic packet for ``target_mac``.

    Only the first 102 bytes are considered, so a trailing SecureOn password
    is ignored (and not verified). Shorter datagrams never match.

    Args:
        datagram: Raw UDP payload
        target_mac: 6-byte MAC address the packet must address
    """
    if len(target_mac) != MAC_LENGTH or len(datagram) < MAGIC_PACKET_LENGTH:
        return False
    expected = SYNC_STREAM + bytes(target_mac) * MAC_REPETITIONS
    return bytes(datagram[:MAGIC_PACKET_LENGTH]) == expected
