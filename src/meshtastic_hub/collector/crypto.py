"""Channel encryption for Meshtastic packets.

Meshtastic encrypts the `Data` payload of a `MeshPacket` with AES-CTR using
the channel key. The initial counter block is derived from the packet id and
the sender node number, so every packet can be decrypted on its own.

References:
    https://github.com/crypto-smoke/meshtastic-go/blob/develop/radio/aes.go
    https://github.com/pdxlocations/Meshtastic-MQTT-Connect
"""

import struct

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from google.protobuf.message import DecodeError as ProtobufDecodeError
from meshtastic.protobuf import mesh_pb2, portnums_pb2

from meshtastic_hub.collector.errors import DecryptError

NONCE_SIZE = 16

# packet id (uint64 LE) + from node (uint32 LE) + block counter (uint32 LE)
_NONCE_STRUCT = struct.Struct("<QII")


def create_nonce(packet_id: int, from_node: int) -> bytes:
    """Derive the AES-CTR initial counter block for a packet.

    Args:
        packet_id: Packet id (uint32, widened to 64 bits)
        from_node: Sender node number (uint32)

    Returns:
        16 byte nonce; the trailing 32-bit block counter always starts at zero
    """
    return _NONCE_STRUCT.pack(packet_id, from_node, 0)


def _ctr_cipher(key: bytes, packet_id: int, from_node: int) -> Cipher:
    return Cipher(algorithms.AES(key), modes.CTR(create_nonce(packet_id, from_node)))


def encrypt_payload(
    plaintext: bytes, packet_id: int, from_node: int, key: bytes
) -> bytes:
    """Encrypt a serialized Data message the way a Meshtastic node does."""
    encryptor = _ctr_cipher(key, packet_id, from_node).encryptor()
    return encryptor.update(plaintext) + encryptor.finalize()


def decrypt_payload(
    ciphertext: bytes, packet_id: int, from_node: int, key: bytes
) -> bytes:
    """Reverse `encrypt_payload` (CTR mode is symmetric)."""
    decryptor = _ctr_cipher(key, packet_id, from_node).decryptor()
    return decryptor.update(ciphertext) + decryptor.finalize()


def decrypt_data(packet: mesh_pb2.MeshPacket, key: bytes) -> mesh_pb2.Data:
    """Decrypt and parse the encrypted payload of a mesh packet.

    Args:
        packet: Mesh packet carrying `encrypted` bytes
        key: Channel key (16 or 32 bytes)

    Returns:
        The parsed inner Data message

    Raises:
        DecryptError: For any failure (wrong key, corrupted ciphertext,
            plaintext that is not a Data message)
    """
    packet_id = packet.id
    from_node = getattr(packet, "from")

    try:
        plaintext = decrypt_payload(packet.encrypted, packet_id, from_node, key)
    except (ValueError, TypeError, struct.error) as e:
        raise DecryptError(f"Cannot decrypt packet {packet_id}: {e}") from e

    data = mesh_pb2.Data()
    try:
        data.ParseFromString(plaintext)
    except ProtobufDecodeError as e:
        raise DecryptError(f"Decrypted packet {packet_id} is not a Data message") from e

    # A wrong key yields random bytes that occasionally parse; a real Data
    # message always names its port.
    if data.portnum == portnums_pb2.PortNum.UNKNOWN_APP:
        raise DecryptError(f"Decrypted packet {packet_id} has no port number")

    return data
