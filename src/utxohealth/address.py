"""
Address decoding utilities.

Providers that only report addresses (no scriptPubKey type) rely on these to
derive the output script kind. Addresses are fully decoded: checksums are
verified, so anything that merely looks like an address is "unknown".
"""

from __future__ import annotations

import hashlib

# Human-readable parts of segwit addresses per network
SEGWIT_HRPS = ("bc", "tb", "bcrt")

BECH32_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
BECH32_CONST = 1
BECH32M_CONST = 0x2BC830A3

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

# Version byte -> script kind (mainnet, testnet/regtest)
BASE58_VERSIONS = {
    0x00: "p2pkh",
    0x05: "p2sh",
    0x6F: "p2pkh",
    0xC4: "p2sh",
}

UNKNOWN_SCRIPT_KIND = "unknown"


def bech32_polymod(values: list[int]) -> int:
    """Bech32 checksum polymod"""
    gen = [0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3]
    chk = 1
    for v in values:
        b = chk >> 25
        chk = (chk & 0x1FFFFFF) << 5 ^ v
        for i in range(5):
            chk ^= gen[i] if ((b >> i) & 1) else 0
    return chk


def bech32_hrp_expand(hrp: str) -> list[int]:
    """Expand HRP for bech32"""
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def convertbits(data: list[int], frombits: int, tobits: int, pad: bool = True) -> list[int]:
    """Convert between bit groups"""
    acc = 0
    bits = 0
    ret = []
    maxv = (1 << tobits) - 1
    max_acc = (1 << (frombits + tobits - 1)) - 1

    for value in data:
        acc = ((acc << frombits) | value) & max_acc
        bits += frombits
        while bits >= tobits:
            bits -= tobits
            ret.append((acc >> bits) & maxv)

    if pad:
        if bits:
            ret.append((acc << (tobits - bits)) & maxv)
    elif bits >= frombits or ((acc << (tobits - bits)) & maxv):
        raise ValueError("Invalid bits")

    return ret


def decode_segwit_address(address: str) -> tuple[int, bytes] | None:
    """
    Decode a bech32 (v0) or bech32m (v1+) segwit address.

    Returns:
        (witness version, witness program), or None if the address is not a
        valid segwit address on a known network
    """
    if address.lower() != address and address.upper() != address:
        return None
    address = address.lower()

    pos = address.rfind("1")
    hrp, payload = address[:pos], address[pos + 1 :]
    if pos < 1 or hrp not in SEGWIT_HRPS or len(payload) < 7 or len(address) > 90:
        return None
    if any(c not in BECH32_CHARSET for c in payload):
        return None

    data = [BECH32_CHARSET.index(c) for c in payload]
    version = data[0]
    const = BECH32_CONST if version == 0 else BECH32M_CONST
    if bech32_polymod(bech32_hrp_expand(hrp) + data) != const:
        return None

    try:
        program = bytes(convertbits(data[1:-6], 5, 8, pad=False))
    except ValueError:
        return None

    if version > 16 or not 2 <= len(program) <= 40:
        return None
    if version == 0 and len(program) not in (20, 32):
        return None
    return version, program


def decode_base58check(address: str) -> bytes | None:
    """Decode a base58check string, returning the versioned payload or None."""
    if not address or any(c not in BASE58_ALPHABET for c in address):
        return None

    n = 0
    for c in address:
        n = n * 58 + BASE58_ALPHABET.index(c)
    body = n.to_bytes((n.bit_length() + 7) // 8, "big")
    leading_zeros = len(address) - len(address.lstrip("1"))
    data = b"\x00" * leading_zeros + body

    if len(data) < 5:
        return None
    payload, checksum = data[:-4], data[-4:]
    if hashlib.sha256(hashlib.sha256(payload).digest()).digest()[:4] != checksum:
        return None
    return payload


def script_kind_for_address(address: str) -> str:
    """
    Derive the output script kind from an address.

    Returns "unknown" for anything that does not decode to a standard
    P2PKH, P2SH, P2WPKH, P2WSH or P2TR output.
    """
    segwit = decode_segwit_address(address)
    if segwit is not None:
        version, program = segwit
        if version == 0:
            return "p2wpkh" if len(program) == 20 else "p2wsh"
        if version == 1 and len(program) == 32:
            return "p2tr"
        return UNKNOWN_SCRIPT_KIND

    payload = decode_base58check(address)
    if payload is not None and len(payload) == 21:
        return BASE58_VERSIONS.get(payload[0], UNKNOWN_SCRIPT_KIND)
    return UNKNOWN_SCRIPT_KIND


def normalize_address(address: str) -> str:
    """
    Canonical form used to compare addresses.

    Segwit addresses are case-insensitive and compared lower-cased; base58
    addresses are case-sensitive and kept as-is.
    """
    lowered = address.lower()
    if any(lowered.startswith(f"{hrp}1") for hrp in SEGWIT_HRPS):
        return lowered
    return address
