"""
Tests for UTXO providers and address helpers.
"""

from __future__ import annotations

import hashlib
import json

import httpx
import pytest

from utxohealth.address import (
    BASE58_ALPHABET,
    BECH32_CHARSET,
    BECH32_CONST,
    BECH32M_CONST,
    bech32_hrp_expand,
    bech32_polymod,
    convertbits,
    normalize_address,
    script_kind_for_address,
)
from utxohealth.errors import ProviderError
from utxohealth.providers.esplora import EsploraProvider
from utxohealth.providers.snapshot import SnapshotProvider

ADDRESS = "bc1qar0srrr7xfkvy5l643lydnw9re59gtzzwf5mdq"
API_URL = "https://esplora.test/api"


def _base58check(version: int, payload: bytes) -> str:
    """Encode payload as base58check address."""
    versioned = bytes([version]) + payload
    checksum = hashlib.sha256(hashlib.sha256(versioned).digest()).digest()[:4]
    data = versioned + checksum

    n = int.from_bytes(data, "big")
    result = ""
    while n > 0:
        n, r = divmod(n, 58)
        result = BASE58_ALPHABET[r] + result

    for byte in data:
        if byte == 0:
            result = "1" + result
        else:
            break

    return result


def _segwit(hrp: str, version: int, program: bytes, const: int | None = None) -> str:
    """Encode a witness program, bech32 for v0 and bech32m otherwise unless const is given."""
    if const is None:
        const = BECH32_CONST if version == 0 else BECH32M_CONST
    data = [version] + convertbits(list(program), 8, 5)
    polymod = bech32_polymod(bech32_hrp_expand(hrp) + data + [0] * 6) ^ const
    checksum = [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]
    return hrp + "1" + "".join(BECH32_CHARSET[d] for d in data + checksum)


KEY_HASH = bytes(range(20))
SCRIPT_HASH = bytes(range(32))


class TestScriptKindForAddress:
    @pytest.mark.parametrize(
        "address,expected",
        [
            ("1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa", "p2pkh"),
            (_base58check(0x6F, KEY_HASH), "p2pkh"),
            ("3J98t1WpEZ73CNmQviecrnyiWrnqRhWNLy", "p2sh"),
            (_base58check(0xC4, KEY_HASH), "p2sh"),
            (ADDRESS, "p2wpkh"),
            ("BC1QW508D6QEJXTDG4Y5R3ZARVARY0C5XW7KV8F3T4", "p2wpkh"),
            ("tb1qw508d6qejxtdg4y5r3zarvary0c5xw7kxpjzsx", "p2wpkh"),
            (_segwit("bcrt", 0, KEY_HASH), "p2wpkh"),
            ("bc1qrp33g0q5c5txsp9arysrx4k6zdkfs4nce4xj0gdcccefvpysxf3qccfmv3", "p2wsh"),
            (_segwit("tb", 0, SCRIPT_HASH), "p2wsh"),
            ("bc1p0xlxvlhemja6c4dqv22uapctqupfhlxm9h8z3k2e72q4k9hcz7vqzk5jj0", "p2tr"),
            (_segwit("bcrt", 1, SCRIPT_HASH), "p2tr"),
        ],
    )
    def test_script_kind(self, address: str, expected: str) -> None:
        assert script_kind_for_address(address) == expected

    @pytest.mark.parametrize(
        "address",
        [
            "not-an-address",
            "",
            # One character off from valid addresses
            "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNb",
            "bc1qar0srrr7xfkvy5l643lydnw9re59gtzzwf5mdp",
            # Mixed case
            "bc1qAR0srrr7xfkvy5l643lydnw9re59gtzzwf5mdq",
            # Unknown version byte and wrong payload length
            _base58check(0x30, KEY_HASH),
            _base58check(0x00, KEY_HASH[:19]),
            # Checksum constant does not match the witness version
            _segwit("bc", 0, KEY_HASH, const=BECH32M_CONST),
            _segwit("bc", 1, SCRIPT_HASH, const=BECH32_CONST),
            # Valid encoding on an unknown network
            _segwit("ltc", 0, KEY_HASH),
            # Witness versions without a standard output type
            _segwit("bc", 0, bytes(25)),
            "bc1zw508d6qejxtdg4y5r3zarvaryvaxxpcs",
        ],
    )
    def test_invalid_addresses_are_unknown(self, address: str) -> None:
        assert script_kind_for_address(address) == "unknown"


class TestNormalizeAddress:
    def test_segwit_lowercased(self) -> None:
        assert normalize_address(ADDRESS.upper()) == ADDRESS

    def test_base58_unchanged(self) -> None:
        assert normalize_address("1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa") == (
            "1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa"
        )


class TestSnapshotProvider:
    @pytest.mark.asyncio
    async def test_list_snapshot(self, tmp_path) -> None:
        records = [{"txid": "ab" * 32, "voutIndex": 0, "value": 1000}]
        (tmp_path / "alice.json").write_text(json.dumps(records))

        provider = SnapshotProvider(tmp_path)
        assert await provider.get_utxos("alice") == records

    @pytest.mark.asyncio
    async def test_object_snapshot(self, tmp_path) -> None:
        records = [{"txid": "cd" * 32, "voutIndex": 1, "value": 5}]
        (tmp_path / "bob.json").write_text(json.dumps({"wallet": "bob", "utxos": records}))

        assert await SnapshotProvider(tmp_path).get_utxos("bob") == records

    @pytest.mark.asyncio
    async def test_missing_snapshot(self, tmp_path) -> None:
        with pytest.raises(ProviderError, match="No snapshot"):
            await SnapshotProvider(tmp_path).get_utxos("nobody")

    @pytest.mark.asyncio
    async def test_malformed_json(self, tmp_path) -> None:
        (tmp_path / "broken.json").write_text("{not json")
        with pytest.raises(ProviderError, match="Malformed snapshot"):
            await SnapshotProvider(tmp_path).get_utxos("broken")

    @pytest.mark.asyncio
    async def test_wrong_shape(self, tmp_path) -> None:
        (tmp_path / "odd.json").write_text(json.dumps({"utxos": "none"}))
        with pytest.raises(ProviderError, match="expected a list"):
            await SnapshotProvider(tmp_path).get_utxos("odd")

    @pytest.mark.parametrize("name", ["", "../etc/passwd", ".hidden", "a\\b"])
    def test_invalid_wallet_name(self, tmp_path, name: str) -> None:
        with pytest.raises(ProviderError, match="Invalid wallet name"):
            SnapshotProvider(tmp_path).snapshot_path(name)


def _esplora(handler) -> EsploraProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return EsploraProvider(api_url=API_URL, addresses=[ADDRESS], client=client)


class TestEsploraProvider:
    @pytest.mark.asyncio
    async def test_get_utxos(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/blocks/tip/height":
                return httpx.Response(200, text="800000")
            if request.url.path == f"/api/address/{ADDRESS}/utxo":
                return httpx.Response(
                    200,
                    json=[
                        {
                            "txid": "ab" * 32,
                            "vout": 1,
                            "value": 50_000,
                            "status": {"confirmed": True, "block_height": 799_990},
                        },
                        {
                            "txid": "cd" * 32,
                            "vout": 0,
                            "value": 300,
                            "status": {"confirmed": False},
                        },
                    ],
                )
            return httpx.Response(404)

        provider = _esplora(handler)
        records = await provider.get_utxos("alice")
        await provider.close()

        assert records[0] == {
            "txid": "ab" * 32,
            "voutIndex": 1,
            "value": 50_000,
            "address": ADDRESS,
            "scriptKind": "p2wpkh",
            "confirmations": 11,
            "blockHeight": 799_990,
        }
        assert records[1]["confirmations"] == 0
        assert records[1]["blockHeight"] is None

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        provider = _esplora(lambda request: httpx.Response(500, text="internal error"))
        with pytest.raises(ProviderError, match="failed"):
            await provider.get_utxos("alice")

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        provider = _esplora(handler)
        with pytest.raises(ProviderError, match="Timeout"):
            await provider.get_utxos("alice")

    @pytest.mark.asyncio
    async def test_malformed_body(self) -> None:
        provider = _esplora(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(ProviderError, match="Malformed"):
            await provider.get_utxos("alice")

    @pytest.mark.asyncio
    async def test_malformed_utxo_list(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/height"):
                return httpx.Response(200, text="800000")
            return httpx.Response(200, json={"error": "nope"})

        provider = _esplora(handler)
        with pytest.raises(ProviderError, match="Malformed UTXO list"):
            await provider.get_utxos("alice")

    @pytest.mark.asyncio
    async def test_no_addresses(self) -> None:
        provider = EsploraProvider(api_url=API_URL, addresses=[])
        with pytest.raises(ProviderError, match="No addresses"):
            await provider.get_utxos("alice")
        await provider.close()
