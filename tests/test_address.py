"""
Tests for Stacks / Bitcoin address conversion.
"""

import pytest

from stxbtc_api.address import (
    base58check_decode,
    base58check_encode,
    c32_address,
    c32_address_decode,
    c32_decode,
    c32_encode,
    c32check_encode,
    decode_address,
    remap_version,
    translate,
)
from stxbtc_api.errors import InvalidAddressFormat, InvalidChecksum, UnsupportedVersionByte

STX_MAINNET = "SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7"
BTC_MAINNET = "1FzTxL9Mxnm2fdmnQEArfhzJHevwbvcH6d"

# Hash-only part of the c32 encoding; the last characters depend on the checksum
STX_HASH_PREFIX = "2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKK"

BTC_P2SH_MAINNET = "3J98t1WpEZ73CNmQviecrnyiWrnqRhWNLy"
BTC_P2PKH_TESTNET = "mipcBbFg9gMiCh81Kj8tqqdgoZub1ZJRfn"


class TestC32:
    """Test c32 and c32check encoding."""

    def test_leading_zero_bytes_round_trip(self) -> None:
        """Each leading zero byte should survive as one '0' character."""
        data = b"\x00\x00\x10\xff"
        encoded = c32_encode(data)
        assert encoded.startswith("00")
        assert c32_decode(encoded) == data

    def test_decode_normalizes_ambiguous_characters(self) -> None:
        """O, L and I should read as 0, 1 and 1."""
        assert c32_decode("O1") == c32_decode("01")
        assert c32_decode("L") == c32_decode("1")
        assert c32_decode("i") == c32_decode("1")

    def test_decode_stacks_address(self) -> None:
        """Should decode version and hash160 of a mainnet address."""
        version, hash160 = c32_address_decode(STX_MAINNET)
        assert version == 22
        assert len(hash160) == 20

    def test_encode_matches_decode(self) -> None:
        """Re-encoding a decoded address should give the same text."""
        version, hash160 = c32_address_decode(STX_MAINNET)
        assert c32_address(version, hash160) == STX_MAINNET

    def test_version_out_of_range(self) -> None:
        """Version bytes must fit in one c32 character."""
        with pytest.raises(UnsupportedVersionByte):
            c32check_encode(32, b"\x00" * 20)

    def test_corrupted_checksum(self) -> None:
        """A changed trailing character should fail the checksum."""
        corrupted = STX_MAINNET[:-1] + ("8" if STX_MAINNET[-1] != "8" else "9")
        with pytest.raises(InvalidChecksum):
            c32_address_decode(corrupted)

    def test_missing_s_prefix(self) -> None:
        """Stacks addresses must start with S."""
        with pytest.raises(InvalidAddressFormat):
            c32_address_decode(STX_MAINNET[1:])


class TestBase58Check:
    """Test base58check encoding."""

    def test_decode_mainnet_p2pkh(self) -> None:
        """Test decoding mainnet P2PKH address."""
        version, payload = base58check_decode("1BvBMSEYstWetqTFn5Au4m4GFg7xJaNVN2")
        assert version == 0x00
        assert len(payload) == 20

    def test_decode_testnet_p2pkh(self) -> None:
        """Test decoding testnet P2PKH address."""
        version, payload = base58check_decode(BTC_P2PKH_TESTNET)
        assert version == 0x6F
        assert len(payload) == 20

    def test_encode_matches_decode(self) -> None:
        """Re-encoding a decoded address should give the same text."""
        version, payload = base58check_decode(BTC_P2SH_MAINNET)
        assert base58check_encode(version, payload) == BTC_P2SH_MAINNET

    def test_corrupted_checksum(self) -> None:
        """A changed trailing character should fail the checksum."""
        corrupted = BTC_MAINNET[:-1] + ("e" if BTC_MAINNET[-1] != "e" else "f")
        with pytest.raises(InvalidChecksum):
            base58check_decode(corrupted)


class TestDecodeAddress:
    """Test address classification."""

    def test_stacks_address(self) -> None:
        decoded = decode_address(STX_MAINNET)
        assert decoded.family == "stacks"
        assert decoded.network == "mainnet"

    def test_bitcoin_address(self) -> None:
        decoded = decode_address(BTC_P2PKH_TESTNET)
        assert decoded.family == "bitcoin"
        assert decoded.stacks_version == 26
        assert decoded.network == "testnet"

    def test_segwit_address_rejected(self) -> None:
        """Segwit addresses carry no hash160 version byte."""
        with pytest.raises(InvalidAddressFormat):
            decode_address("bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4")

    def test_garbage_rejected(self) -> None:
        with pytest.raises(InvalidAddressFormat):
            decode_address("hello world")


class TestTranslate:
    """Test cross-chain translation and network remapping."""

    def test_stacks_to_bitcoin(self) -> None:
        info = translate(STX_MAINNET)
        assert info.bitcoin == BTC_MAINNET
        assert info.stacks == STX_MAINNET
        assert info.network == "mainnet"

    def test_bitcoin_to_stacks(self) -> None:
        info = translate(BTC_MAINNET)
        assert info.stacks == STX_MAINNET
        assert info.bitcoin == BTC_MAINNET

    def test_round_trip(self) -> None:
        """Translating the Bitcoin side back should give the same Stacks address."""
        for addr in (STX_MAINNET, BTC_P2SH_MAINNET, BTC_P2PKH_TESTNET):
            info = translate(addr)
            assert translate(info.bitcoin).stacks == info.stacks

    def test_remap_to_testnet(self) -> None:
        """The hash160 stays, the version moves to testnet p2pkh."""
        info = translate(STX_MAINNET, "testnet")
        assert info.network == "testnet"
        assert info.stacks.startswith("ST" + STX_HASH_PREFIX)
        assert info.bitcoin[0] in "mn"
        assert c32_address_decode(info.stacks)[1] == c32_address_decode(STX_MAINNET)[1]

    def test_remap_back_to_mainnet(self) -> None:
        testnet = translate(STX_MAINNET, "testnet")
        assert translate(testnet.stacks, "mainnet").stacks == STX_MAINNET

    def test_remap_same_network_is_noop(self) -> None:
        assert translate(STX_MAINNET, "mainnet") == translate(STX_MAINNET)

    def test_remap_is_idempotent(self) -> None:
        once = translate(BTC_MAINNET, "testnet")
        twice = translate(once.stacks, "testnet")
        assert once == twice

    def test_p2sh_keeps_hash_type(self) -> None:
        """A p2sh address stays p2sh on both networks."""
        mainnet = translate(BTC_P2SH_MAINNET)
        assert mainnet.stacks.startswith("SM")

        testnet = translate(BTC_P2SH_MAINNET, "testnet")
        assert testnet.stacks.startswith("SN")
        assert testnet.bitcoin.startswith("2")

        back = translate(testnet.stacks, "mainnet")
        assert back.stacks == mainnet.stacks
        assert back.bitcoin == BTC_P2SH_MAINNET

    def test_unknown_version_passes_through(self) -> None:
        """Versions outside the table convert unchanged and report 'other'."""
        _, hash160 = c32_address_decode(STX_MAINNET)
        addr = c32_address(1, hash160)
        info = translate(addr)
        assert info.network == "other"
        assert base58check_decode(info.bitcoin) == (1, hash160)

    def test_unknown_version_cannot_remap(self) -> None:
        _, hash160 = c32_address_decode(STX_MAINNET)
        with pytest.raises(UnsupportedVersionByte):
            translate(c32_address(1, hash160), "testnet")

    def test_remap_version_table(self) -> None:
        assert remap_version(22, "testnet") == 26
        assert remap_version(20, "testnet") == 21
        assert remap_version(26, "mainnet") == 22
        assert remap_version(21, "mainnet") == 20

    def test_to_dict(self) -> None:
        assert translate(STX_MAINNET).to_dict() == {
            "stacks": STX_MAINNET,
            "bitcoin": BTC_MAINNET,
            "network": "mainnet",
        }
