"""Tests for the ECVRF prover and verifier.

Tests cover:
1. Key construction and hiding
2. Determinism and output shape
3. Verification of honest proofs
4. Rejection of tampered proofs, outputs, inputs and keys
"""

from __future__ import annotations

import dataclasses

import pytest

from traitproof.crypto.curve import Point, Q, scalar_to_bytes
from traitproof.crypto.vrf import (
    OUTPUT_SIZE,
    PROOF_SIZE,
    VRFProof,
    VRFSecretKey,
    proof_to_hash,
    prove,
    verify,
    verify_and_hash,
    verify_output,
)
from traitproof.exceptions import (
    ChallengeMismatchError,
    MalformedBundleError,
    NonCanonicalScalarError,
    OutputMismatchError,
    RejectReason,
)

ALPHA = b"CryptoKitties:12345"


def _flip(data: bytes, byte: int, bit: int) -> bytes:
    out = bytearray(data)
    out[byte] ^= 1 << bit
    return bytes(out)


@pytest.fixture(scope="module")
def output(vrf_key):
    return prove(vrf_key, ALPHA)


class TestKeys:
    """Test VRFSecretKey."""

    def test_from_seed_requires_32_bytes(self):
        with pytest.raises(ValueError):
            VRFSecretKey.from_seed(bytes(31))

    def test_scalar_range(self):
        with pytest.raises(ValueError):
            VRFSecretKey.from_scalar(0)
        with pytest.raises(ValueError):
            VRFSecretKey.from_scalar(Q)

    def test_from_scalar_is_usable(self):
        key = VRFSecretKey.from_scalar(123456789)
        out = prove(key, ALPHA)
        assert verify(key.public_key_bytes, ALPHA, out.beta, out.proof).valid

    def test_repr_hides_secret(self, vrf_key):
        text = repr(vrf_key)
        assert str(vrf_key.scalar) not in text
        assert vrf_key.nonce_prefix.hex() not in text

    def test_generate_gives_distinct_keys(self):
        assert VRFSecretKey.generate().public_key_bytes != VRFSecretKey.generate().public_key_bytes


class TestProve:
    """Test proof generation."""

    def test_deterministic(self, vrf_key, output):
        again = prove(vrf_key, ALPHA)
        assert again.beta == output.beta
        assert again.proof.to_bytes() == output.proof.to_bytes()

    def test_output_shape(self, output):
        assert len(output.beta) == OUTPUT_SIZE
        assert len(output.proof.to_bytes()) == PROOF_SIZE
        assert 0 <= output.beta_as_int() < 1 << 512

    def test_different_alpha_different_output(self, vrf_key, output):
        assert prove(vrf_key, b"CryptoKitties:12346").beta != output.beta

    def test_proof_to_hash(self, output):
        assert proof_to_hash(output.proof) == output.beta

    def test_proof_bytes(self, output):
        assert VRFProof.from_bytes(output.proof.to_bytes()) == output.proof
        assert VRFProof.from_dict(output.proof.to_dict()) == output.proof

    def test_proof_from_short_bytes(self):
        with pytest.raises(MalformedBundleError):
            VRFProof.from_bytes(bytes(79))


class TestVerify:
    """Test proof verification."""

    def test_accepts_valid(self, vrf_key, output):
        result = verify(vrf_key.public_key_bytes, ALPHA, output.beta, output.proof)
        assert result.valid
        assert result
        assert result.reason is None

    def test_verify_and_hash_returns_beta(self, vrf_key, output):
        assert verify_and_hash(vrf_key.public_key_bytes, ALPHA, output.proof) == output.beta

    def test_rejects_wrong_alpha(self, vrf_key, output):
        result = verify(vrf_key.public_key_bytes, b"CryptoKitties:12346", output.beta, output.proof)
        assert not result.valid
        assert result.reason == RejectReason.CHALLENGE_MISMATCH

    def test_rejects_wrong_beta(self, vrf_key, output):
        with pytest.raises(OutputMismatchError):
            verify_output(vrf_key.public_key_bytes, ALPHA, _flip(output.beta, 0, 0), output.proof)

    def test_rejects_other_public_key(self, output):
        other = VRFSecretKey.from_seed(b"\x01" * 32)
        result = verify(other.public_key_bytes, ALPHA, output.beta, output.proof)
        assert result.reason == RejectReason.CHALLENGE_MISMATCH

    def test_rejects_flipped_challenge_bits(self, vrf_key, output):
        for byte, bit in ((0, 0), (7, 3), (15, 7)):
            proof = dataclasses.replace(output.proof, c=_flip(output.proof.c, byte, bit))
            with pytest.raises(ChallengeMismatchError):
                verify_and_hash(vrf_key.public_key_bytes, ALPHA, proof)

    def test_rejects_flipped_response_bits(self, vrf_key, output):
        for byte, bit in ((0, 0), (13, 5), (29, 1)):
            proof = dataclasses.replace(output.proof, s=_flip(output.proof.s, byte, bit))
            with pytest.raises(ChallengeMismatchError):
                verify_and_hash(vrf_key.public_key_bytes, ALPHA, proof)

    def test_rejects_flipped_gamma_bits(self, vrf_key, output):
        for byte, bit in ((0, 0), (16, 4), (31, 6)):
            proof = dataclasses.replace(output.proof, gamma=_flip(output.proof.gamma, byte, bit))
            result = verify(vrf_key.public_key_bytes, ALPHA, output.beta, proof)
            assert result.reason in (RejectReason.INVALID_CURVE_POINT, RejectReason.CHALLENGE_MISMATCH)

    def test_rejects_unreduced_scalar(self, vrf_key, output):
        proof = dataclasses.replace(output.proof, s=scalar_to_bytes(Q))
        with pytest.raises(NonCanonicalScalarError):
            verify_and_hash(vrf_key.public_key_bytes, ALPHA, proof)

    def test_rejects_low_order_public_key(self, output):
        result = verify(Point.identity().encode(), ALPHA, output.beta, output.proof)
        assert result.reason == RejectReason.INVALID_CURVE_POINT

    def test_rejects_undecodable_public_key(self, output):
        bad_key = (2**255 - 19).to_bytes(32, "little")
        result = verify(bad_key, ALPHA, output.beta, output.proof)
        assert result.reason == RejectReason.INVALID_CURVE_POINT


class TestKnownAnswer:
    """Test against RFC 9381 appendix B.3 and fixed fixture outputs."""

    SK = bytes.fromhex("9d61b19deffd5a60ba844af492ec2cc44449c5697b326919703bac031cae7f60")
    PK = bytes.fromhex("d75a980182b10ab7d54bfed3c964073a0ee172f3daa62325af021a68f707511a")
    PI = bytes.fromhex(
        "7d9c633ffeee27349264cf5c667579fc583b4bda63ab71d001f89c10003ab46f"
        "14adf9a3cd8b8412d9038531e865c341cafa73589b023d14311c331a9ad15ff2"
        "fb37831e00f0acaa6d73bc9997b06501"
    )
    BETA = bytes.fromhex(
        "9d574bf9b8302ec0fc1e21c3ec5368269527b87b462ce36dab2d14ccf80c53cc"
        "cf6758f058c5b1c856b116388152bbe509ee3b9ecfe63d93c3b4346c1fbc6c54"
    )

    def test_rfc9381_example_16_prove(self):
        key = VRFSecretKey.from_seed(self.SK)
        assert key.public_key_bytes == self.PK
        out = prove(key, b"")
        assert out.proof.to_bytes() == self.PI
        assert out.beta == self.BETA

    def test_rfc9381_example_16_verify(self):
        proof = VRFProof.from_bytes(self.PI)
        assert verify(self.PK, b"", self.BETA, proof).valid
        assert verify_and_hash(self.PK, b"", proof) == self.BETA
        assert proof_to_hash(proof) == self.BETA

    def test_fixture_key_output(self, vrf_key, output):
        assert vrf_key.public_key_bytes == bytes.fromhex(
            "03a107bff3ce10be1d70dd18e74bc09967e4d6309ba50d5f1ddc8664125531b8"
        )
        assert output.beta.hex() == (
            "e5afb282c1623febfbf33a7c30152ef3d15b8cc7757c4dc04ad365a36a6258e1"
            "116502516573c3aab13e253e1772f7b502b7b2ba8aa889cb40829c7c41eecf84"
        )
