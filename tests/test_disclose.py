"""
tests/test_disclose.py
Unit tests for deriving disclosure proofs.
"""
import copy

import pytest
from zero_reveal_sd import proofs
from zero_reveal_sd.disclose import (
    DiscloseCryptosuite,
    pair_signatures,
    relative_mandatory_indexes,
)
from zero_reveal_sd.keys import EcdsaMultikey
from zero_reveal_sd.proof_value import parse_derived_proof_value
from zero_reveal_sd.sign import SignCryptosuite
from zero_reveal_sd.errors import LogicError, ValidationError, VerificationError


@pytest.fixture
def sample_passport():
    """Sample battery passport credential (14 statements)."""
    return {
        "@context": ["https://www.w3.org/ns/credentials/v2"],
        "type": ["VerifiableCredential", "BatteryPassportCredential"],
        "issuer": "did:example:issuer",
        "validFrom": "2025-03-15T00:00:00Z",
        "credentialSubject": {
            "id": "did:example:battery-001",
            "manufacturerName": "EuroCell GmbH",
            "batteryChemistry": "NMC811",
            "carbonFootprint": {"value": 61.5, "performanceClass": "B"},
            "ratedCapacity": 75,
            "hazardousSubstances": {"containsCadmium": False, "containsLead": False}
        }
    }


@pytest.fixture
def issuer_key():
    return EcdsaMultikey.generate(
        id="did:example:issuer#key-1",
        controller="did:example:issuer"
    )


@pytest.fixture
def signed_passport(sample_passport, issuer_key):
    """Passport with a base proof; /issuer is mandatory."""
    return proofs.sign(
        sample_passport,
        SignCryptosuite(mandatory_pointers=["/issuer"]),
        issuer_key
    )


def _split(document):
    unsigned = {k: v for k, v in document.items() if k != 'proof'}
    return unsigned, [document['proof']]


class TestDerive:
    """Tests for selective disclosure."""

    def test_reveals_only_selection(self, signed_passport):
        suite = DiscloseCryptosuite(
            selective_pointers=["/credentialSubject/batteryChemistry"])
        revealed = suite.derive(*_split(signed_passport))

        assert revealed["issuer"] == "did:example:issuer"
        assert revealed["type"] == signed_passport["type"]
        assert revealed["@context"] == signed_passport["@context"]
        assert revealed["credentialSubject"] == {
            "id": "did:example:battery-001",
            "batteryChemistry": "NMC811"
        }
        assert "validFrom" not in revealed
        assert "id" not in revealed

    def test_derived_proof_params(self, signed_passport):
        """2 root types + issuer are mandatory; 2 selective statements are signed."""
        suite = DiscloseCryptosuite(
            selective_pointers=["/credentialSubject/batteryChemistry"])
        revealed = suite.derive(*_split(signed_passport))

        params = parse_derived_proof_value(revealed["proof"])
        assert len(params.mandatory_indexes) == 3
        assert len(params.signatures) == 2
        assert all(i < 5 for i in params.mandatory_indexes)
        # only the root is a blank node
        assert list(params.label_map) == ["c14n0"]

    def test_nested_blank_node(self, signed_passport):
        suite = DiscloseCryptosuite(
            selective_pointers=["/credentialSubject/carbonFootprint/value"])
        revealed = suite.derive(*_split(signed_passport))

        assert revealed["credentialSubject"]["carbonFootprint"] == {"value": 61.5}
        params = parse_derived_proof_value(revealed["proof"])
        assert sorted(params.label_map) == ["c14n0", "c14n1"]
        assert len(params.signatures) == 3

    def test_mandatory_only(self, signed_passport):
        revealed = DiscloseCryptosuite().derive(*_split(signed_passport))
        params = parse_derived_proof_value(revealed["proof"])
        assert params.signatures == []
        assert params.mandatory_indexes == [0, 1, 2]
        assert "credentialSubject" not in revealed

    def test_proof_options_carried(self, signed_passport):
        base_proof = signed_passport["proof"]
        revealed = DiscloseCryptosuite(
            selective_pointers=["/validFrom"]).derive(*_split(signed_passport))
        new_proof = revealed["proof"]
        for key in ("type", "cryptosuite", "created",
                    "verificationMethod", "proofPurpose"):
            assert new_proof[key] == base_proof[key]
        assert new_proof["proofValue"] != base_proof["proofValue"]

    def test_base_proof_untouched(self, signed_passport):
        original = copy.deepcopy(signed_passport)
        DiscloseCryptosuite(
            selective_pointers=["/validFrom"]).derive(*_split(signed_passport))
        assert signed_passport == original

    def test_label_map_blinded(self, signed_passport):
        revealed = DiscloseCryptosuite(
            selective_pointers=["/credentialSubject"]).derive(*_split(signed_passport))
        params = parse_derived_proof_value(revealed["proof"])
        assert len(params.label_map) == 3
        assert all(label.startswith('u') for label in params.label_map.values())


class TestDeriveErrors:
    """Tests for derive preconditions."""

    def test_nothing_selected(self, sample_passport, issuer_key):
        signed = proofs.sign(sample_passport, SignCryptosuite(), issuer_key)
        with pytest.raises(LogicError, match="Nothing selected for disclosure."):
            DiscloseCryptosuite().derive(*_split(signed))

    def test_unknown_selective_pointer(self, signed_passport):
        suite = DiscloseCryptosuite(selective_pointers=["/credentialSubject/nope"])
        with pytest.raises(LogicError, match="does not match"):
            suite.derive(*_split(signed_passport))

    def test_no_matching_proof(self, signed_passport):
        unsigned, _ = _split(signed_passport)
        with pytest.raises(LogicError, match="No matching base proof"):
            DiscloseCryptosuite().derive(unsigned, [])

    def test_other_cryptosuite_ignored(self, signed_passport):
        unsigned, proof_set = _split(signed_passport)
        proof_set[0] = dict(proof_set[0], cryptosuite="bbs-2023")
        with pytest.raises(LogicError, match="No matching base proof"):
            DiscloseCryptosuite().derive(unsigned, proof_set)

    def test_multiple_matching_proofs(self, signed_passport):
        unsigned, proof_set = _split(signed_passport)
        with pytest.raises(LogicError, match="Multiple matching proofs"):
            DiscloseCryptosuite().derive(unsigned, proof_set * 2)

    def test_proof_id_selects(self, signed_passport):
        unsigned, proof_set = _split(signed_passport)
        chosen = dict(proof_set[0], id="urn:uuid:proof-2")
        suite = DiscloseCryptosuite(proof_id="urn:uuid:proof-2")
        revealed = suite.derive(unsigned, proof_set + [chosen])
        assert revealed["proof"]["id"] == "urn:uuid:proof-2"

    def test_unknown_proof_id(self, signed_passport):
        suite = DiscloseCryptosuite(proof_id="urn:uuid:missing")
        with pytest.raises(LogicError, match="No matching base proof"):
            suite.derive(*_split(signed_passport))

    def test_purpose_mismatch(self, signed_passport):
        with pytest.raises(LogicError, match="purpose"):
            DiscloseCryptosuite().derive(
                *_split(signed_passport), purpose="authentication")

    def test_document_changed_since_signing(self, signed_passport):
        """An extra statement leaves the signatures out of step."""
        unsigned, proof_set = _split(signed_passport)
        unsigned["credentialSubject"] = dict(
            unsigned["credentialSubject"], serialNumber="SN-42")
        with pytest.raises(VerificationError, match="Signature count"):
            DiscloseCryptosuite().derive(unsigned, proof_set)

    def test_invalid_selective_pointers(self):
        with pytest.raises(ValidationError, match="selectivePointers"):
            DiscloseCryptosuite(selective_pointers="/issuer")

    def test_disclose_suite_cannot_sign(self):
        with pytest.raises(LogicError, match='"derive"'):
            DiscloseCryptosuite().create_proof_value(None, None)


class TestPairSignatures:
    """Tests for matching base signatures to statement indexes."""

    def test_skips_mandatory(self):
        mandatory = {0: 'm0', 2: 'm2'}
        pairs = pair_signatures([b'a', b'b', b'c'], mandatory)
        assert pairs == [(1, b'a'), (3, b'b'), (4, b'c')]

    def test_consecutive_mandatory(self):
        mandatory = {1: 'm1', 2: 'm2', 3: 'm3'}
        pairs = pair_signatures([b'a', b'b'], mandatory)
        assert pairs == [(0, b'a'), (4, b'b')]

    def test_no_mandatory(self):
        assert pair_signatures([b'a', b'b'], {}) == [(0, b'a'), (1, b'b')]

    def test_no_signatures(self):
        assert pair_signatures([], {0: 'm0'}) == []


class TestRelativeMandatoryIndexes:
    """Tests for mandatory positions within the disclosed statements."""

    def test_positions(self):
        combined = {1: 's1', 3: 's3', 4: 's4', 7: 's7'}
        mandatory = {3: 's3', 7: 's7'}
        assert relative_mandatory_indexes(combined, mandatory) == [1, 3]

    def test_all_mandatory(self):
        combined = {0: 's0', 5: 's5'}
        assert relative_mandatory_indexes(combined, combined) == [0, 1]

    def test_none_mandatory(self):
        assert relative_mandatory_indexes({2: 's2'}, {}) == []
