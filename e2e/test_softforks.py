"""Soft fork decoder tests.

Covers decode_signal_phase, decode_fork_record and decode_fork_registry
against hand-written JSON fragments. All deterministic, no I/O.

TestSignalPhase: variant selection by field presence, contradictions, bit range
TestForkRecord: name lookup, discriminator checks, both arms
TestForkRegistry: partial registries, unknown names, all-or-nothing
TestEncodeRecord: records render back to their wire objects
"""

import pytest

from decoding.softforks import (
    decode_fork_record,
    decode_fork_registry,
    decode_signal_phase,
    encode_fork_record,
)
from schemas.errors import (
    DiscriminatorMismatchError,
    MissingFieldError,
    RangeError,
    ShapeMismatchError,
    TypeMismatchError,
    UnknownForkNameError,
)
from schemas.softforks import (
    ActivatedAtHeight,
    BoundedBit,
    ForkActivationKind,
    ForkName,
    HeightTriggered,
    InProgress,
    OtherPhase,
    SignalStatistics,
    SignalStatus,
    SignalTriggered,
)

PATH = "result.softforks.taproot"


# ── Helpers ───────────────────────────────────────────────────────────────────

def started_obj(**overrides) -> dict:
    base = {
        "status": "started",
        "bit": 19,
        "start_time": 12345,
        "timeout": 12345,
        "since": 100,
        "statistics": {
            "period": 100,
            "threshold": 250,
            "elapsed": 12345,
            "count": 99,
            "possible": False,
        },
        "active": False,
        "type": "bip9",
    }
    base.update(overrides)
    return base


def active_obj(**overrides) -> dict:
    base = {
        "status": "active",
        "start_time": 12345,
        "timeout": 12345,
        "since": 100,
        "height": 481824,
        "active": True,
        "type": "bip9",
    }
    base.update(overrides)
    return base


def other_obj(status="defined", **overrides) -> dict:
    base = {
        "status": status,
        "start_time": 0,
        "timeout": 9223372036854775807,
        "since": 0,
        "active": False,
        "type": "bip9",
    }
    base.update(overrides)
    return base


def buried_obj(**overrides) -> dict:
    base = {"height": 227931, "active": True, "type": "buried"}
    base.update(overrides)
    return base


def without(obj: dict, *keys: str) -> dict:
    return {k: v for k, v in obj.items() if k not in keys}


# ── decode_signal_phase ───────────────────────────────────────────────────────

class TestSignalPhase:
    def test_started_with_bit_and_statistics_is_in_progress(self):
        payload = decode_signal_phase(started_obj(), PATH)
        assert payload == InProgress(
            status=SignalStatus.STARTED,
            bit=BoundedBit.make(19),
            start_time=12345,
            timeout=12345,
            since=100,
            statistics=SignalStatistics(
                period=100, threshold=250, elapsed=12345, count=99, possible=False,
            ),
            active=False,
            kind=ForkActivationKind.SIGNALING,
        )

    def test_active_with_height_is_activated_at_height(self):
        payload = decode_signal_phase(active_obj(), PATH)
        assert isinstance(payload, ActivatedAtHeight)
        assert payload.height == 481824
        assert payload.status is SignalStatus.ACTIVE
        assert payload.active is True

    @pytest.mark.parametrize("status", ["defined", "locked_in", "failed"])
    def test_phase_without_extras_is_other(self, status):
        payload = decode_signal_phase(other_obj(status), PATH)
        assert type(payload) is OtherPhase
        assert payload.status is SignalStatus(status)

    def test_shape_follows_fields_not_status(self):
        # A locked_in deployment reported with statistics still decodes as InProgress
        payload = decode_signal_phase(started_obj(status="locked_in"), PATH)
        assert isinstance(payload, InProgress)
        assert payload.status is SignalStatus.LOCKED_IN

    def test_active_without_height_is_other(self):
        payload = decode_signal_phase(without(active_obj(), "height"), PATH)
        assert type(payload) is OtherPhase

    def test_bit_and_height_together_is_shape_mismatch(self):
        with pytest.raises(ShapeMismatchError) as excinfo:
            decode_signal_phase(started_obj(height=5), PATH)
        assert excinfo.value.path == PATH

    def test_bit_without_statistics_is_shape_mismatch(self):
        with pytest.raises(ShapeMismatchError):
            decode_signal_phase(without(started_obj(), "statistics"), PATH)

    def test_statistics_without_bit_is_shape_mismatch(self):
        with pytest.raises(ShapeMismatchError):
            decode_signal_phase(without(started_obj(), "bit"), PATH)

    @pytest.mark.parametrize("bit", [0, 28])
    def test_bit_bounds_accepted(self, bit):
        assert decode_signal_phase(started_obj(bit=bit), PATH).bit.value == bit

    def test_bit_29_is_range_error_with_path(self):
        with pytest.raises(RangeError) as excinfo:
            decode_signal_phase(started_obj(bit=29), PATH)
        assert excinfo.value.path == f"{PATH}.bit"
        assert excinfo.value.max == 28
        assert excinfo.value.got == 29

    def test_string_bit_is_type_mismatch(self):
        with pytest.raises(TypeMismatchError) as excinfo:
            decode_signal_phase(started_obj(bit="19"), PATH)
        assert excinfo.value.path == f"{PATH}.bit"

    @pytest.mark.parametrize("field", ["status", "start_time", "timeout", "since", "active"])
    def test_missing_common_field(self, field):
        with pytest.raises(MissingFieldError) as excinfo:
            decode_signal_phase(without(active_obj(), field), PATH)
        assert excinfo.value.path == f"{PATH}.{field}"

    def test_missing_common_field_reported_before_shape(self):
        obj = without(started_obj(height=5), "since")
        with pytest.raises(MissingFieldError):
            decode_signal_phase(obj, PATH)

    def test_unknown_status_is_type_mismatch(self):
        with pytest.raises(TypeMismatchError) as excinfo:
            decode_signal_phase(other_obj("locked-in"), PATH)
        assert excinfo.value.path == f"{PATH}.status"

    def test_missing_statistics_counter(self):
        obj = started_obj()
        del obj["statistics"]["count"]
        with pytest.raises(MissingFieldError) as excinfo:
            decode_signal_phase(obj, PATH)
        assert excinfo.value.path == f"{PATH}.statistics.count"

    def test_negative_height_is_type_mismatch(self):
        with pytest.raises(TypeMismatchError) as excinfo:
            decode_signal_phase(active_obj(height=-1), PATH)
        assert excinfo.value.path == f"{PATH}.height"

    def test_non_object_is_type_mismatch(self):
        with pytest.raises(TypeMismatchError):
            decode_signal_phase(["status", "active"], PATH)


# ── decode_fork_record ────────────────────────────────────────────────────────

class TestForkRecord:
    def test_bip34_buried(self):
        record = decode_fork_record("bip34", buried_obj(), "result.softforks.bip34")
        assert record == HeightTriggered(height=227931, active=True)

    def test_taproot_active(self):
        record = decode_fork_record("taproot", active_obj(), PATH)
        assert isinstance(record, SignalTriggered)
        assert isinstance(record.payload, ActivatedAtHeight)
        assert record.payload.height == 481824

    def test_testdummy_started(self):
        record = decode_fork_record("testdummy", started_obj(), "result.softforks.testdummy")
        assert isinstance(record.payload, InProgress)
        assert record.payload.bit == BoundedBit.make(19)

    def test_buried_name_with_bip9_type(self):
        with pytest.raises(DiscriminatorMismatchError) as excinfo:
            decode_fork_record("segwit", buried_obj(type="bip9"), "result.softforks.segwit")
        assert excinfo.value.path == "result.softforks.segwit.type"
        assert excinfo.value.expected == "buried"
        assert excinfo.value.got == "bip9"

    def test_signaling_name_with_buried_type(self):
        with pytest.raises(DiscriminatorMismatchError):
            decode_fork_record("taproot", active_obj(type="buried"), PATH)

    def test_unrecognised_type_text_is_discriminator_mismatch(self):
        with pytest.raises(DiscriminatorMismatchError):
            decode_fork_record("csv", buried_obj(type="heretical"), "result.softforks.csv")

    def test_missing_type(self):
        with pytest.raises(MissingFieldError) as excinfo:
            decode_fork_record("csv", without(buried_obj(), "type"), "result.softforks.csv")
        assert excinfo.value.path == "result.softforks.csv.type"

    def test_non_string_type(self):
        with pytest.raises(TypeMismatchError):
            decode_fork_record("csv", buried_obj(type=9), "result.softforks.csv")

    def test_buried_shape_given_to_signaling_name(self):
        # type is right, but the buried shape lacks the BIP9 common fields
        with pytest.raises(MissingFieldError):
            decode_fork_record("taproot", buried_obj(type="bip9"), PATH)

    def test_unknown_name(self):
        with pytest.raises(UnknownForkNameError) as excinfo:
            decode_fork_record("bip999", buried_obj(), "result.softforks.bip999")
        assert excinfo.value.name == "bip999"

    def test_name_is_case_sensitive(self):
        with pytest.raises(UnknownForkNameError):
            decode_fork_record("BIP34", buried_obj(), "result.softforks.BIP34")

    def test_buried_active_as_string(self):
        with pytest.raises(TypeMismatchError) as excinfo:
            decode_fork_record("bip66", buried_obj(active="true"), "result.softforks.bip66")
        assert excinfo.value.path == "result.softforks.bip66.active"


# ── decode_fork_registry ──────────────────────────────────────────────────────

class TestForkRegistry:
    def test_partial_registry(self):
        registry = decode_fork_registry(
            {"bip34": buried_obj(), "taproot": started_obj()}, "result.softforks",
        )
        assert len(registry) == 2
        assert ForkName.SEGWIT not in registry
        assert isinstance(registry["taproot"], SignalTriggered)

    def test_empty_registry(self):
        assert len(decode_fork_registry({}, "result.softforks")) == 0

    def test_unknown_name_fails_whole_registry(self):
        with pytest.raises(UnknownForkNameError) as excinfo:
            decode_fork_registry(
                {"bip34": buried_obj(), "bip999": buried_obj()}, "result.softforks",
            )
        assert excinfo.value.path == "result.softforks.bip999"

    def test_first_bad_entry_aborts(self):
        with pytest.raises(RangeError) as excinfo:
            decode_fork_registry(
                {"taproot": started_obj(bit=31), "bip34": buried_obj()}, "result.softforks",
            )
        assert excinfo.value.path == "result.softforks.taproot.bit"

    def test_non_object_registry(self):
        with pytest.raises(TypeMismatchError):
            decode_fork_registry([], "result.softforks")


# ── encode_fork_record ────────────────────────────────────────────────────────

class TestEncodeRecord:
    def test_buried_wire_form(self):
        record = HeightTriggered(height=227931, active=True)
        assert encode_fork_record(record) == {"height": 227931, "active": True, "type": "buried"}

    @pytest.mark.parametrize("obj", [started_obj(), active_obj(), other_obj("failed")])
    def test_signal_payload_wire_form_matches_source(self, obj):
        record = decode_fork_record("taproot", obj, PATH)
        assert encode_fork_record(record) == obj
