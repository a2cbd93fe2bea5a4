"""Import Normalization — tests for trimming, header discard and dedupe.

Tests cover:
    - Whitespace trimming and empty-line dropping
    - First-seen order and uniqueness of output codes
    - Header discard only for the first non-empty line, only when the predicate rejects it
    - Default code pattern (non-numeric first line is a header)
    - len(codes) + dropped == len(lines)
"""

from entrypass.core.domain_types import MAX_CODE_LENGTH
from entrypass.core.normalize_import import (
    normalize_code, pattern_predicate, prepare_import,
)


def _rejects(*headers: str):
    return lambda candidate: candidate not in headers


def test_normalize_code_trims_whitespace():
    assert normalize_code("  abc123 \t\n") == "abc123"


def test_normalize_code_keeps_case():
    assert normalize_code("AbC") == "AbC"


def test_prepare_dedupes_trimmed_codes():
    prepared = prepare_import(["a", "a", " a ", "b"])
    assert prepared.codes == ["a", "b"]
    assert prepared.dropped == 2
    assert prepared.header is None


def test_prepare_drops_empty_lines():
    prepared = prepare_import(["", "   ", "x1", "\t"])
    assert prepared.codes == ["x1"]
    assert prepared.dropped == 3


def test_prepare_drops_over_length_codes():
    prepared = prepare_import(["x" * (MAX_CODE_LENGTH + 1), "ok1"])
    assert prepared.codes == ["ok1"]
    assert prepared.dropped == 1


def test_counts_always_add_up_to_input_length():
    lines = ["code", "", "a1", "a1", " b2 ", "c3", "  "]
    prepared = prepare_import(lines, _rejects("code"))
    assert len(prepared.codes) + prepared.dropped == len(lines)


def test_header_discarded_when_predicate_rejects_first_line():
    prepared = prepare_import(["code", "abc123qwe456"], _rejects("code"))
    assert prepared.codes == ["abc123qwe456"]
    assert prepared.dropped == 1
    assert prepared.header == "code"


def test_header_check_skips_leading_blank_lines():
    prepared = prepare_import(["", "  code  ", "abc123"], _rejects("code"))
    assert prepared.codes == ["abc123"]
    assert prepared.header == "code"
    assert prepared.dropped == 2


def test_only_first_line_is_header_candidate():
    prepared = prepare_import(["abc123", "code"], _rejects("code"))
    assert prepared.codes == ["abc123", "code"]
    assert prepared.header is None


def test_over_length_first_line_uses_up_header_slot():
    prepared = prepare_import(
        ["x" * (MAX_CODE_LENGTH + 1), "code", "abc1"], _rejects("code"),
    )
    assert prepared.codes == ["code", "abc1"]
    assert prepared.header is None
    assert prepared.dropped == 1


def test_no_predicate_means_no_header_discard():
    prepared = prepare_import(["code", "abc123"])
    assert prepared.codes == ["code", "abc123"]
    assert prepared.dropped == 0


def test_default_pattern_rejects_non_numeric_tokens():
    looks_like_code = pattern_predicate()
    assert not looks_like_code("code")
    assert not looks_like_code("Ticket Code")
    assert looks_like_code("abc123qwe456")
    assert looks_like_code("000123")
    assert looks_like_code("VIP-2026_07")


def test_custom_pattern():
    looks_like_code = pattern_predicate(r"^[A-Z]{3}\d{3}$")
    assert looks_like_code("ABC123")
    assert not looks_like_code("abc123")
