"""
Tests for contact detail heuristics.
"""

import pytest

from stealthscraper.extraction.contact import EMAIL_PATTERN, extract_contact_info


class TestExtractContactInfo:
    """Tests for extract_contact_info."""

    def test_contact_sentence(self):
        info = extract_contact_info("Contact us at a@b.com or (212) 555-1234")

        assert sorted(info.emails) == ["a@b.com"]
        assert "(212) 555-1234" in info.phones

    def test_emails_are_deduplicated(self):
        text = "sales@shop.io, support@shop.io and again sales@shop.io"

        info = extract_contact_info(text)

        assert len(info.emails) == len(set(EMAIL_PATTERN.findall(text)))
        assert info.emails == {"sales@shop.io", "support@shop.io"}

    @pytest.mark.parametrize(
        "raw",
        ["(212) 555-1234", "212-555-1234", "212.555.1234", "212 555 1234", "2125551234"],
    )
    def test_phone_formats_normalize(self, raw):
        assert extract_contact_info(f"Call {raw} today").phones == {"(212) 555-1234"}

    def test_country_code_is_kept(self):
        info = extract_contact_info("Call +1 212-555-1234 or 1-212-555-1234")

        assert info.phones == {"+1 (212) 555-1234"}

    def test_long_digit_runs_are_not_phones(self):
        assert extract_contact_info("Order 998877665544332211 shipped").phones == frozenset()

    def test_address(self):
        info = extract_contact_info("Visit 1600 Amphitheatre Parkway Road, Mountain View, CA 94043 soon")

        assert len(info.addresses) == 1
        assert next(iter(info.addresses)).endswith("CA 94043")

    def test_empty_text(self):
        info = extract_contact_info("")

        assert not info.emails and not info.phones and not info.addresses

    def test_serialized_sorted(self):
        info = extract_contact_info("z@z.com a@a.com")

        assert info.model_dump()["emails"] == ["a@a.com", "z@z.com"]
