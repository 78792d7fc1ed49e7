"""
Tests for the GS1 Application Identifier decoder.
"""

import unittest

from src.farmatag.core.country import country_from_prefix
from src.farmatag.core.gs1 import decode_payload, format_gs1_date

GS = "\x1d"


class TestDecodePayload(unittest.TestCase):
    """Test decode_payload field extraction."""

    def test_full_pharmaceutical_payload(self):
        """Test a payload carrying every common AI."""
        payload = "0112345678901231" "17190628" "11190101" "10ABC123" + GS + "21SN007"

        fields = decode_payload(payload)

        self.assertEqual(fields, {
            "GTIN": "12345678901231",
            "Expiry": "28/06/2019",
            "ProductionDate": "01/01/2019",
            "Batch": "ABC123",
            "Serial": "SN007",
            "ManufacturerCountry": "USA & Canada",
        })

    def test_gtin_expiry_batch_serial(self):
        """Test GTIN, expiry, batch and serial with a group separator."""
        payload = "0109501101530008" "17251231" "10LOT42" + GS + "21XYZ"

        fields = decode_payload(payload)

        self.assertEqual(fields["GTIN"], "09501101530008")
        self.assertEqual(fields["Expiry"], "31/12/2025")
        self.assertEqual(fields["Batch"], "LOT42")
        self.assertEqual(fields["Serial"], "XYZ")
        self.assertEqual(fields["ManufacturerCountry"], "USA & Canada")

    def test_empty_payload(self):
        """Test empty and missing payloads decode to nothing."""
        self.assertEqual(decode_payload(""), {})
        self.assertEqual(decode_payload(None), {})

    def test_single_character(self):
        """Test a payload too short to hold an AI."""
        self.assertEqual(decode_payload("0"), {})

    def test_unrecognized_payload(self):
        """Test text without any known AI."""
        self.assertEqual(decode_payload("HELLO WORLD"), {})
        self.assertEqual(decode_payload("9999"), {})

    def test_leading_garbage_is_skipped(self):
        """Test that unknown characters before the first AI are skipped."""
        fields = decode_payload("XX0112345678901231")

        self.assertEqual(fields["GTIN"], "12345678901231")

    def test_variable_field_ends_at_next_ai(self):
        """Test a variable-length value terminated by the next AI, no separator."""
        fields = decode_payload("10AB21XY")

        self.assertEqual(fields["Batch"], "AB")
        self.assertEqual(fields["Serial"], "XY")

    def test_variable_field_runs_to_end(self):
        """Test a variable-length value at the end of the payload."""
        fields = decode_payload("0112345678901231" "10BATCH")

        self.assertEqual(fields["Batch"], "BATCH")

    def test_truncated_fixed_field(self):
        """Test a fixed-length field cut short by the end of the payload."""
        fields = decode_payload("0112345")

        self.assertEqual(fields["GTIN"], "12345")
        self.assertEqual(fields["ManufacturerCountry"], "USA & Canada")

    def test_truncated_date_is_not_formatted(self):
        """Test a short date value is kept verbatim."""
        fields = decode_payload("171231")

        self.assertEqual(fields["Expiry"], "1231")

    def test_three_character_ai(self):
        """Test AI 240 is matched as a whole."""
        fields = decode_payload("240ABC")

        self.assertEqual(fields, {"AdditionalID": "ABC"})

    def test_internal_code(self):
        """Test AI 90."""
        fields = decode_payload("90INT" + GS + "21S1")

        self.assertEqual(fields["InternalCode"], "INT")
        self.assertEqual(fields["Serial"], "S1")

    def test_no_country_without_gtin(self):
        """Test ManufacturerCountry is only derived from a GTIN."""
        fields = decode_payload("10LOT")

        self.assertNotIn("ManufacturerCountry", fields)

    def test_unallocated_prefix(self):
        """Test a GTIN whose prefix has no country."""
        fields = decode_payload("0120012345678901")

        self.assertEqual(fields["ManufacturerCountry"], "Unknown")

    def test_never_raises_on_binary_noise(self):
        """Test arbitrary control characters do not raise."""
        fields = decode_payload(GS + GS + "\x00\xff01")

        self.assertIsInstance(fields, dict)


class TestFormatDate(unittest.TestCase):
    """Test YYMMDD formatting."""

    def test_format(self):
        """Test YYMMDD becomes DD/MM/20YY."""
        self.assertEqual(format_gs1_date("251231"), "31/12/2025")

    def test_wrong_length_unchanged(self):
        """Test non-6-character values pass through."""
        self.assertEqual(format_gs1_date("2512"), "2512")
        self.assertEqual(format_gs1_date(""), "")


class TestCountryFromPrefix(unittest.TestCase):
    """Test the GS1 prefix table."""

    def test_known_prefixes(self):
        """Test prefixes inside allocated ranges."""
        self.assertEqual(country_from_prefix("400"), "Germany")
        self.assertEqual(country_from_prefix("800"), "Italy")
        self.assertEqual(country_from_prefix("123"), "USA & Canada")

    def test_unallocated_prefix(self):
        """Test a numeric prefix outside every range."""
        self.assertEqual(country_from_prefix("200"), "Unknown")

    def test_non_numeric_prefix(self):
        """Test non-digit prefixes."""
        self.assertEqual(country_from_prefix("AB1"), "Unknown")
        self.assertEqual(country_from_prefix("٤٠٠"), "Unknown")


if __name__ == "__main__":
    unittest.main()
