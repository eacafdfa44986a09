import base64
import plistlib

import pytest

from bf_prefilter import plist_format
from bf_prefilter.bloom_filter import BloomFilter
from bf_prefilter.errors import PlistFormatError

from conftest import URL_FILTER_BASE64, URL_FILTER_SEED


EXPECTED_KEYS = {
    "bitVectorData",
    "falsePositiveTolerance",
    "murmurSeed",
    "numberOfBits",
    "numberOfBytes",
    "numberOfHashes",
    "numberOfItems",
}


class TestWrite:
    def test_key_set_and_values(self, url_filter) -> None:
        document = plistlib.loads(plist_format.to_plist_bytes(url_filter))
        assert set(document) == EXPECTED_KEYS
        assert document["bitVectorData"] == base64.b64decode(URL_FILTER_BASE64)
        assert document["falsePositiveTolerance"] == 0.0001
        assert document["murmurSeed"] == URL_FILTER_SEED
        assert document["numberOfBits"] == 144
        assert document["numberOfBytes"] == 18
        assert document["numberOfHashes"] == 10
        assert document["numberOfItems"] == 10

    def test_xml_value_types(self, url_filter) -> None:
        text = plist_format.to_plist_bytes(url_filter).decode("utf-8")
        assert "<data>" in text
        assert URL_FILTER_BASE64 in text
        assert "<real>0.0001</real>" in text
        assert f"<integer>{URL_FILTER_SEED}</integer>" in text

    def test_keys_written_in_sorted_order(self, url_filter) -> None:
        text = plist_format.to_plist_bytes(url_filter).decode("utf-8")
        positions = [text.index(f"<key>{k}</key>") for k in sorted(EXPECTED_KEYS)]
        assert positions == sorted(positions)

    def test_item_count_override(self, url_filter) -> None:
        document = plistlib.loads(plist_format.to_plist_bytes(url_filter, num_items=3))
        assert document["numberOfItems"] == 3


class TestRead:
    def test_round_trip_through_file(self, tmp_path, url_filter, url_items) -> None:
        path = tmp_path / "filter.plist"
        plist_format.dump(url_filter, path)

        contents = plist_format.load(path)
        assert contents.number_of_bits == 144
        assert contents.number_of_bytes == 18
        assert contents.murmur_seed == URL_FILTER_SEED

        rebuilt = contents.to_filter()
        assert rebuilt.data == url_filter.data
        for item in url_items + ["not-in-filter.example", "example11.com"]:
            assert rebuilt.contains(item) == url_filter.contains(item)

    def test_reads_externally_written_document(self, url_items) -> None:
        payload = f"""<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
\t<key>bitVectorData</key>
\t<data>
\t{URL_FILTER_BASE64}
\t</data>
\t<key>falsePositiveTolerance</key>
\t<real>0.0001</real>
\t<key>murmurSeed</key>
\t<integer>{URL_FILTER_SEED}</integer>
\t<key>numberOfBits</key>
\t<integer>144</integer>
\t<key>numberOfBytes</key>
\t<integer>18</integer>
\t<key>numberOfHashes</key>
\t<integer>10</integer>
\t<key>numberOfItems</key>
\t<integer>10</integer>
</dict>
</plist>
""".encode("utf-8")
        bloom = plist_format.loads(payload).to_filter()
        for item in url_items:
            assert bloom.contains(item)

    def test_missing_key(self, url_filter) -> None:
        document = plistlib.loads(plist_format.to_plist_bytes(url_filter))
        del document["murmurSeed"]
        with pytest.raises(PlistFormatError, match="murmurSeed"):
            plist_format.loads(plistlib.dumps(document))

    def test_wrong_value_type(self, url_filter) -> None:
        document = plistlib.loads(plist_format.to_plist_bytes(url_filter))
        document["numberOfBits"] = "144"
        with pytest.raises(PlistFormatError, match="numberOfBits"):
            plist_format.loads(plistlib.dumps(document))

    def test_not_a_plist(self) -> None:
        with pytest.raises(PlistFormatError):
            plist_format.loads(b"definitely not a property list")

    def test_top_level_array(self) -> None:
        with pytest.raises(PlistFormatError):
            plist_format.loads(plistlib.dumps([1, 2, 3]))

    def test_byte_count_mismatch_is_tolerated(self, url_filter, caplog) -> None:
        document = plistlib.loads(plist_format.to_plist_bytes(url_filter))
        document["numberOfBytes"] = 20
        contents = plist_format.loads(plistlib.dumps(document))
        assert contents.number_of_bytes == 20
        assert "numberOfBytes" in caplog.text

    def test_integer_tolerance_accepted(self, url_filter) -> None:
        document = plistlib.loads(plist_format.to_plist_bytes(url_filter))
        document["falsePositiveTolerance"] = 0
        contents = plist_format.loads(plistlib.dumps(document))
        assert contents.false_positive_tolerance == 0.0
        with pytest.raises(ValueError):
            contents.to_filter()


def test_filter_from_sized_build_survives_file(tmp_path) -> None:
    items = [f"blocked{i}.example" for i in range(50)]
    bloom = BloomFilter.from_items(items, 0.001, murmur_seed=0x1234)
    path = tmp_path / "sized.plist"
    plist_format.dump(bloom, path)

    rebuilt = plist_format.load(path).to_filter()
    assert all(rebuilt.contains(item) for item in items)
    assert rebuilt.false_positive_tolerance == 0.001


class TestAtomicDump:
    def test_overwrites_without_leaving_temporaries(self, tmp_path, url_filter) -> None:
        path = tmp_path / "filter.plist"
        path.write_bytes(b"stale")
        plist_format.dump(url_filter, path)

        assert [p.name for p in tmp_path.iterdir()] == ["filter.plist"]
        assert plist_format.load(path).bit_vector_data == url_filter.data

    def test_failed_write_keeps_previous_file(self, tmp_path, url_filter, monkeypatch) -> None:
        path = tmp_path / "filter.plist"
        plist_format.dump(url_filter, path)
        previous = path.read_bytes()

        def fail_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(plist_format.os, "replace", fail_replace)
        other = BloomFilter.from_items(["other.example"], 0.01)
        with pytest.raises(OSError, match="disk full"):
            plist_format.dump(other, path)

        assert path.read_bytes() == previous
        assert [p.name for p in tmp_path.iterdir()] == ["filter.plist"]
