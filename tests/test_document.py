import json
from datetime import date, datetime
from unittest import TestCase

from provmeta.document import (
    MetadataDocument,
    artwork_ids,
    artwork_view,
    embedded_tags,
    preview_extension,
    preview_for,
)
from provmeta.reference import Absent, InlineTable, LocalFile, RemoteUrl, Scalar, merge_attributes, parse_reference
from provmeta.util import json_default

SQUARE = "file:///art/square.png"
WORKING = "file:///art/artwork.tiff"


class DocumentViewTests(TestCase):
    def setUp(self) -> None:
        self.document = MetadataDocument(
            globals={"XMP-dc:Creator": "Alice", "XMP-dc:Rights": "All rights reserved"},
            artworks={WORKING: {}, SQUARE: {"XMP-dc:Creator": "Bob"}},
            previews={"file:///art/square/preview.jpg": {"XMP-dc:Title": "Preview"}},
        )

    def test_artwork_ids_sorted(self) -> None:
        self.assertEqual(artwork_ids(self.document), [WORKING, SQUARE])

    def test_artwork_view_overlays_globals(self) -> None:
        view = artwork_view(self.document, SQUARE)
        self.assertEqual(view["XMP-dc:Creator"], "Bob")
        self.assertEqual(view["XMP-dc:Rights"], "All rights reserved")
        self.assertEqual(self.document.globals["XMP-dc:Creator"], "Alice")

    def test_preview_lookup(self) -> None:
        self.assertEqual(preview_for(self.document, SQUARE), "file:///art/square/preview.jpg")
        self.assertEqual(preview_extension(self.document, SQUARE), ".jpg")
        self.assertIsNone(preview_for(self.document, WORKING))
        self.assertEqual(preview_extension(self.document, WORKING), ".tiff")

    def test_working_file_preview_shares_directory(self) -> None:
        self.document.previews = {"file:///art/preview.png": {}}
        self.assertEqual(preview_for(self.document, WORKING), "file:///art/preview.png")
        self.assertIsNone(preview_for(self.document, SQUARE))

    def test_to_dict_is_json_serialisable(self) -> None:
        self.document.globals["XMP-dc:Date"] = date(2024, 1, 2)
        payload = json.loads(json.dumps(self.document.to_dict(), default=json_default))
        self.assertEqual(payload["globals"]["XMP-dc:Date"], "2024-01-02")
        self.assertFalse(payload["resolved"])


class EmbeddedTagTests(TestCase):
    def test_flattening(self) -> None:
        view = {
            "XMP-dc:Title": "Square",
            "schema:name": "Square",
            "nft:name": "Square",
            "XMP-dc:Date": datetime(2024, 1, 2, 10, 30),
            "Exif:DateTimeOriginal": date(2024, 1, 2),
            "XMP-xmpRights:Certificate": {"file:///art/square/certificate.pdf": {"Title": "COA"}},
        }
        tags = embedded_tags(view)
        self.assertEqual(
            tags,
            {
                "XMP-dc:Title": "Square",
                "XMP-dc:Date": "2024-01-02",
                "Exif:DateTimeOriginal": "2024-01-02T00:00:00",
                "XMP-xmpRights:Certificate": "file:///art/square/certificate.pdf",
            },
        )

    def test_absent_certificate_is_dropped(self) -> None:
        self.assertEqual(embedded_tags({"XMP-xmpRights:Certificate": None, "XMP-dc:Title": "x"}), {"XMP-dc:Title": "x"})


class ReferenceTests(TestCase):
    def test_parse_reference_variants(self) -> None:
        self.assertIsNone(parse_reference(None))
        self.assertEqual(parse_reference(""), Absent())
        self.assertEqual(parse_reference({}), Absent())
        self.assertEqual(parse_reference({"": {"Title": "x"}}), Absent())
        self.assertEqual(parse_reference("https://example.com/c.pdf"), RemoteUrl("https://example.com/c.pdf"))
        self.assertEqual(parse_reference("file:///art/c.pdf"), LocalFile("/art/c.pdf"))
        self.assertEqual(parse_reference("c.pdf"), Scalar("c.pdf"))
        self.assertEqual(parse_reference({"c.pdf": {"Title": "x"}}), InlineTable("c.pdf", {"Title": "x"}))

    def test_merge_precedence(self) -> None:
        merged = merge_attributes([{"Title": "table"}, {"Title": "inline", "Subject": "s"}, None, {"Producer": "p"}])
        self.assertEqual(merged, {"Title": "table", "Subject": "s", "Producer": "p"})
