import tempfile
from pathlib import Path
from unittest import TestCase

from provmeta.collect import collect_files, collect_sources
from provmeta.document import artwork_id
from provmeta.errors import ConfigurationError
from provmeta.loader import load_document, resolve_header
from provmeta.config import Settings


def _touch(root: Path, *names: str) -> None:
    for name in names:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")


class CollectTests(TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_filters_and_sorts(self) -> None:
        _touch(self.root, "b.PNG", "a.jpg", "notes.txt", ".hidden/c.png", "sub/d.png")
        found = [Path(p).name for p in collect_files(self.root)]
        self.assertEqual(found, ["a.jpg", "b.PNG"])
        deep = [Path(p).name for p in collect_files(self.root, depth=1)]
        self.assertEqual(deep, ["a.jpg", "b.PNG", "d.png"])

    def test_any_extension_and_missing_path(self) -> None:
        _touch(self.root, "notes.txt")
        self.assertEqual(len(collect_files(self.root, extensions="*")), 1)
        self.assertEqual(collect_files(self.root / "missing"), [])

    def test_collect_sources(self) -> None:
        _touch(self.root, "a.toml", "b.yaml", "square.png")
        found = [Path(p).name for p in collect_sources([self.root, self.root / "a.toml"])]
        self.assertEqual(found, ["a.toml", "b.yaml"])


class HeaderTests(TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        _touch(self.root, "square.png", "square-2.jpg", "other.png", "images/one.png", "images/readme.txt")
        self.settings = Settings()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _names(self, header: str) -> list[str]:
        return [p.name for p in resolve_header(header, self.root, self.settings)]

    def test_literal_file(self) -> None:
        self.assertEqual(self._names("square.png"), ["square.png"])
        self.assertEqual(self._names("missing.png"), [])

    def test_prefix(self) -> None:
        self.assertEqual(self._names("square"), ["square-2.jpg", "square.png"])
        self.assertEqual(self._names("square*"), ["square-2.jpg", "square.png"])

    def test_directory(self) -> None:
        self.assertEqual(self._names("images/"), ["one.png"])
        self.assertEqual(self._names("images/*"), ["one.png"])

    def test_preview_placeholder_may_not_exist(self) -> None:
        self.assertEqual(self._names("square/preview.png"), ["preview.png"])


class LoadDocumentTests(TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        _touch(self.root, "square.png", "circle.png")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, name: str, content: str) -> Path:
        path = self.root / name
        path.write_text(content, encoding="utf-8")
        return path

    def test_globals_artworks_and_certificate_tables(self) -> None:
        source = self._write(
            "metadata.toml",
            'license = "./LICENSE.txt"\n'
            'certificate = { "./certificate.pdf" = { producer = "Studio" } }\n'
            '\n'
            '["square.png"]\n'
            'title = "Square"\n'
            '\n'
            '["square/certificate.pdf"]\n'
            'signer = "Alice"\n',
        )
        document = load_document([source])
        square = artwork_id(self.root / "square.png")
        self.assertEqual(document.globals["license"], "./LICENSE.txt")
        self.assertIn("certificate", document.globals)
        self.assertEqual(document.artworks, {square: {"title": "Square"}})
        self.assertEqual(document.certificates, {"square/certificate.pdf": {"signer": "Alice"}})
        self.assertEqual(document.origins["license"], str(self.root))
        self.assertEqual(document.origins[square], str(self.root))

    def test_sources_merge_in_sorted_order(self) -> None:
        b = self._write("b.toml", 'title = "B"\n["square.png"]\nsubject = "from b"\n')
        a = self._write("a.toml", 'title = "A"\n["square.png"]\ndescription = "from a"\n')
        document = load_document([b, a])
        square = artwork_id(self.root / "square.png")
        self.assertEqual(document.globals["title"], "B")
        self.assertEqual(document.artworks[square], {"description": "from a", "subject": "from b"})
        self.assertEqual(document.sources, (str(a), str(b)))

    def test_unmatched_header_is_a_warning(self) -> None:
        source = self._write("metadata.toml", '["missing.png"]\ntitle = "Nothing"\n')
        document = load_document([source])
        self.assertEqual(document.artworks, {})
        self.assertEqual([w["code"] for w in document.warnings], ["HEADER_UNMATCHED"])

    def test_preview_placeholders(self) -> None:
        source = self._write(
            "metadata.toml",
            '["square.png"]\n["square/preview.jpg"]\ntitle = "Preview"\n["elsewhere/preview.png"]\n',
        )
        document = load_document([source])
        preview = artwork_id(self.root / "square" / "preview.jpg")
        self.assertEqual(document.previews, {preview: {"title": "Preview"}})
        self.assertEqual(list(document.artworks), [artwork_id(self.root / "square.png")])
        self.assertEqual([w["code"] for w in document.warnings], ["PREVIEW_ORPHANED"])

    def test_yaml_source(self) -> None:
        source = self._write("metadata.yaml", "creator: Alice\ncircle.png:\n  title: Circle\n")
        document = load_document([source])
        self.assertEqual(document.globals["creator"], "Alice")
        self.assertEqual(document.artworks[artwork_id(self.root / "circle.png")], {"title": "Circle"})

    def test_parse_error(self) -> None:
        source = self._write("broken.toml", "title = \n")
        with self.assertRaises(ConfigurationError) as ctx:
            load_document([source])
        self.assertEqual(ctx.exception.code, "PARSE_ERROR")

    def test_vocabulary_named_prefix_header(self) -> None:
        _touch(self.root, "image-01.png", "image-02.png")
        source = self._write("metadata.toml", '["image"]\ntitle = "Series"\n')
        document = load_document([source])
        for name in ("image-01.png", "image-02.png"):
            self.assertEqual(document.artworks[artwork_id(self.root / name)], {"title": "Series"})
        self.assertNotIn("image", document.globals)
        self.assertEqual(document.warnings, [])

    def test_structured_vocabulary_value_stays_global(self) -> None:
        source = self._write("metadata.toml", '[creator]\nname = "Alice"\n["license"]\n"LICENSE.txt" = {}\n')
        document = load_document([source])
        self.assertEqual(document.globals["creator"], {"name": "Alice"})
        self.assertEqual(document.globals["license"], {"LICENSE.txt": {}})
        self.assertEqual(document.artworks, {})
        self.assertEqual(document.warnings, [])
