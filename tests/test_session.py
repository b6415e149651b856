import json
import tempfile
import threading
import time
from pathlib import Path
from unittest import TestCase, mock

from provmeta.document import MetadataDocument, artwork_id
from provmeta.errors import ConfigurationError
from provmeta.pipeline import Context, run_resolution
from provmeta.session import Session


class SessionTests(TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name).resolve()
        (self.root / "square.png").write_bytes(b"")
        (self.root / "LICENSE.txt").write_text("All rights reserved", encoding="utf-8")
        self.a = self.root / "a.toml"
        self.b = self.root / "b.toml"
        self.a.write_text('license = "./LICENSE.txt"\ncreator = "Alice"\n', encoding="utf-8")
        self.b.write_text('["square.png"]\ntitle = "Square"\n', encoding="utf-8")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_reordered_sources_share_one_document(self) -> None:
        session = Session()
        first = session.load([self.a, self.b])
        second = session.load([str(self.b), str(self.a)])
        self.assertIs(first, second)
        self.assertTrue(first.resolved)
        self.assertEqual(session.cache_key([self.b, self.a]), f"{self.a}|{self.b}")

    def test_clear_forces_a_fresh_document(self) -> None:
        session = Session()
        first = session.load([self.a, self.b])
        session.clear()
        self.assertIsNot(session.load([self.a, self.b]), first)

    def test_resolved_document(self) -> None:
        document = Session().load([self.a, self.b])
        attributes = document.artworks[artwork_id(self.root / "square.png")]
        self.assertEqual(attributes["XMP-dc:Title"], "Square")
        self.assertEqual(attributes["schema:name"], "Square")
        self.assertEqual(attributes["schema:license"], "file://" + str(self.root / "LICENSE.txt"))
        self.assertEqual(list(attributes["XMP-xmpRights:Certificate"]), ["file://" + str(self.root / "square" / "certificate.pdf")])
        self.assertEqual(attributes["schema:copyrightHolder"], [{"@type": "Person", "name": "Alice"}])
        self.assertEqual(document.globals["schema:@context"], "https://schema.org/")
        self.assertEqual([entry["step"] for entry in document.logs if entry["phase"] == "end"],
                         ["normalize", "licenses", "certificates", "defaults"])

    def test_failures_are_not_cached(self) -> None:
        self.a.write_text('creator = "Alice"\n', encoding="utf-8")
        session = Session()
        for _ in range(2):
            with self.assertRaises(ConfigurationError) as ctx:
                session.load([self.a, self.b])
            self.assertEqual(ctx.exception.code, "LICENSE_MISSING")

    def test_concurrent_loads_coalesce(self) -> None:
        calls = []

        def slow_load(sources, settings):
            calls.append(sources)
            time.sleep(0.2)
            return MetadataDocument(sources=tuple(sorted(str(s) for s in sources)))

        session = Session()
        results = []
        with mock.patch("provmeta.session.load_document", side_effect=slow_load):
            threads = [threading.Thread(target=lambda: results.append(session.load([self.a, self.b]))) for _ in range(4)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()
        self.assertEqual(len(calls), 1)
        self.assertEqual(len(results), 4)
        self.assertTrue(all(result is results[0] for result in results))

    def test_waiters_share_the_failure(self) -> None:
        calls = []

        def failing_load(sources, settings):
            calls.append(sources)
            time.sleep(0.2)
            raise ConfigurationError("boom", code="PARSE_ERROR")

        session = Session()
        errors = []

        def worker() -> None:
            try:
                session.load([self.a])
            except ConfigurationError as exc:
                errors.append(exc)

        with mock.patch("provmeta.session.load_document", side_effect=failing_load):
            threads = [threading.Thread(target=worker) for _ in range(3)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()
            self.assertEqual(len(errors), 3)
            self.assertEqual(len(calls), 1)
            with self.assertRaises(ConfigurationError):
                session.load([self.a])
            self.assertEqual(len(calls), 2)


class PipelineTests(TestCase):
    def test_already_resolved(self) -> None:
        document = run_resolution(MetadataDocument())
        with self.assertRaises(ConfigurationError) as ctx:
            run_resolution(document)
        self.assertEqual(ctx.exception.code, "ALREADY_RESOLVED")

    def test_logs_written_as_jsonl(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            log_path = Path(tmp) / "logs" / "provmeta.jsonl"
            context = Context.from_config({"logging": {"path": str(log_path)}})
            document = run_resolution(MetadataDocument(), context)
            lines = log_path.read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(lines), 8)
        self.assertEqual(len(document.logs), 8)
        self.assertEqual(json.loads(lines[-1])["status"], "ok")

    def test_error_is_logged_and_raised(self) -> None:
        document = MetadataDocument(artworks={"file:///art/square.png": {"XMP-dc:Identifier": "urn:x::1"}})
        with self.assertRaises(ConfigurationError):
            run_resolution(document)
        self.assertEqual(document.logs[-1]["status"], "error")
        self.assertEqual(document.logs[-1]["error"]["code"], "IDENTIFIER_ERROR")
        self.assertFalse(document.resolved)
