"""Tests for resource providers and stream decoders."""

import gzip
import importlib
import io
import os
import shutil
import sys
import tempfile
import unittest
import uuid
import zipfile

from decoder import IdentityDecoder, TransformDecoder, GzipDecoder
from overlay import ResourceOverlay
from provider import MemoryProvider, ProviderError, ProviderNotFoundError


class TestMemoryProvider(unittest.TestCase):
    def test_open(self):
        p = MemoryProvider({"App.a.txt": "text", "App.b.bin": b"\x00\x01"})
        self.assertEqual(p.open("App.a.txt").read(), b"text")
        self.assertEqual(p.open("App.b.bin").read(), b"\x00\x01")

    def test_open_missing_raises(self):
        p = MemoryProvider({"App.a.txt": "text"})
        with self.assertRaises(ProviderError):
            p.open("App.nope.txt")

    def test_default_prefix_from_namespace(self):
        p = MemoryProvider({"Other.a.txt": ""}, namespace="My.Namespace")
        self.assertEqual(p.default_prefix(), "My.Namespace")

    def test_default_prefix_from_first_key(self):
        p = MemoryProvider({"Root.sub.a.txt": "", "Zed.b.txt": ""})
        self.assertEqual(p.default_prefix(), "Root")

    def test_default_prefix_empty(self):
        self.assertEqual(MemoryProvider({}).default_prefix(), "")


class TestZipProvider(unittest.TestCase):
    def _make_zip(self, files: dict[str, bytes], name: str = "manual.zip") -> str:
        """Create a ZIP file with the given contents in the temp dir. Returns path."""
        path = os.path.join(self._tmpdir, name)
        with zipfile.ZipFile(path, "w") as zf:
            for member, data in files.items():
                zf.writestr(member, data)
        return path

    def setUp(self):
        self._tmpdir = tempfile.mkdtemp()
        self._providers = []

    def tearDown(self):
        for p in self._providers:
            p.close()
        shutil.rmtree(self._tmpdir)

    def _open(self, *args, **kwargs):
        from provider_zip import ZipProvider
        p = ZipProvider(*args, **kwargs)
        self._providers.append(p)
        return p

    def test_keys(self):
        path = self._make_zip({
            "readme.txt": b"Read me",
            "docs/": b"",
            "docs/1.0/guide.txt": b"Guide",
            "My Files/data-set/x.csv": b"a,b",
        })
        p = self._open(path)
        self.assertEqual(p.namespace, "manual")
        self.assertEqual(sorted(p.keys()), [
            "manual.My_Files.data_set.x.csv",
            "manual.docs._1._0.guide.txt",
            "manual.readme.txt",
        ])

    def test_open(self):
        path = self._make_zip({"docs/1.0/guide.txt": b"Guide"})
        p = self._open(path)
        with p.open("manual.docs._1._0.guide.txt") as f:
            self.assertEqual(f.read(), b"Guide")
        with self.assertRaises(ProviderError):
            p.open("manual.docs.guide.txt")

    def test_explicit_namespace(self):
        path = self._make_zip({"a.txt": b"A"})
        p = self._open(path, namespace="Assets")
        self.assertEqual(p.keys(), ["Assets.a.txt"])
        self.assertEqual(p.default_prefix(), "Assets")

    def test_bad_zip(self):
        path = os.path.join(self._tmpdir, "bad.zip")
        with open(path, "wb") as f:
            f.write(b"not a zip file")
        with self.assertRaises(ProviderError):
            self._open(path)

    def test_context_manager_closes(self):
        from provider_zip import ZipProvider
        path = self._make_zip({"a.txt": b"A"})
        with ZipProvider(path) as p:
            self.assertEqual(p.open("manual.a.txt").read(), b"A")
        with self.assertRaises(ProviderError):
            p.open("manual.a.txt")

    def test_memory_provider_close_is_noop(self):
        p = MemoryProvider({"App.a.txt": "a"})
        p.close()
        self.assertEqual(p.open("App.a.txt").read(), b"a")

    def test_missing_zip(self):
        with self.assertRaises(ProviderError):
            self._open(os.path.join(self._tmpdir, "missing.zip"))

    def test_overlay_over_zip(self):
        path = self._make_zip({
            "docs/1.0/guide.txt": b"Guide 1.0\r\n",
            "docs/A folder/404.txt": b"Numeric",
            "extra/guide.txt": b"Extra guide",
        })
        fs = ResourceOverlay("docs", self._open(path))
        self.assertEqual(fs.read_normalized("1.0/Guide.TXT"), "Guide 1.0\n")
        self.assertEqual(fs.read("A folder/404.txt"), "Numeric")
        self.assertIsNone(fs.read("guide.txt"))
        fs.mount("extra")
        self.assertEqual(fs.read("guide.txt"), "Extra guide")
        self.assertTrue(fs.folder_exists("1.0"))
        self.assertEqual(fs.list_names("A folder"), ["404.txt"])

    def test_two_archives_stacked(self):
        first = self._open(self._make_zip({"x.txt": b"first"}, "first.zip"), namespace="Res")
        second = self._open(self._make_zip({"x.txt": b"second", "y.txt": b"only second"}, "second.zip"),
                            namespace="Res")
        fs = ResourceOverlay("", first)
        fs.add_provider(second)
        self.assertEqual(fs.read("x.txt"), "first")
        self.assertEqual(fs.read("y.txt"), "only second")
        self.assertEqual(fs.list_names(), ["x.txt", "x.txt", "y.txt"])


class TestPackageProvider(unittest.TestCase):
    """Builds a throwaway package on disk and loads it by name."""

    def setUp(self):
        self._tmpdir = tempfile.mkdtemp()
        self.name = "resfs_testpkg_" + uuid.uuid4().hex[:8]
        root = os.path.join(self._tmpdir, self.name)
        files = {
            "__init__.py": "",
            "mod.py": "X = 1\n",
            "data.json": "{}",
            "templates/page.html": "<html></html>\r\n",
            "1.0/notes.txt": "Notes",
            "__pycache__/stale.cpython-311.pyc": "",
        }
        for rel, content in files.items():
            path = os.path.join(root, *rel.split("/"))
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w", newline="") as f:
                f.write(content)
        sys.path.insert(0, self._tmpdir)
        importlib.invalidate_caches()

    def tearDown(self):
        sys.path.remove(self._tmpdir)
        sys.modules.pop(self.name, None)
        shutil.rmtree(self._tmpdir)

    def test_keys(self):
        from provider_package import load_provider
        p = load_provider(self.name)
        self.assertEqual(p.namespace, self.name)
        self.assertEqual(sorted(p.keys()), [
            f"{self.name}._1._0.notes.txt",
            f"{self.name}.data.json",
            f"{self.name}.templates.page.html",
        ])

    def test_open(self):
        from provider_package import load_provider
        p = load_provider(self.name)
        with p.open(f"{self.name}.templates.page.html") as f:
            self.assertEqual(f.read(), b"<html></html>\r\n")
        with self.assertRaises(ProviderError):
            p.open(f"{self.name}.mod.py")

    def test_load_same_name_twice(self):
        from provider_package import load_provider
        self.assertIs(load_provider(self.name), load_provider(self.name))

    def test_load_missing(self):
        from provider_package import load_provider
        with self.assertRaises(ProviderNotFoundError):
            load_provider("resfs_no_such_package_" + uuid.uuid4().hex[:8])

    def test_load_plain_module(self):
        from provider_package import load_provider
        for name in ("textwrap", "sys"):
            with self.assertRaises(ProviderNotFoundError):
                load_provider(name)

    def test_add_plain_module_by_name(self):
        home = MemoryProvider({"App.a.txt": "home"}, namespace="App")
        fs = ResourceOverlay("", home)
        self.assertIsNone(fs.add_provider_by_name("textwrap"))
        fs.ignore_missing_providers = True
        bundle = fs.add_provider_by_name("textwrap", "files")
        self.assertIs(bundle, fs.bundles[0])
        self.assertEqual(len(fs.bundles), 1)
        self.assertEqual(fs.read("a.txt"), "home")

    def test_add_provider_by_name(self):
        home = MemoryProvider({"App.a.txt": "home"}, namespace="App")
        fs = ResourceOverlay("", home)
        bundle = fs.add_provider_by_name(self.name, "templates")
        self.assertIsNotNone(bundle)
        self.assertEqual(fs.read_normalized("page.html"), "<html></html>\n")
        self.assertIs(fs.add_provider_by_name(self.name), bundle)
        self.assertEqual(fs.read("1.0/notes.txt"), "Notes")
        self.assertEqual(fs.read("a.txt"), "home")

    def test_module_object(self):
        from provider_package import PackageProvider
        module = importlib.import_module(self.name)
        p = PackageProvider(module)
        self.assertIn(f"{self.name}.data.json", p.keys())


class TestDecoders(unittest.TestCase):
    def test_identity(self):
        stream = io.BytesIO(b"data")
        self.assertIs(IdentityDecoder().decode(stream), stream)

    def test_transform_closes_source(self):
        stream = io.BytesIO(b"data")
        decoded = TransformDecoder(bytes.upper).decode(stream)
        self.assertTrue(stream.closed)
        self.assertEqual(decoded.read(), b"DATA")

    def test_gzip(self):
        stream = io.BytesIO(gzip.compress(b"compressed text"))
        self.assertEqual(GzipDecoder().decode(stream).read(), b"compressed text")

    def test_gzip_overlay(self):
        provider = MemoryProvider({"App.a.txt.gz": gzip.compress(b"zipped")}, namespace="App")
        fs = ResourceOverlay("", provider, decoder=GzipDecoder())
        self.assertEqual(fs.read("a.txt.gz"), "zipped")


if __name__ == "__main__":
    unittest.main()
