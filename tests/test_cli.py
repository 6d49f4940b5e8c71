import json
import time
import webbrowser

import pytest
import requests

from audioguide.__main__ import main
from audioguide.osm import OSMFetcher
from audioguide.store import PointStore


@pytest.fixture
def catalog_file(tmp_path, p1, p2):
    path = tmp_path / "points.json"
    path.write_text(json.dumps([p1.to_dict(), p2.to_dict()]))
    return str(path)


@pytest.fixture(autouse=True)
def no_browser(monkeypatch):
    opened = []
    monkeypatch.setattr(webbrowser, "open", lambda url: opened.append(url) or True)
    return opened


class TestNearby:
    def test_lists_ranked_points(self, catalog_file, capsys):
        assert main(["--catalog", catalog_file, "--lat", "32.0", "--lon", "35.0", "--radius", "2000"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("  1. Old Gate [Historical] 0 m")
        assert out[1].startswith("  2. Spring Park [Nature] 1.1 km")

    def test_category_and_cap(self, catalog_file, capsys):
        main(["--catalog", catalog_file, "--lat", "32.0", "--lon", "35.0",
              "--radius", "2000", "--category", "nature"])
        assert "Spring Park" in capsys.readouterr().out
        main(["--catalog", catalog_file, "--lat", "32.0", "--lon", "35.0",
              "--radius", "2000", "--max", "1"])
        out = capsys.readouterr().out
        assert "Old Gate" in out and "Spring Park" not in out

    def test_no_points(self, catalog_file, capsys):
        main(["--catalog", catalog_file, "--lat", "0", "--lon", "0"])
        assert "No points found." in capsys.readouterr().out

    def test_invalid_coordinates(self, catalog_file, capsys):
        assert main(["--catalog", catalog_file, "--lat", "95", "--lon", "0"]) == 2
        assert "out of range" in capsys.readouterr().err

    def test_html_map(self, catalog_file, tmp_path, no_browser):
        out = tmp_path / "map.html"
        main(["--catalog", catalog_file, "--lat", "32.0", "--lon", "35.0",
              "--radius", "2000", "--html", str(out)])
        assert out.exists()
        assert "Spring Park" in out.read_text()
        assert no_browser and no_browser[0].startswith("file://")

    def test_lat_without_lon(self, catalog_file):
        with pytest.raises(SystemExit):
            main(["--catalog", catalog_file, "--lat", "32.0"])


class TestCommands:
    def test_import_then_query_db(self, catalog_file, tmp_path, capsys):
        db = str(tmp_path / "guide.db")
        assert main(["--db", db, "--import", catalog_file]) == 0
        assert "Imported 2 points" in capsys.readouterr().out

        store = PointStore(db)
        assert store.count() == 2
        store.close()

        main(["--db", db, "--lat", "32.0", "--lon", "35.0", "--radius", "500"])
        out = capsys.readouterr().out
        assert "Old Gate" in out and "Spring Park" not in out

    def test_categories(self, catalog_file, capsys):
        main(["--catalog", catalog_file, "--categories"])
        out = capsys.readouterr().out
        assert "Historical" in out and "Nature" in out
        assert out.strip().splitlines()[-1].split() == ["Total", "2"]

    def test_search(self, catalog_file, capsys):
        main(["--catalog", catalog_file, "--search", "spring"])
        assert capsys.readouterr().out.strip() == "P2: Spring Park [Nature]"

    def test_navigate(self, catalog_file, no_browser):
        assert main(["--catalog", catalog_file, "--navigate", "P2"]) == 0
        assert no_browser == ["waze://?ll=32.01,35.0&navigate=yes"]
        assert main(["--catalog", catalog_file, "--navigate", "nope"]) == 1

    def test_playback_tracking(self, catalog_file, write_trace, monkeypatch, capsys):
        monkeypatch.setattr(time, "sleep", lambda seconds: None)
        monkeypatch.setattr("audioguide.audio.Audio.speak", staticmethod(lambda text: print(f"SAY {text}")))
        monkeypatch.setattr("audioguide.audio.Audio.play", staticmethod(lambda asset: True))
        trace = write_trace([(32.0, 35.0), (31.982, 35.0), (32.0, 35.0)])
        assert main(["--catalog", catalog_file, "--playback", trace]) == 0
        out = capsys.readouterr().out
        assert out.count("SAY You are near Old Gate") == 2


class TestDatabaseWrites:
    @pytest.fixture
    def seeded_db(self, tmp_path, p1):
        db = str(tmp_path / "guide.db")
        store = PointStore(db)
        store.replace_points([p1])
        store.close()
        return db

    @pytest.fixture(autouse=True)
    def osm_cache(self, tmp_path, monkeypatch):
        monkeypatch.setattr(OSMFetcher, "CACHE_DIR", str(tmp_path / "osm_cache"))

    def _count(self, db):
        store = PointStore(db)
        try:
            return store.count()
        finally:
            store.close()

    def test_offline_fetch_keeps_database(self, seeded_db, monkeypatch, capsys):
        def offline(url, data, timeout):
            raise requests.ConnectionError("offline")

        monkeypatch.setattr(requests, "post", offline)
        assert main(["--db", seeded_db, "--fetch", "--lat", "32.0", "--lon", "35.0"]) == 1
        assert "left unchanged" in capsys.readouterr().err
        assert self._count(seeded_db) == 1

    def test_fetch_replaces_database(self, seeded_db, monkeypatch, capsys):
        class Response:
            def raise_for_status(self):
                pass

            def json(self):
                return {"elements": [
                    {"type": "node", "id": 7, "lat": 32.0, "lon": 35.0,
                     "tags": {"name": "Old Fort", "historic": "fort"}},
                ]}

        monkeypatch.setattr(requests, "post", lambda url, data, timeout: Response())
        assert main(["--db", seeded_db, "--fetch", "--lat", "32.0", "--lon", "35.0"]) == 0
        assert "Stored 1 points" in capsys.readouterr().out
        store = PointStore(seeded_db)
        assert [p.id for p in store.load_catalog()] == ["node/7"]
        store.close()

    @pytest.mark.parametrize("flags", [["--import", "points.json"], ["--fetch", "--lat", "32", "--lon", "35"]])
    def test_db_writes_reject_catalog(self, catalog_file, flags, capsys):
        with pytest.raises(SystemExit):
            main(["--catalog", catalog_file] + flags)
        assert "cannot be combined with --catalog" in capsys.readouterr().err


class TestNarration:
    def test_preload_downloads_catalog_narration(self, catalog_file, tmp_path, monkeypatch, capsys):
        monkeypatch.chdir(tmp_path)
        urls = []

        class Response:
            content = b"ID3"

            def raise_for_status(self):
                pass

        monkeypatch.setattr(requests, "get", lambda url, timeout: urls.append(url) or Response())
        assert main(["--catalog", catalog_file, "--preload",
                     "--narration-url", "https://cdn.example.org/audio"]) == 0
        assert urls == ["https://cdn.example.org/audio/historical.mp3",
                        "https://cdn.example.org/audio/nature.mp3"]
        assert "2/2 narration files available" in capsys.readouterr().out
        assert (tmp_path / "narration_cache" / "nature.mp3").read_bytes() == b"ID3"

    def test_preload_needs_url(self, catalog_file):
        with pytest.raises(SystemExit):
            main(["--catalog", catalog_file, "--preload"])
