"""Tests for tspbench.io."""
import orjson
import pytest
import yaml

from tspbench.io import (
    dump_report,
    iter_instance_files,
    prepare_output_dirs,
    read_json,
    read_report,
    write_report,
)
from tspbench.model import AggregateRecord, BenchConfig, FailureRecord, Report, SampleStats


@pytest.fixture
def report():
    return Report(
        results=[
            AggregateRecord(
                name="berlin52",
                runs=3,
                distance=SampleStats(average=7600.0, std_dev=12.5),
                time=SampleStats(average=0.12, std_dev=0.01),
            )
        ],
        failures=[
            FailureRecord(name="broken", source="tours/broken.tsp", stage="running_series",
                          error="NoArtifactsFoundError", reason="no artifacts")
        ],
    )


class TestReadJson:
    def test_reads_dict(self, tmp_path):
        p = tmp_path / "cfg.json"
        p.write_bytes(orjson.dumps({"runs": 5, "notes": "zażółć"}))
        assert read_json(p) == {"runs": 5, "notes": "zażółć"}


class TestInstanceFiles:
    def test_sorted_and_filtered(self, tmp_path, write_instance):
        write_instance("b.tsp", "B")
        write_instance("a.tsp", "A")
        (tmp_path / "tours" / "readme.txt").write_text("x")
        assert [p.name for p in iter_instance_files(tmp_path / "tours")] == ["a.tsp", "b.tsp"]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            iter_instance_files(tmp_path / "nope")


class TestOutputDirs:
    def test_creates_layout_idempotently(self, tmp_path):
        cfg = BenchConfig(solver_cmd="./tsp", repetitions=1, output_name="r", output_root=tmp_path / "output")
        prepare_output_dirs(cfg)
        prepare_output_dirs(cfg)
        for d in (cfg.series_dir, cfg.profile_dir, cfg.map_dir):
            assert d.is_dir()


class TestReportSerialization:
    def test_yaml_layout(self, report):
        data = yaml.safe_load(dump_report(report, "yaml"))
        assert list(data) == ["notes", "results", "failures"]
        assert data["results"][0] == {
            "name": "berlin52",
            "runs": 3,
            "distance": {"average": 7600.0, "std_dev": 12.5},
            "time": {"average": 0.12, "std_dev": 0.01},
        }

    def test_json_layout(self, report):
        data = orjson.loads(dump_report(report, "json"))
        assert data["failures"][0]["stage"] == "running_series"

    def test_unknown_format(self, report):
        with pytest.raises(ValueError):
            dump_report(report, "xml")

    @pytest.mark.parametrize("filename", ["results.yml", "results.json"])
    def test_write_then_read(self, tmp_path, report, filename):
        path = write_report(report, tmp_path / "out" / filename)
        assert path.exists()
        assert not (tmp_path / "out" / f"{filename}.tmp").exists()
        assert read_report(path) == report

    def test_explicit_format_overrides_suffix(self, tmp_path, report):
        path = write_report(report, tmp_path / "results.yml", fmt="json")
        assert orjson.loads(path.read_bytes())["notes"] == report.notes
