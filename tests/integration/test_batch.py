# tests/integration/test_batch.py

import pytest
from pclmetrics import PCLConfig, process_batch, process_transect
from pclmetrics import batch
from pclmetrics.batch import default_workers

from helpers import build_transect, assert_records_equal

@pytest.fixture
def transects():
    return [
        build_transect("c.csv", [(1, 6.0), (1, None), (2, 9.0), (2, 15.0)]),
        build_transect("a.csv", [(1, 3.0), (1, 4.0), (1, None)]),
        build_transect("b.csv", [(1, None)] * 4),
    ]

def test_batch_results_sorted_by_name(transects):
    results = process_batch(transects, PCLConfig(), max_workers=1)

    assert [r.name for r in results] == ["a.csv", "b.csv", "c.csv"]
    assert all(r.ok for r in results)

def test_batch_matches_single_runs(transects):
    config = PCLConfig()
    results = {r.name: r for r in process_batch(transects, config, max_workers=1)}

    for transect in transects:
        expected = process_transect(transect, config)
        assert_records_equal(results[transect.name].result.record, expected.record)

def test_batch_order_independent(transects):
    forward = process_batch(transects, max_workers=1)
    backward = process_batch(list(reversed(transects)), max_workers=1)

    for a, b in zip(forward, backward):
        assert a.name == b.name
        assert_records_equal(a.result.record, b.result.record)

def test_failing_transect_does_not_stop_batch(transects, tmp_path):
    broken = build_transect("broken.csv", [(None, 5.0)])
    sources = transects + [broken, tmp_path / "missing.csv"]

    results = {r.name: r for r in process_batch(sources, max_workers=1)}

    assert not results["broken.csv"].ok
    assert "ConfigurationError" in results["broken.csv"].error
    assert results["broken.csv"].result is None
    assert not results["missing.csv"].ok
    assert "FileNotFoundError" in results["missing.csv"].error
    assert results["a.csv"].ok and results["c.csv"].ok

def test_non_finite_input_fails_only_its_transect(transects, tmp_path):
    path = tmp_path / "infinite.csv"
    path.write_text("-9999,0\n5.0,1\ninf,2\n-9999,0\n")

    results = {r.name: r for r in process_batch(transects + [path], max_workers=2)}

    assert not results["infinite.csv"].ok
    assert "ConfigurationError" in results["infinite.csv"].error
    assert all(results[t.name].ok for t in transects)

def test_unexpected_error_fails_only_its_transect(transects, monkeypatch):
    real = batch.process_transect

    def flaky(transect, config):
        if transect.name == "b.csv":
            raise RuntimeError("kernel blew up")
        return real(transect, config)

    monkeypatch.setattr(batch, "process_transect", flaky)
    results = {r.name: r for r in process_batch(transects, max_workers=1)}

    assert results["b.csv"].error == "RuntimeError: kernel blew up"
    assert results["a.csv"].ok and results["c.csv"].ok

def test_batch_in_worker_processes(transects):
    results = process_batch(transects, PCLConfig(), max_workers=2)

    assert [r.name for r in results] == ["a.csv", "b.csv", "c.csv"]
    assert all(r.ok for r in results)
    assert results[2].result.record.transect_length == 20

def test_batch_reads_files(pcl_csv_factory):
    path = pcl_csv_factory("site_01.csv", [[5.0, None, 7.5], [None, 12.0]])
    results = process_batch([path], max_workers=1)

    assert results[0].ok
    assert results[0].name == "site_01.csv"
    assert results[0].result.record.transect_length == 20
    assert results[0].result.record.n_pulses == 5

def test_empty_batch():
    assert process_batch([]) == []

def test_default_workers_capped_by_tasks():
    assert default_workers(1) == 1
    assert default_workers(1000) >= 1
